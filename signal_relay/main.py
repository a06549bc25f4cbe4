from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from contextlib import asynccontextmanager
import logging

from signal_relay import __version__
from signal_relay.config import Settings, settings
from signal_relay.context import RelayContext
from signal_relay.routes.status import base_prefix, build_status_router
from signal_relay.websockets.channel import WebSocketChannel

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)


async def relay_socket(websocket: WebSocket):
    """One signaling connection: anonymous until hello, unbound again on close"""
    relay: RelayContext = websocket.app.state.relay
    await websocket.accept()
    channel = WebSocketChannel(websocket, max_queue=relay.send_queue_limit)
    channel.start()
    client = f"{websocket.client.host}:{websocket.client.port}" if websocket.client else "unknown"
    logger.info(f"Connection {channel.channel_id} opened from {client}")

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            if raw is not None:
                await relay.router.handle_message(channel, raw)
    except WebSocketDisconnect:
        pass
    except RuntimeError as e:
        # receive() after the sweeper closed the socket
        logger.debug(f"Connection {channel.channel_id} ended: {e}")
    finally:
        channel.detach()
        await relay.router.handle_close(channel)
        logger.info(f"Connection {channel.channel_id} closed")


def create_app(config: Settings = settings) -> FastAPI:
    relay = RelayContext.from_settings(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager"""
        logger.info(f"Starting signal relay on :{config.port}")
        relay.start()

        yield

        logger.info("Shutting down signal relay...")
        await relay.shutdown()

    app = FastAPI(
        title=config.app_name,
        description="WebSocket signaling relay for WebRTC peers",
        version=__version__,
        debug=config.debug,
        lifespan=lifespan,
    )
    app.state.relay = relay
    app.include_router(build_status_router(config.ws_base_path))

    # Behind a proxy at /ws the upstream path is usually "/", so accept both
    base = base_prefix(config.ws_base_path)
    app.add_api_websocket_route("/", relay_socket)
    if base:
        app.add_api_websocket_route(base, relay_socket)

    return app


app = create_app()
