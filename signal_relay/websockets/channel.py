import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Optional

from fastapi import WebSocket, WebSocketDisconnect
from fastapi.websockets import WebSocketState
from websockets.exceptions import ConnectionClosed

logger = logging.getLogger(__name__)

# Errors a send or close can hit once the peer has gone away
_TRANSPORT_ERRORS = (WebSocketDisconnect, ConnectionClosed, RuntimeError, OSError)

DEFAULT_SEND_QUEUE_LIMIT = 256


class ChannelClosed(Exception):
    """Raised by Channel.send once the channel can no longer deliver"""


class Channel(ABC):
    """A bidirectional message channel plus the relay's per-connection flags.

    ``bound_identity`` is None until the connection sends a valid hello.
    ``awaiting_pong`` is raised by each liveness sweep and cleared by a pong.
    """

    def __init__(self) -> None:
        self.channel_id = uuid.uuid4().hex[:12]
        self.bound_identity: Optional[str] = None
        self.awaiting_pong = False

    @property
    @abstractmethod
    def is_open(self) -> bool:
        ...

    @abstractmethod
    def send(self, text: str) -> None:
        """Hand ``text`` to the transport without waiting for delivery"""

    @abstractmethod
    def close(self) -> None:
        """Forcibly close the underlying transport"""

    async def drain(self, timeout: float) -> None:
        return None

    def tag(self) -> str:
        return f"{self.bound_identity or 'unbound'}@{self.channel_id}"


class WebSocketChannel(Channel):
    """Channel over a FastAPI WebSocket.

    Outbound text goes through a per-channel queue drained by a writer task, so
    ``send`` never blocks the caller and frames to one peer keep their order.
    A peer that lets ``max_queue`` frames pile up unread is closed.
    """

    def __init__(self, websocket: WebSocket, max_queue: int = DEFAULT_SEND_QUEUE_LIMIT):
        super().__init__()
        self.websocket = websocket
        self._outbox: "asyncio.Queue[str]" = asyncio.Queue(maxsize=max_queue)
        self._writer: Optional[asyncio.Task] = None
        self._closer: Optional[asyncio.Task] = None
        self._closed = False

    def start(self) -> None:
        self._writer = asyncio.create_task(self._write_loop())

    @property
    def is_open(self) -> bool:
        return not self._closed and self.websocket.application_state == WebSocketState.CONNECTED

    @property
    def pending(self) -> int:
        return self._outbox.qsize()

    def send(self, text: str) -> None:
        if not self.is_open:
            raise ChannelClosed(self.tag())
        try:
            self._outbox.put_nowait(text)
        except asyncio.QueueFull:
            logger.info(f"Closing {self.tag()}: {self._outbox.maxsize} frames queued and unread")
            self.close(code=1008)
            raise ChannelClosed(self.tag())

    async def _write_loop(self) -> None:
        while True:
            text = await self._outbox.get()
            failed = False
            try:
                await self.websocket.send_text(text)
            except _TRANSPORT_ERRORS as e:
                logger.info(f"Send to {self.tag()} failed, abandoning queued frames: {e}")
                failed = True
            finally:
                self._outbox.task_done()
            if failed:
                self._closed = True
                self._discard_pending()
                return

    def _discard_pending(self) -> None:
        while not self._outbox.empty():
            self._outbox.get_nowait()
            self._outbox.task_done()

    def _stop_writer(self) -> None:
        if self._writer and not self._writer.done():
            self._writer.cancel()
        self._discard_pending()

    def close(self, code: int = 1001) -> None:
        if self._closed:
            return
        self._closed = True
        self._stop_writer()
        self._closer = asyncio.create_task(self._close_transport(code))

    async def _close_transport(self, code: int) -> None:
        try:
            if self.websocket.application_state == WebSocketState.CONNECTED:
                await self.websocket.close(code=code)
        except _TRANSPORT_ERRORS as e:
            logger.debug(f"Close of {self.tag()} failed: {e}")

    async def wait_closed(self) -> None:
        if self._closer is not None:
            await self._closer

    def detach(self) -> None:
        """Stop writing after the peer went away on its own"""
        self._closed = True
        self._stop_writer()

    async def drain(self, timeout: float) -> bool:
        """Wait up to ``timeout`` for queued frames to go out; False if some were left"""
        if self._writer is None or self._writer.done():
            return True
        try:
            await asyncio.wait_for(self._outbox.join(), timeout)
        except asyncio.TimeoutError:
            logger.info(f"Gave up draining {self._outbox.qsize()} frames to {self.tag()}")
            return False
        return True
