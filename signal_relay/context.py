# signal_relay/context.py
from __future__ import annotations
import asyncio
import logging
from typing import Optional

from signal_relay.config import Settings
from signal_relay.persistence.online_json import OnlineFile
from signal_relay.websockets.broadcaster import Broadcaster
from signal_relay.websockets.channel import DEFAULT_SEND_QUEUE_LIMIT
from signal_relay.websockets.connection_manager import RelayState
from signal_relay.websockets.liveness import LivenessSweeper
from signal_relay.websockets.presence_manager import PresenceStore
from signal_relay.websockets.router import MessageRouter

logger = logging.getLogger(__name__)


class RelayContext:
    """Everything one relay process shares across its connections"""

    def __init__(
        self,
        state: RelayState,
        heartbeat_interval: float = 30,
        drain_timeout: float = 5,
        send_queue_limit: int = DEFAULT_SEND_QUEUE_LIMIT,
    ):
        self.state = state
        self.broadcaster = Broadcaster(state)
        self.router = MessageRouter(state, self.broadcaster)
        self.sweeper = LivenessSweeper(state, self.broadcaster, heartbeat_interval)
        self.drain_timeout = drain_timeout
        self.send_queue_limit = send_queue_limit

    @classmethod
    def from_settings(cls, config: Settings) -> "RelayContext":
        persistence: Optional[OnlineFile] = OnlineFile(config.state_file) if config.state_file else None
        presence = PresenceStore(persistence)
        presence.recover()
        return cls(
            RelayState(presence),
            heartbeat_interval=config.WS_HEARTBEAT_INTERVAL,
            drain_timeout=config.WS_DRAIN_TIMEOUT,
            send_queue_limit=config.WS_SEND_QUEUE_LIMIT,
        )

    def start(self) -> None:
        self.sweeper.start()

    async def shutdown(self) -> None:
        """Stop sweeping and give queued frames a chance to go out"""
        await self.sweeper.stop()
        channels = await self.state.channels()
        if channels:
            logger.info(f"Draining {len(channels)} channels")
            await asyncio.gather(*(c.drain(self.drain_timeout) for c in channels))
