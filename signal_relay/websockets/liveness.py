import asyncio
import logging
from typing import List, Optional

from signal_relay.protocol.messages import PING_FRAME
from .broadcaster import Broadcaster, send_or_skip
from .connection_manager import RelayState

logger = logging.getLogger(__name__)


class LivenessSweeper:
    """Ping-and-evict loop over registered connections.

    A connection pinged on one tick that has not answered with a pong by the
    next tick is closed and dropped. Every tick ends with one broadcast.
    """

    def __init__(self, state: RelayState, broadcaster: Broadcaster, interval: float = 30):
        self.state = state
        self.broadcaster = broadcaster
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    async def sweep(self) -> List[str]:
        """Run one tick, returning the evicted user ids"""
        evicted, pinged = [], []
        async with self.state.lock:
            for user_id, channel in self.state.registry.items():
                if channel.awaiting_pong:
                    self.state.drop_locked(user_id, channel)
                    evicted.append((user_id, channel))
                else:
                    channel.awaiting_pong = True
                    pinged.append(channel)
        if evicted:
            await self.state.presence.flush()

        for user_id, channel in evicted:
            logger.info(f"Evicting unresponsive user {user_id} ({channel.channel_id})")
            channel.close()
        for channel in pinged:
            send_or_skip(channel, PING_FRAME)

        await self.broadcaster.broadcast()
        return [user_id for user_id, _ in evicted]

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.sweep()
            except Exception as e:
                logger.exception(f"Liveness sweep failed: {e}")

    def start(self) -> None:
        if not self.interval or self._task is not None:
            return
        self._task = asyncio.create_task(self._run())
        logger.info(f"Liveness sweep every {self.interval}s")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
