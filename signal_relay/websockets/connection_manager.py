import asyncio
import logging
from typing import Dict, Iterator, List, Optional, Tuple

from signal_relay.models.presence import PresenceEntry
from .channel import Channel
from .presence_manager import PresenceStore

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """user id -> live channel, at most one channel per id"""

    def __init__(self):
        self._channels: Dict[str, Channel] = {}

    def register(self, user_id: str, channel: Channel) -> Optional[Channel]:
        """Store the mapping, returning the channel it replaced (last writer wins)"""
        previous = self._channels.get(user_id)
        self._channels[user_id] = channel
        return previous if previous is not channel else None

    def unregister(self, user_id: str) -> Optional[Channel]:
        return self._channels.pop(user_id, None)

    def lookup(self, user_id: str) -> Optional[Channel]:
        return self._channels.get(user_id)

    def items(self) -> List[Tuple[str, Channel]]:
        return list(self._channels.items())

    def __iter__(self) -> Iterator[Channel]:
        return iter(list(self._channels.values()))

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._channels

    def __len__(self) -> int:
        return len(self._channels)


class RelayState:
    """Connection registry and presence store behind one lock.

    Every operation that touches either collection, or reads them for a
    broadcast, holds ``lock`` so the two always list the same identities.
    No channel or file I/O happens while the lock is held.
    """

    def __init__(self, presence: Optional[PresenceStore] = None, registry: Optional[ConnectionRegistry] = None):
        self.presence = presence if presence is not None else PresenceStore()
        self.registry = registry if registry is not None else ConnectionRegistry()
        self.lock = asyncio.Lock()

    async def bind(self, channel: Channel, entry: PresenceEntry) -> None:
        async with self.lock:
            previous_id = channel.bound_identity
            if previous_id and previous_id != entry.id:
                # Re-hello under a new id: the old identity goes with it
                self.drop_locked(previous_id, channel)
            replaced = self.registry.register(entry.id, channel)
            self.presence.upsert(entry)
            channel.bound_identity = entry.id
        await self.presence.flush()
        if replaced is not None:
            # The superseded connection is left running until it closes or fails a sweep
            logger.info(f"User {entry.id} re-registered from {channel.channel_id}, superseding {replaced.channel_id}")
        else:
            logger.info(f"User {entry.id} registered on {channel.channel_id}")

    async def release(self, channel: Channel) -> bool:
        """Unbind a closed channel; False if it no longer owned its identity"""
        user_id = channel.bound_identity
        if not user_id:
            return False
        async with self.lock:
            released = self.drop_locked(user_id, channel)
        if released:
            await self.presence.flush()
        return released

    def drop_locked(self, user_id: str, channel: Optional[Channel] = None) -> bool:
        """Remove ``user_id`` from both stores. Caller holds ``lock``.

        With ``channel`` given, only removes the mapping if that channel still owns it.
        """
        current = self.registry.lookup(user_id)
        if current is None or (channel is not None and current is not channel):
            return False
        self.registry.unregister(user_id)
        self.presence.remove(user_id)
        return True

    async def lookup(self, user_id: str) -> Optional[Channel]:
        async with self.lock:
            return self.registry.lookup(user_id)

    async def snapshot(self) -> Tuple[List[PresenceEntry], List[Channel]]:
        """Consistent (users, channels) pair for one broadcast"""
        async with self.lock:
            return self.presence.snapshot(), list(self.registry)

    async def online_users(self) -> List[PresenceEntry]:
        async with self.lock:
            return self.presence.status()

    async def channels(self) -> List[Channel]:
        async with self.lock:
            return list(self.registry)
