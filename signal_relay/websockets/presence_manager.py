import asyncio
import logging
from typing import Dict, List, Optional

from signal_relay.models.presence import PresenceEntry
from signal_relay.persistence.online_json import OnlineFile

logger = logging.getLogger(__name__)


class PresenceStore:
    """Who is online and how they want to be shown.

    Not synchronised on its own; RelayState mutates it under the relay lock
    together with the connection registry. Mutations only mark the side file
    stale. ``flush`` writes it off the event loop, after the lock is released.
    """

    def __init__(self, persistence: Optional[OnlineFile] = None):
        self._entries: Dict[str, PresenceEntry] = {}
        self._persistence = persistence
        # Last run's list, served by status() until the first live change
        self._recovered: Optional[List[PresenceEntry]] = None
        self._version = 0
        self._written = 0
        self._write_lock = asyncio.Lock()

    def recover(self) -> int:
        """Pre-seed the status view from the side file"""
        if self._persistence is None:
            return 0
        self._recovered = self._persistence.load()
        logger.info(f"Recovered {len(self._recovered)} presence entries from {self._persistence.path}")
        return len(self._recovered)

    def upsert(self, entry: PresenceEntry) -> None:
        self._entries[entry.id] = entry
        self._changed()

    def remove(self, user_id: str) -> bool:
        if self._entries.pop(user_id, None) is None:
            return False
        self._changed()
        return True

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def snapshot(self) -> List[PresenceEntry]:
        """Live entries in insertion order"""
        return list(self._entries.values())

    def status(self) -> List[PresenceEntry]:
        if self._recovered is not None:
            return list(self._recovered)
        return self.snapshot()

    @property
    def dirty(self) -> bool:
        return self._persistence is not None and self._written < self._version

    def _changed(self) -> None:
        self._recovered = None
        self._version += 1

    async def flush(self) -> bool:
        """Write the latest entries to the side file in a worker thread.

        Writes are serialised and a flush that finds the file already current
        does nothing, so the file never goes back to an older state. A failed
        write is logged by OnlineFile and not retried until the next change.
        """
        if self._persistence is None:
            return True
        async with self._write_lock:
            if self._written >= self._version:
                return True
            version, entries = self._version, self.snapshot()
            ok = await asyncio.to_thread(self._persistence.save, entries)
            self._written = version
            return ok
