from __future__ import annotations
import json, logging, os
from pathlib import Path
from typing import Iterable, List, Union

from pydantic import ValidationError

from signal_relay.models.presence import PresenceEntry

logger = logging.getLogger(__name__)

# JSON side file: {"users": {id: {"id", "name", "avatar"}}}
# Restart-recovery aid for the status endpoint only; routing never reads it.


class OnlineFile:
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def read(self) -> dict:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {"users": {}}
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable presence file {self.path}: {e}")
            return {"users": {}}
        if not isinstance(data, dict) or not isinstance(data.get("users"), dict):
            return {"users": {}}
        return data

    def load(self) -> List[PresenceEntry]:
        """Entries recorded by the previous run, malformed rows skipped"""
        entries = []
        for row in self.read()["users"].values():
            try:
                entries.append(PresenceEntry.model_validate(row))
            except ValidationError:
                logger.debug(f"Skipping malformed presence row in {self.path}: {row!r}")
        return entries

    def _atomic_write(self, obj: dict) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(obj, f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, self.path)

    def save(self, entries: Iterable[PresenceEntry]) -> bool:
        """Best-effort write; a failure is logged and reported, never raised"""
        state = {"users": {e.id: e.to_wire() for e in entries}}
        try:
            self._atomic_write(state)
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to persist presence to {self.path}: {e}")
            return False
        return True
