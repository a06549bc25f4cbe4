# protocol/messages.py
from __future__ import annotations
import json
from typing import Any, Dict, Iterable, Optional, Union

from pydantic import ValidationError

from signal_relay.models.presence import PresenceEntry
from .types import ONLINE, PING

PING_FRAME = json.dumps({"type": PING})


def decode(raw: Union[str, bytes]) -> Optional[Dict[str, Any]]:
    """Parse one inbound frame. Anything that is not a JSON object with a string type is None."""
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    try:
        obj = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(obj, dict) or not isinstance(obj.get("type"), str):
        return None
    return obj


def hello_entry(obj: Dict[str, Any]) -> Optional[PresenceEntry]:
    me = obj.get("me")
    if not isinstance(me, dict):
        return None
    user_id = me.get("id")
    if not isinstance(user_id, str) or not user_id:
        return None
    try:
        return PresenceEntry(id=user_id, name=me.get("name"), avatar=me.get("avatar"))
    except ValidationError:
        return None


def recipient_of(obj: Dict[str, Any]) -> Optional[str]:
    to = obj.get("to")
    if isinstance(to, str) and to:
        return to
    return None


def online_frame(users: Iterable[PresenceEntry]) -> str:
    """Serialize the presence list once; the same text goes to every channel."""
    return json.dumps({"type": ONLINE, "users": [u.to_wire() for u in users]})
