# signal_relay/models/__init__.py
from .presence import PresenceEntry

__all__ = ["PresenceEntry"]
