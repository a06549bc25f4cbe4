from .channel import Channel, ChannelClosed, WebSocketChannel
from .connection_manager import ConnectionRegistry, RelayState
from .presence_manager import PresenceStore
from .broadcaster import Broadcaster, send_or_skip
from .router import MessageRouter
from .liveness import LivenessSweeper

__all__ = [
    "Channel",
    "ChannelClosed",
    "WebSocketChannel",
    "ConnectionRegistry",
    "RelayState",
    "PresenceStore",
    "Broadcaster",
    "send_or_skip",
    "MessageRouter",
    "LivenessSweeper",
]
