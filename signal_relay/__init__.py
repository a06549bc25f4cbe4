"""WebSocket signaling relay: presence plus offer/answer/ice forwarding between peers."""

__version__ = "1.0.0"
