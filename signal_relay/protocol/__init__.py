from .types import *  # noqa: F401,F403
from .messages import decode, hello_entry, online_frame, recipient_of, PING_FRAME

__all__ = ["decode", "hello_entry", "online_frame", "recipient_of", "PING_FRAME"]
