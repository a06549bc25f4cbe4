import logging
from typing import Any, Awaitable, Callable, Dict, Union

from signal_relay.protocol.messages import decode, hello_entry, recipient_of
from signal_relay.protocol.types import HELLO, PONG, RELAYED_TYPES
from .broadcaster import Broadcaster, send_or_skip
from .channel import Channel
from .connection_manager import RelayState

logger = logging.getLogger(__name__)

Handler = Callable[[Channel, Dict[str, Any], str], Awaitable[None]]


class MessageRouter:
    """Interprets inbound frames for one relay.

    Nothing is ever sent back to the sender about its own frames: malformed
    input, unknown types, bad hellos and unreachable recipients are all dropped.
    """

    def __init__(self, state: RelayState, broadcaster: Broadcaster):
        self.state = state
        self.broadcaster = broadcaster
        self.routes: Dict[str, Handler] = {HELLO: self.handle_hello, PONG: self.handle_pong}
        for type_ in RELAYED_TYPES:
            self.routes[type_] = self.handle_relay

    async def handle_message(self, channel: Channel, raw: Union[str, bytes]) -> None:
        obj = decode(raw)
        if obj is None:
            logger.debug(f"Dropped unparseable frame from {channel.tag()}")
            return
        route = self.routes.get(obj["type"])
        if route is None:
            logger.debug(f"Dropped unknown type {obj['type']!r} from {channel.tag()}")
            return
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8", errors="replace")
        await route(channel, obj, raw)

    async def handle_hello(self, channel: Channel, obj: Dict[str, Any], raw: str) -> None:
        entry = hello_entry(obj)
        if entry is None:
            logger.debug(f"Dropped hello without id from {channel.tag()}")
            return
        await self.state.bind(channel, entry)
        await self.broadcaster.broadcast()

    async def handle_relay(self, channel: Channel, obj: Dict[str, Any], raw: str) -> None:
        to = recipient_of(obj)
        target = await self.state.lookup(to) if to else None
        if target is None:
            logger.debug(f"Dropped {obj['type']} from {channel.tag()} to offline peer {to!r}")
            return
        # Forward the frame exactly as received
        if not send_or_skip(target, raw):
            logger.debug(f"Dropped {obj['type']} from {channel.tag()}: {target.tag()} is closing")

    async def handle_pong(self, channel: Channel, obj: Dict[str, Any], raw: str) -> None:
        channel.awaiting_pong = False

    async def handle_close(self, channel: Channel) -> None:
        """Transport closed: forget the identity and tell everyone"""
        if await self.state.release(channel):
            logger.info(f"User {channel.bound_identity} went offline ({channel.channel_id})")
            await self.broadcaster.broadcast()
