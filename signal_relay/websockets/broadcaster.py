import logging

from signal_relay.protocol.messages import online_frame
from .channel import Channel, ChannelClosed
from .connection_manager import RelayState

logger = logging.getLogger(__name__)


def send_or_skip(channel: Channel, text: str) -> bool:
    """Best-effort send; a closed or failing channel is skipped, never raised"""
    if not channel.is_open:
        return False
    try:
        channel.send(text)
        return True
    except ChannelClosed as e:
        logger.debug(f"Skipping closed channel {e}")
        return False


class Broadcaster:
    """Pushes the current presence list to every registered channel"""

    def __init__(self, state: RelayState):
        self.state = state

    async def broadcast(self) -> int:
        users, channels = await self.state.snapshot()
        payload = online_frame(users)
        sent = sum(1 for channel in channels if send_or_skip(channel, payload))
        logger.debug(f"Broadcast {len(users)} online users to {sent}/{len(channels)} channels")
        return sent
