from __future__ import annotations

import json
from typing import Any, List

import pytest

from signal_relay.context import RelayContext
from signal_relay.websockets.channel import Channel, ChannelClosed
from signal_relay.websockets.connection_manager import RelayState


class FakeChannel(Channel):
    """In-memory channel recording everything sent to it."""

    def __init__(self, fail_sends: bool = False) -> None:
        super().__init__()
        self.sent: List[str] = []
        self.open = True
        self.closed_count = 0
        self.fail_sends = fail_sends

    @property
    def is_open(self) -> bool:
        return self.open

    def send(self, text: str) -> None:
        if self.fail_sends:
            raise ChannelClosed(self.tag())
        self.sent.append(text)

    def close(self) -> None:
        self.open = False
        self.closed_count += 1

    def frames(self) -> List[Any]:
        return [json.loads(t) for t in self.sent]

    def of_type(self, type_: str) -> List[Any]:
        return [f for f in self.frames() if f.get("type") == type_]


def hello(user_id: str, name: str = "", avatar: str = "") -> str:
    return json.dumps({"type": "hello", "me": {"id": user_id, "name": name, "avatar": avatar}})


@pytest.fixture
def relay() -> RelayContext:
    return RelayContext(RelayState(), heartbeat_interval=0)
