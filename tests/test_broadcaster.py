import asyncio

from signal_relay.models.presence import PresenceEntry
from signal_relay.websockets.broadcaster import send_or_skip

from .conftest import FakeChannel


def test_send_or_skip():
    ok, closed, failing = FakeChannel(), FakeChannel(), FakeChannel(fail_sends=True)
    closed.open = False

    assert send_or_skip(ok, "x") is True
    assert send_or_skip(closed, "x") is False
    assert send_or_skip(failing, "x") is False
    assert ok.sent == ["x"]
    assert closed.sent == []


def test_broadcast_survives_failing_channels(relay):
    async def scenario():
        a, broken, gone, d = FakeChannel(), FakeChannel(fail_sends=True), FakeChannel(), FakeChannel()
        for ch, uid in ((a, "a1"), (broken, "b1"), (gone, "c1"), (d, "d1")):
            await relay.state.bind(ch, PresenceEntry(id=uid))
        gone.open = False

        assert await relay.broadcaster.broadcast() == 2
        assert a.sent == d.sent
        assert [u["id"] for u in a.frames()[0]["users"]] == ["a1", "b1", "c1", "d1"]

    asyncio.run(scenario())


def test_broadcast_with_nobody_registered(relay):
    assert asyncio.run(relay.broadcaster.broadcast()) == 0
