import json

import pytest
from fastapi.testclient import TestClient

from signal_relay.config import Settings
from signal_relay.main import create_app


def make_settings(tmp_path, **overrides) -> Settings:
    values = {"state_file": str(tmp_path / "online.json"), "WS_HEARTBEAT_INTERVAL": 0}
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def client(tmp_path):
    with TestClient(create_app(make_settings(tmp_path))) as c:
        yield c


def hello(user_id, name, avatar):
    return {"type": "hello", "me": {"id": user_id, "name": name, "avatar": avatar}}


def test_health_routes(client):
    for path in ("/", "/healthz"):
        resp = client.get(path)
        assert resp.status_code == 200
        assert resp.text == "OK"
    assert client.get("/nowhere").status_code == 404


def test_online_starts_empty_and_is_idempotent(client):
    first = client.get("/online")
    assert first.status_code == 200
    assert first.json() == {"users": []}
    assert client.get("/online").json() == first.json()


def test_base_path_routes(tmp_path):
    app = create_app(make_settings(tmp_path, ws_base_path="/ws/"))
    with TestClient(app) as c:
        assert c.get("/ws/healthz").text == "OK"
        assert c.get("/ws/online").json() == {"users": []}
        assert c.get("/online").json() == {"users": []}

        with c.websocket_connect("/ws") as ws:
            ws.send_json(hello("a1", "Alice", "x"))
            assert ws.receive_json() == {"type": "online", "users": [{"id": "a1", "name": "Alice", "avatar": "x"}]}


def test_signaling_over_websocket(client, tmp_path):
    with client.websocket_connect("/") as a:
        a.send_json(hello("a1", "Alice", "x"))
        assert a.receive_json() == {"type": "online", "users": [{"id": "a1", "name": "Alice", "avatar": "x"}]}

        with client.websocket_connect("/") as b:
            b.send_json(hello("b1", "Bob", "y"))
            both = [{"id": "a1", "name": "Alice", "avatar": "x"}, {"id": "b1", "name": "Bob", "avatar": "y"}]
            assert a.receive_json() == {"type": "online", "users": both}
            assert b.receive_json() == {"type": "online", "users": both}

            assert client.get("/online").json() == {"users": both}

            # unknown recipient and junk are dropped without a reply
            b.send_text("not json")
            b.send_json({"type": "offer", "to": "nobody", "sdp": "..."})
            b.send_json({"type": "chat", "to": "a1"})

            offer = {"type": "offer", "to": "a1", "sdp": "..."}
            b.send_json(offer)
            assert a.receive_json() == offer

            a.send_json({"type": "answer", "to": "b1", "sdp": "ok"})
            assert b.receive_json() == {"type": "answer", "to": "b1", "sdp": "ok"}

            a.close()
            assert b.receive_json() == {"type": "online", "users": [{"id": "b1", "name": "Bob", "avatar": "y"}]}
            assert client.get("/online").json() == {"users": [{"id": "b1", "name": "Bob", "avatar": "y"}]}
            assert json.loads((tmp_path / "online.json").read_text()) == {
                "users": {"b1": {"id": "b1", "name": "Bob", "avatar": "y"}}
            }


def test_recovered_presence_served_until_first_change(tmp_path):
    (tmp_path / "online.json").write_text(
        json.dumps({"users": {"old": {"id": "old", "name": "Ghost", "avatar": "g"}}})
    )
    with TestClient(create_app(make_settings(tmp_path))) as c:
        assert c.get("/online").json() == {"users": [{"id": "old", "name": "Ghost", "avatar": "g"}]}

        with c.websocket_connect("/") as ws:
            ws.send_json(hello("a1", "Alice", "x"))
            # the recovered entry is never broadcast
            assert ws.receive_json() == {"type": "online", "users": [{"id": "a1", "name": "Alice", "avatar": "x"}]}
            assert c.get("/online").json() == {"users": [{"id": "a1", "name": "Alice", "avatar": "x"}]}


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("PORT", "9100")
    monkeypatch.setenv("WS_BASE_PATH", "/ws")
    monkeypatch.setenv("STATE_FILE", "")
    monkeypatch.setenv("WS_HEARTBEAT_INTERVAL", "12")
    monkeypatch.setenv("WS_SEND_QUEUE_LIMIT", "32")
    s = Settings()
    assert s.port == 9100
    assert s.ws_base_path == "/ws"
    assert s.state_file == ""
    assert s.WS_HEARTBEAT_INTERVAL == 12
    assert s.WS_SEND_QUEUE_LIMIT == 32
