# protocol/types.py
from __future__ import annotations

# ---- Message types (client -> relay) ----
HELLO = "hello"
OFFER = "offer"
ANSWER = "answer"
ICE = "ice"
END = "end"
PONG = "pong"

# Forwarded verbatim to the peer named in "to"
RELAYED_TYPES = frozenset({OFFER, ANSWER, ICE, END})

# ---- Message types (relay -> client) ----
ONLINE = "online"
PING = "ping"

# Minimal shape docs (for human readers)
# hello:   { "type": "hello", "me": { "id": str, "name": str, "avatar": str } }
# relayed: { "type": "offer"|"answer"|"ice"|"end", "to": str, ...opaque payload fields }
# pong:    { "type": "pong" }
# online:  { "type": "online", "users": [ { "id", "name", "avatar" }, ... ] }
# ping:    { "type": "ping" }   liveness check, answered with pong
