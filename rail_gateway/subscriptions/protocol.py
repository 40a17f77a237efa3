"""
GraphQL over WebSocket message vocabulary.

Two sub-protocols are spoken on the same route:

* ``graphql-transport-ws`` (current): ``subscribe`` / ``next`` /
  ``complete``, plus ``ping`` / ``pong``.
* ``graphql-ws`` (legacy, subscriptions-transport-ws): ``start`` /
  ``data`` / ``stop``, plus ``ka`` keep-alives and ``connection_terminate``.

Both share ``connection_init`` / ``connection_ack`` / ``connection_error``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

# Shared handshake
CONNECTION_INIT = "connection_init"
CONNECTION_ACK = "connection_ack"
CONNECTION_ERROR = "connection_error"
ERROR = "error"
COMPLETE = "complete"

# graphql-transport-ws
PING = "ping"
PONG = "pong"
SUBSCRIBE = "subscribe"
NEXT = "next"

# graphql-ws (legacy)
GQL_CONNECTION_KEEP_ALIVE = "ka"
GQL_CONNECTION_TERMINATE = "connection_terminate"
GQL_START = "start"
GQL_DATA = "data"
GQL_STOP = "stop"

GRAPHQL_TRANSPORT_WS_PROTOCOL = "graphql-transport-ws"
GRAPHQL_WS_PROTOCOL = "graphql-ws"

# Close codes
CLOSE_NORMAL = 1000
CLOSE_GOING_AWAY = 1001
CLOSE_INTERNAL_ERROR = 1011
CLOSE_BAD_REQUEST = 4400
CLOSE_UNAUTHORIZED = 4401
CLOSE_FORBIDDEN = 4403
CLOSE_INIT_TIMEOUT = 4408
CLOSE_SUBSCRIBER_EXISTS = 4409
CLOSE_TOO_MANY_INIT = 4429


@dataclass(frozen=True)
class Vocabulary:
    """Message names for one sub-protocol."""

    name: str
    start_types: frozenset
    stop_types: frozenset
    data_type: str
    list_errors: bool
    ping_type: Optional[str] = None
    pong_type: Optional[str] = None
    keepalive_type: Optional[str] = None
    terminate_type: Optional[str] = None

    def data_frame(self, operation_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return {"id": operation_id, "type": self.data_type, "payload": payload}

    def error_frame(self, operation_id: str, errors: list[dict[str, Any]]) -> dict[str, Any]:
        payload: Any = errors if self.list_errors else (errors[0] if errors else {})
        return {"id": operation_id, "type": ERROR, "payload": payload}

    def complete_frame(self, operation_id: str) -> dict[str, Any]:
        return {"id": operation_id, "type": COMPLETE}


TRANSPORT_WS = Vocabulary(
    name=GRAPHQL_TRANSPORT_WS_PROTOCOL,
    start_types=frozenset({SUBSCRIBE, GQL_START}),
    stop_types=frozenset({COMPLETE, GQL_STOP}),
    data_type=NEXT,
    list_errors=True,
    ping_type=PING,
    pong_type=PONG,
    keepalive_type=PING,
)

LEGACY_WS = Vocabulary(
    name=GRAPHQL_WS_PROTOCOL,
    start_types=frozenset({GQL_START}),
    stop_types=frozenset({GQL_STOP}),
    data_type=GQL_DATA,
    list_errors=False,
    keepalive_type=GQL_CONNECTION_KEEP_ALIVE,
    terminate_type=GQL_CONNECTION_TERMINATE,
)

VOCABULARIES = {vocab.name: vocab for vocab in (TRANSPORT_WS, LEGACY_WS)}


def get_vocabulary(subprotocol: Optional[str]) -> Vocabulary:
    return VOCABULARIES.get(subprotocol or "", TRANSPORT_WS)


def connection_ack() -> dict[str, Any]:
    return {"type": CONNECTION_ACK}


def connection_error(message: str) -> dict[str, Any]:
    return {"type": CONNECTION_ERROR, "payload": {"message": message}}
