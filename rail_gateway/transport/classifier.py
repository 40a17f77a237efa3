"""
Transport classification for the single GraphQL route.

Every incoming connection is sorted into one of three buckets before any
body is read: a WebSocket upgrade, a simple POST-shaped request, or a
rejection. ``classify`` is a pure function over the method and headers so
it can be exercised without a socket; ``classify_request`` and
``classify_scope`` adapt Django requests and ASGI scopes to it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence

DEFAULT_SUBPROTOCOLS = ("graphql-transport-ws", "graphql-ws")

_BODY_METHODS = {"POST"}
_BODY_SHAPED_METHODS = {"GET"}
_JSON_CONTENT_TYPES = {"application/json", "application/graphql+json"}


class TransportKind(str, Enum):
    UPGRADE = "upgrade"
    SIMPLE_POST = "simple_post"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Classification:
    kind: TransportKind
    status: Optional[int] = None
    reason: str = ""
    subprotocol: Optional[str] = None

    @property
    def is_upgrade(self) -> bool:
        return self.kind is TransportKind.UPGRADE

    @property
    def is_rejected(self) -> bool:
        return self.kind is TransportKind.REJECTED


def _rejected(reason: str) -> Classification:
    return Classification(kind=TransportKind.REJECTED, status=400, reason=reason)


def normalize_headers(headers: Mapping[str, Any]) -> dict[str, str]:
    """
    Lower-case header names and strip the WSGI ``HTTP_`` prefix.

    Accepts ``{"Upgrade": ...}``, ``{"HTTP_UPGRADE": ...}`` and
    ``{"CONTENT_TYPE": ...}`` style mappings alike.

    Examples:
        >>> normalize_headers({"HTTP_SEC_WEBSOCKET_PROTOCOL": "graphql-ws"})
        {'sec-websocket-protocol': 'graphql-ws'}
    """
    normalized: dict[str, str] = {}
    for key, value in (headers or {}).items():
        if isinstance(key, bytes):
            key = key.decode("latin-1")
        if isinstance(value, bytes):
            value = value.decode("latin-1")
        name = str(key)
        if name.upper().startswith("HTTP_"):
            name = name[5:]
        name = name.replace("_", "-").lower()
        normalized[name] = str(value)
    return normalized


def _tokens(value: str) -> list[str]:
    return [token.strip() for token in (value or "").split(",") if token.strip()]


def media_type(content_type: Optional[str]) -> str:
    """Return the bare media type of a ``Content-Type`` value, lower-cased."""
    return (content_type or "").split(";", 1)[0].strip().lower()


def negotiate_subprotocol(
    offered: Iterable[str], supported: Sequence[str] = DEFAULT_SUBPROTOCOLS
) -> Optional[str]:
    """Pick the first supported sub-protocol the client offered."""
    offered_set = {token.strip() for token in offered if token and token.strip()}
    for candidate in supported:
        if candidate in offered_set:
            return candidate
    return None


def _is_upgrade(headers: Mapping[str, str]) -> bool:
    upgrade = headers.get("upgrade", "").strip().lower()
    connection = [token.lower() for token in _tokens(headers.get("connection", ""))]
    return upgrade == "websocket" and "upgrade" in connection


def _declares_body(headers: Mapping[str, str]) -> bool:
    if headers.get("transfer-encoding"):
        return True
    try:
        return int(headers.get("content-length") or 0) > 0
    except ValueError:
        return False


def classify(
    method: str,
    headers: Mapping[str, Any],
    supported_subprotocols: Sequence[str] = DEFAULT_SUBPROTOCOLS,
) -> Classification:
    """Decide how a request on the GraphQL route must be handled."""
    normalized = normalize_headers(headers)
    method = (method or "").upper()

    if _is_upgrade(normalized):
        offered = _tokens(normalized.get("sec-websocket-protocol", ""))
        subprotocol = negotiate_subprotocol(offered, supported_subprotocols)
        if subprotocol is None:
            return _rejected("Unsupported WebSocket sub-protocol.")
        return Classification(kind=TransportKind.UPGRADE, subprotocol=subprotocol)

    if method in _BODY_METHODS:
        return Classification(kind=TransportKind.SIMPLE_POST)

    # A GET that carries a JSON body is routed like a POST so that it
    # reaches the guard; every other method stops here.
    if (
        method in _BODY_SHAPED_METHODS
        and _declares_body(normalized)
        and media_type(normalized.get("content-type")) in _JSON_CONTENT_TYPES
    ):
        return Classification(kind=TransportKind.SIMPLE_POST)

    return _rejected(f"Method {method or 'UNKNOWN'} is not allowed on this endpoint.")


def classify_request(request, supported_subprotocols: Sequence[str] = DEFAULT_SUBPROTOCOLS) -> Classification:
    """Classify a Django ``HttpRequest``."""
    meta = getattr(request, "META", {}) or {}
    headers = {
        key: value
        for key, value in meta.items()
        if key.startswith("HTTP_") or key in {"CONTENT_TYPE", "CONTENT_LENGTH"}
    }
    return classify(request.method, headers, supported_subprotocols)


def classify_scope(scope: Mapping[str, Any], supported_subprotocols: Sequence[str] = DEFAULT_SUBPROTOCOLS) -> Classification:
    """
    Classify a Channels ASGI scope.

    Protocol servers strip the handshake headers from ``websocket`` scopes
    and expose the offered sub-protocols separately, so they are folded
    back in before classification.
    """
    headers = dict(scope.get("headers") or [])
    if scope.get("type") == "websocket":
        headers[b"upgrade"] = b"websocket"
        headers[b"connection"] = b"Upgrade"
        offered = ", ".join(scope.get("subprotocols") or [])
        headers[b"sec-websocket-protocol"] = offered.encode("latin-1")
        method = "GET"
    else:
        method = scope.get("method", "")
    return classify(method, headers, supported_subprotocols)
