"""
Unit tests for transport classification.
"""

import pytest

from rail_gateway.transport.classifier import (
    TransportKind,
    classify,
    classify_scope,
    negotiate_subprotocol,
    normalize_headers,
)

pytestmark = pytest.mark.unit

UPGRADE_HEADERS = {
    "Upgrade": "websocket",
    "Connection": "keep-alive, Upgrade",
    "Sec-WebSocket-Protocol": "graphql-transport-ws",
}


@pytest.mark.parametrize("method", ["GET", "POST", "DELETE", "OPTIONS"])
def test_upgrade_wins_regardless_of_method(method):
    result = classify(method, UPGRADE_HEADERS)

    assert result.kind is TransportKind.UPGRADE
    assert result.subprotocol == "graphql-transport-ws"
    assert result.status is None


def test_upgrade_ignores_origin():
    headers = dict(UPGRADE_HEADERS, Origin="https://evil.example.net")

    assert classify("GET", headers).is_upgrade


def test_upgrade_with_wsgi_style_headers():
    headers = {
        "HTTP_UPGRADE": "WebSocket",
        "HTTP_CONNECTION": "Upgrade",
        "HTTP_SEC_WEBSOCKET_PROTOCOL": "graphql-ws",
    }

    result = classify("GET", headers)

    assert result.is_upgrade
    assert result.subprotocol == "graphql-ws"


def test_upgrade_without_supported_subprotocol_is_rejected():
    headers = dict(UPGRADE_HEADERS, **{"Sec-WebSocket-Protocol": "mqtt"})

    result = classify("GET", headers)

    assert result.kind is TransportKind.REJECTED
    assert result.status == 400


def test_server_preference_decides_between_offered_subprotocols():
    assert negotiate_subprotocol(["graphql-ws", "graphql-transport-ws"]) == "graphql-transport-ws"
    assert negotiate_subprotocol(["graphql-ws"], ["graphql-ws"]) == "graphql-ws"
    assert negotiate_subprotocol([]) is None


def test_post_is_simple_post():
    result = classify("POST", {"Content-Type": "application/x-www-form-urlencoded"})

    # Content type is the guard's business, not the classifier's.
    assert result.kind is TransportKind.SIMPLE_POST


@pytest.mark.parametrize("method", ["GET", "DELETE", "OPTIONS", "PUT", "PATCH", "HEAD"])
def test_other_methods_without_upgrade_are_rejected(method):
    result = classify(method, {})

    assert result.is_rejected
    assert result.status == 400


def test_get_with_json_body_is_routed_like_a_post():
    headers = {"CONTENT_TYPE": "application/json", "CONTENT_LENGTH": "27"}

    assert classify("GET", headers).kind is TransportKind.SIMPLE_POST


def test_delete_with_json_body_is_still_rejected():
    headers = {"CONTENT_TYPE": "application/json", "CONTENT_LENGTH": "27"}

    assert classify("DELETE", headers).is_rejected


def test_get_with_form_body_is_rejected():
    headers = {"CONTENT_TYPE": "application/x-www-form-urlencoded", "CONTENT_LENGTH": "9"}

    assert classify("GET", headers).is_rejected


def test_upgrade_header_without_connection_token_is_not_an_upgrade():
    headers = {"Upgrade": "websocket", "Connection": "keep-alive"}

    assert classify("POST", headers).kind is TransportKind.SIMPLE_POST


def test_normalize_headers_handles_bytes_and_meta_keys():
    normalized = normalize_headers(
        {b"sec-websocket-protocol": b"graphql-ws", "CONTENT_TYPE": "application/json"}
    )

    assert normalized == {
        "sec-websocket-protocol": "graphql-ws",
        "content-type": "application/json",
    }


def test_classify_scope_for_websocket():
    scope = {
        "type": "websocket",
        "headers": [(b"origin", b"https://elsewhere.example.org")],
        "subprotocols": ["graphql-ws"],
    }

    result = classify_scope(scope)

    assert result.is_upgrade
    assert result.subprotocol == "graphql-ws"


def test_classify_scope_for_websocket_without_subprotocol():
    scope = {"type": "websocket", "headers": [], "subprotocols": []}

    assert classify_scope(scope).is_rejected


def test_classify_scope_for_http():
    scope = {"type": "http", "method": "DELETE", "headers": []}

    assert classify_scope(scope).is_rejected
