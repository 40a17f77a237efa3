"""
Error taxonomy for the transport gateway.

Transport-level errors (rejections, CSRF failures, protocol violations)
never reach the query engine. Engine-level errors travel inside a
``Result`` and never tear down a healthy connection.
"""

from typing import Any, Optional


class GatewayError(Exception):
    """Base exception for gateway errors."""

    status_code: int = 400
    code: str = "gateway_error"

    def __init__(self, message: str, *, code: Optional[str] = None):
        self.message = message
        if code:
            self.code = code
        super().__init__(message)

    def as_payload(self) -> dict[str, Any]:
        return {
            "errors": [
                {
                    "message": self.message,
                    "extensions": {"code": self.code},
                }
            ]
        }


class TransportRejected(GatewayError):
    """Raised for a wrong method, content type or unreadable body."""

    status_code = 400
    code = "bad_request"


class CSRFRejected(GatewayError):
    """Raised when a simple request fails token validation."""

    status_code = 403
    code = "csrf_failed"


class OperationMissing(GatewayError):
    """Raised when a well-formed body names no operation."""

    status_code = 422
    code = "operation_missing"

    def __init__(self, message: str = "no operation provided", **kwargs):
        super().__init__(message, **kwargs)


class ProtocolViolation(GatewayError):
    """Raised on a malformed or out-of-sequence WebSocket frame.

    ``close_code`` is the WebSocket close code sent to the client.
    ``operation_id`` is set when the frame can be attributed to a
    subscription; the session reports those without closing.
    """

    code = "protocol_violation"

    def __init__(
        self,
        message: str,
        *,
        close_code: int = 4400,
        operation_id: Optional[str] = None,
        **kwargs,
    ):
        self.close_code = close_code
        self.operation_id = operation_id
        super().__init__(message, **kwargs)


class HandshakeRejected(ProtocolViolation):
    """Raised when ``connection_init`` fails CSRF validation."""

    code = "handshake_rejected"

    def __init__(self, message: str = "Forbidden", **kwargs):
        kwargs.setdefault("close_code", 4403)
        super().__init__(message, **kwargs)


class EngineError(GatewayError):
    """Raised by the query engine; surfaced in a result's error slot."""

    code = "engine_error"

    def __init__(self, message: str, *, original: Optional[BaseException] = None, **kwargs):
        self.original = original
        super().__init__(message, **kwargs)


class TransportClosed(GatewayError):
    """Raised when the peer went away. Cleaned up silently."""

    code = "transport_closed"
