"""
Core settings, error taxonomy and reporting.
"""

from .exceptions import (
    CSRFRejected,
    EngineError,
    GatewayError,
    HandshakeRejected,
    OperationMissing,
    ProtocolViolation,
    TransportClosed,
    TransportRejected,
)
from .settings import GatewaySettings, get_gateway_settings

__all__ = [
    "CSRFRejected",
    "EngineError",
    "GatewayError",
    "HandshakeRejected",
    "OperationMissing",
    "ProtocolViolation",
    "TransportClosed",
    "TransportRejected",
    "GatewaySettings",
    "get_gateway_settings",
]
