"""
GraphQL subscriptions over WebSocket.
"""

from .consumer import GatewayConsumer
from .state import SessionEvent, SessionState, SessionStateMachine

__all__ = [
    "GatewayConsumer",
    "SessionEvent",
    "SessionState",
    "SessionStateMachine",
]
