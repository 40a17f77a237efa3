"""
WebSocket session state machine.

States and the events that move between them live in one explicit table;
the consumer asks the machine before acting instead of branching on flags.
"""

from __future__ import annotations

import logging
from enum import Enum

from ..core.exceptions import ProtocolViolation

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    CONNECTING = "connecting"
    HANDSHAKING = "handshaking"
    ACKNOWLEDGED = "acknowledged"
    CLOSING = "closing"
    ERRORED = "errored"
    CLOSED = "closed"


class SessionEvent(str, Enum):
    UPGRADED = "upgraded"
    INIT_ACCEPTED = "init_accepted"
    INIT_REJECTED = "init_rejected"
    SUBSCRIPTION_STARTED = "subscription_started"
    SUBSCRIPTION_STOPPED = "subscription_stopped"
    PROTOCOL_ERROR = "protocol_error"
    CLOSE_REQUESTED = "close_requested"
    TIMED_OUT = "timed_out"
    SOCKET_CLOSED = "socket_closed"


S = SessionState
E = SessionEvent

TRANSITIONS: dict[tuple[SessionState, SessionEvent], SessionState] = {
    (S.CONNECTING, E.UPGRADED): S.HANDSHAKING,
    (S.HANDSHAKING, E.INIT_ACCEPTED): S.ACKNOWLEDGED,
    (S.HANDSHAKING, E.INIT_REJECTED): S.ERRORED,
    (S.HANDSHAKING, E.PROTOCOL_ERROR): S.ERRORED,
    (S.HANDSHAKING, E.CLOSE_REQUESTED): S.CLOSING,
    (S.ACKNOWLEDGED, E.SUBSCRIPTION_STARTED): S.ACKNOWLEDGED,
    (S.ACKNOWLEDGED, E.SUBSCRIPTION_STOPPED): S.ACKNOWLEDGED,
    (S.ACKNOWLEDGED, E.PROTOCOL_ERROR): S.ERRORED,
    (S.ACKNOWLEDGED, E.CLOSE_REQUESTED): S.CLOSING,
    (S.ERRORED, E.CLOSE_REQUESTED): S.ERRORED,
}

# Any live state closes on peer disconnect or timeout.
for _state in (S.CONNECTING, S.HANDSHAKING, S.ACKNOWLEDGED, S.CLOSING, S.ERRORED):
    TRANSITIONS[(_state, E.SOCKET_CLOSED)] = S.CLOSED
    TRANSITIONS[(_state, E.TIMED_OUT)] = S.CLOSED
TRANSITIONS[(S.CLOSED, E.SOCKET_CLOSED)] = S.CLOSED

del _state, S, E


class SessionStateMachine:
    """Current state of one WebSocket session."""

    def __init__(self, state: SessionState = SessionState.CONNECTING):
        self.state = state

    def can_apply(self, event: SessionEvent) -> bool:
        return (self.state, event) in TRANSITIONS

    def apply(self, event: SessionEvent) -> SessionState:
        try:
            target = TRANSITIONS[(self.state, event)]
        except KeyError:
            raise ProtocolViolation(
                f"Event {event.value} is not allowed while {self.state.value}."
            )
        if target is not self.state:
            logger.debug("Session %s -> %s on %s", self.state.value, target.value, event.value)
        self.state = target
        return target

    @property
    def is_acknowledged(self) -> bool:
        return self.state is SessionState.ACKNOWLEDGED

    @property
    def accepts_frames(self) -> bool:
        return self.state in (SessionState.HANDSHAKING, SessionState.ACKNOWLEDGED)
