"""
Deterministic stand-ins for collaborators the gateway consumes.
"""

from rail_gateway.security.csrf import CSRFContext

GOOD_TOKEN = "good-token"


class FakeCSRFValidator:
    """Accepts a fixed set of tokens and records every context it saw."""

    valid_tokens = {GOOD_TOKEN}

    def __init__(self, valid_tokens=None):
        if valid_tokens is not None:
            self.valid_tokens = set(valid_tokens)
        self.calls: list[CSRFContext] = []

    def validate(self, context: CSRFContext) -> bool:
        self.calls.append(context)
        return context.token in self.valid_tokens


class ExplodingCSRFValidator:
    """Fails loudly if anything calls it."""

    def validate(self, context: CSRFContext) -> bool:
        raise AssertionError("CSRF validator must not be called when protection is disabled")


class UnreachableCSRFValidator:
    """Stands in for a validator whose backing store is down."""

    def validate(self, context: CSRFContext) -> bool:
        raise ConnectionError("session store unreachable")
