"""
Transport classification and the simple-request guard.
"""

from .classifier import Classification, TransportKind, classify, classify_request, classify_scope
from .guard import SimpleRequestGuard

__all__ = [
    "Classification",
    "TransportKind",
    "classify",
    "classify_request",
    "classify_scope",
    "SimpleRequestGuard",
]
