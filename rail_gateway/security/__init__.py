"""
CSRF validation for the gateway.
"""

from .csrf import (
    CSRFContext,
    CSRFDecision,
    CSRFValidator,
    DjangoCSRFValidator,
    check_csrf,
    get_csrf_validator,
)

__all__ = [
    "CSRFContext",
    "CSRFDecision",
    "CSRFValidator",
    "DjangoCSRFValidator",
    "check_csrf",
    "get_csrf_validator",
]
