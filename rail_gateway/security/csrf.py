"""
CSRF token validation shared by both transports.

Simple HTTP requests present the token in a header; WebSocket clients
present it in the ``connection_init`` payload because browsers cannot set
custom headers on an upgrade request. Both paths build a ``CSRFContext``
and ask the same validator.

The validator is only consulted when ``csrf_protection`` is enabled.
``check_csrf`` returns ``CSRFDecision.NOT_APPLICABLE`` without building or
calling it otherwise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from importlib import import_module
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from django.conf import settings as django_settings
from django.http import HttpRequest
from django.middleware.csrf import CsrfViewMiddleware
from django.utils.module_loading import import_string

from ..core.settings import GatewaySettings

logger = logging.getLogger(__name__)

# Keys accepted in a connection_init payload, in lookup order.
PAYLOAD_TOKEN_KEYS = ("csrfToken", "csrf_token", "csrftoken", "X-CSRFToken")


class CSRFDecision(str, Enum):
    VALID = "valid"
    INVALID = "invalid"
    NOT_APPLICABLE = "not_applicable"


@dataclass(frozen=True)
class CSRFContext:
    """Everything a validator may look at for one check."""

    token: Optional[str]
    cookies: Mapping[str, str] = field(default_factory=dict)
    source: str = "header"
    session: Any = None


@runtime_checkable
class CSRFValidator(Protocol):
    def validate(self, context: CSRFContext) -> bool: ...


def _csrf_probe_view(request):
    return None


class DjangoCSRFValidator:
    """
    Validate tokens with Django's own CSRF machinery.

    The presented token is replayed through ``CsrfViewMiddleware`` on a
    synthetic POST request, so masked tokens, cookie secrets and
    ``CSRF_USE_SESSIONS`` all behave exactly as they do for Django views.
    No ``Origin`` or ``Referer`` is forwarded: origin policy belongs to the
    transport, not to the token check.
    """

    def __init__(self, session_store_class: Any = None):
        self._session_store_class = session_store_class

    @property
    def session_store_class(self):
        if self._session_store_class is None:
            engine = import_module(django_settings.SESSION_ENGINE)
            self._session_store_class = engine.SessionStore
        return self._session_store_class

    def _load_session(self, context: CSRFContext):
        if context.session is not None:
            return context.session
        session_key = context.cookies.get(django_settings.SESSION_COOKIE_NAME)
        return self.session_store_class(session_key)

    def _build_request(self, context: CSRFContext) -> HttpRequest:
        request = HttpRequest()
        request.method = "POST"
        request.COOKIES = dict(context.cookies)
        request.META[django_settings.CSRF_HEADER_NAME] = context.token
        if django_settings.CSRF_USE_SESSIONS:
            request.session = self._load_session(context)
        return request

    def validate(self, context: CSRFContext) -> bool:
        if not context.token:
            return False
        request = self._build_request(context)
        middleware = CsrfViewMiddleware(_csrf_probe_view)
        response = middleware.process_view(request, _csrf_probe_view, (), {})
        return response is None


def get_csrf_validator(settings: GatewaySettings) -> CSRFValidator:
    """Instantiate the validator class named in settings."""
    validator = settings.csrf_validator
    if isinstance(validator, str):
        validator = import_string(validator)
    if isinstance(validator, type):
        validator = validator()
    return validator


def token_from_payload(payload: Any) -> Optional[str]:
    """Extract a CSRF token from a ``connection_init`` payload."""
    if not isinstance(payload, Mapping):
        return None
    for key in PAYLOAD_TOKEN_KEYS:
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    headers = payload.get("headers")
    if isinstance(headers, Mapping):
        for key, value in headers.items():
            if str(key).lower() in {"x-csrftoken", "x-csrf-token"} and isinstance(value, str):
                return value
    return None


def token_from_meta(meta: Mapping[str, Any]) -> Optional[str]:
    """Extract the CSRF token from a WSGI ``META`` mapping."""
    return meta.get(django_settings.CSRF_HEADER_NAME) or None


def check_csrf(
    settings: GatewaySettings,
    context_factory,
    validator: Optional[CSRFValidator] = None,
) -> CSRFDecision:
    """
    Run one CSRF check.

    ``context_factory`` is only called when protection is enabled so a
    disabled deployment never pays for building the context either.
    """
    if not settings.csrf_protection:
        return CSRFDecision.NOT_APPLICABLE
    validator = validator or get_csrf_validator(settings)
    context = context_factory()
    if validator.validate(context):
        return CSRFDecision.VALID
    logger.warning("CSRF validation failed for %s-derived token", context.source)
    return CSRFDecision.INVALID
