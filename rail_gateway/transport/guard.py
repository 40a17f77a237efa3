"""
Simple-request guard.

Browsers can submit form-encoded or ``text/plain`` bodies cross-site
without a CORS preflight. Accepting only machine-readable content types
forces a preflight for every cross-origin call, which is what protects
this transport. Token validation is layered on top when enabled.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from django.http import HttpRequest
from django.http.request import RawPostDataException
from graphql import OperationType

from ..core.exceptions import CSRFRejected, TransportRejected
from ..core.settings import GatewaySettings
from ..engine.operation import Operation
from ..security.csrf import CSRFContext, CSRFDecision, CSRFValidator, check_csrf, token_from_meta
from .classifier import media_type

logger = logging.getLogger(__name__)

_GUARDED_METHODS = {"POST", "GET"}


class SimpleRequestGuard:
    """Turn a SimplePost-classified request into an ``Operation`` or raise."""

    def __init__(self, settings: GatewaySettings, validator: Optional[CSRFValidator] = None):
        self.settings = settings
        self.validator = validator

    def check(self, request: HttpRequest) -> Operation:
        if request.method not in _GUARDED_METHODS:
            raise TransportRejected(f"Method {request.method} cannot carry an operation.")
        self._check_content_type(request)
        self._check_csrf(request)
        return Operation.from_payload(self._parse_body(request))

    def _check_content_type(self, request: HttpRequest) -> None:
        content_type = media_type(request.META.get("CONTENT_TYPE"))
        if not content_type:
            raise TransportRejected("Missing Content-Type header.")
        if content_type not in self.settings.allowed_content_types:
            logger.info("Rejected simple request with content type %s", content_type)
            raise TransportRejected(
                f"Content-Type {content_type} is not allowed; send one of "
                f"{', '.join(self.settings.allowed_content_types)}."
            )

    def _check_csrf(self, request: HttpRequest) -> None:
        decision = check_csrf(
            self.settings,
            lambda: CSRFContext(
                token=token_from_meta(request.META),
                cookies=dict(request.COOKIES),
                source="header",
                session=getattr(request, "session", None),
            ),
            validator=self.validator,
        )
        if decision is CSRFDecision.INVALID:
            raise CSRFRejected("CSRF token missing or incorrect.")

    def _parse_body(self, request: HttpRequest):
        try:
            raw_body = request.body
        except RawPostDataException:
            raise TransportRejected("Request body is unavailable.")
        if not raw_body:
            raise TransportRejected("Request body is empty.")
        try:
            payload = json.loads(raw_body.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            raise TransportRejected("POST body sent invalid JSON.")
        if isinstance(payload, list):
            raise TransportRejected("Batched operations are not supported.")
        if not isinstance(payload, dict):
            raise TransportRejected("The received data is not a valid JSON query.")
        return payload


def ensure_operation_allowed(request: HttpRequest, operation_type: Optional[OperationType]) -> None:
    """Reject operation types the HTTP transport cannot serve."""
    if operation_type is OperationType.SUBSCRIPTION:
        raise TransportRejected("Subscriptions require a WebSocket connection.")
    if operation_type is OperationType.MUTATION and request.method != "POST":
        raise TransportRejected("Can only perform a mutation operation from a POST request.")
