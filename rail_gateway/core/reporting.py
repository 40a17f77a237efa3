"""
Error reporting hooks.

Unexpected failures are logged and, when enabled, forwarded to Sentry.
``sentry_sdk.capture_exception`` is a no-op until the project calls
``sentry_sdk.init``.
"""

import logging
from typing import Optional

import sentry_sdk

from .settings import GatewaySettings, get_gateway_settings

logger = logging.getLogger(__name__)


def report_exception(
    error: BaseException,
    *,
    transport: str,
    operation_name: Optional[str] = None,
    settings: Optional[GatewaySettings] = None,
) -> None:
    """Send an unexpected exception to Sentry, tagged with its transport."""
    settings = settings or get_gateway_settings()
    if not settings.report_engine_errors:
        return
    try:
        with sentry_sdk.new_scope() as scope:
            scope.set_tag("gateway.transport", transport)
            if operation_name:
                scope.set_tag("graphql.operation_name", operation_name)
            sentry_sdk.capture_exception(error)
    except Exception as exc:
        logger.debug("Failed to report exception to Sentry: %s", exc)
