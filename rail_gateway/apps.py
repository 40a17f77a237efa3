"""
Django app configuration for rail-gateway.
"""

import logging

from django.apps import AppConfig as BaseAppConfig
from django.core.exceptions import ImproperlyConfigured

logger = logging.getLogger(__name__)


class AppConfig(BaseAppConfig):
    """Django app configuration for rail-gateway."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "rail_gateway"
    verbose_name = "Rail GraphQL Gateway"
    label = "rail_gateway"

    def ready(self):
        """Validate gateway settings once Django has loaded."""
        from . import signals  # noqa: F401
        from .core.settings import get_gateway_settings
        from .subscriptions.protocol import VOCABULARIES

        settings = get_gateway_settings()
        unknown = [name for name in settings.subprotocols if name not in VOCABULARIES]
        if unknown:
            raise ImproperlyConfigured(
                f"Unsupported WebSocket sub-protocols in RAIL_GATEWAY: {', '.join(unknown)}"
            )
        if not settings.allowed_content_types:
            raise ImproperlyConfigured("RAIL_GATEWAY['ALLOWED_CONTENT_TYPES'] cannot be empty.")
        for form_type in ("application/x-www-form-urlencoded", "multipart/form-data", "text/plain"):
            if form_type in settings.allowed_content_types:
                logger.warning(
                    "%s is allowed for simple requests; browsers can send it cross-site without a preflight.",
                    form_type,
                )
        logger.debug(
            "rail-gateway ready (csrf_protection=%s, subprotocols=%s)",
            settings.csrf_protection,
            settings.subprotocols,
        )
