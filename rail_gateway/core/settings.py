"""
GatewaySettings implementation.

Settings are resolved in three layers, later ones taking precedence:
library defaults, environment defaults (``settings.ENVIRONMENT``) and the
project's ``RAIL_GATEWAY`` dictionary.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from django.conf import settings as django_settings

from ..defaults import LIBRARY_DEFAULTS, get_environment_defaults, merge_settings

SETTINGS_SECTION = "gateway_settings"


def _get_library_defaults() -> dict[str, Any]:
    """Get library defaults merged with the active environment overrides."""
    env = getattr(django_settings, "ENVIRONMENT", None)
    if not env:
        env = "development" if getattr(django_settings, "DEBUG", False) else "production"
    merged = merge_settings(LIBRARY_DEFAULTS, get_environment_defaults(env))
    return merged.get(SETTINGS_SECTION, {})


def _get_project_settings() -> dict[str, Any]:
    """Read ``RAIL_GATEWAY`` from Django settings, accepting upper-case keys."""
    raw = getattr(django_settings, "RAIL_GATEWAY", None) or {}
    if SETTINGS_SECTION in raw:
        raw = raw[SETTINGS_SECTION] or {}
    return {str(key).lower(): value for key, value in raw.items()}


@dataclass
class GatewaySettings:
    """Runtime configuration consumed by the HTTP view and the WebSocket consumer."""

    csrf_protection: bool = False
    csrf_validator: str = "rail_gateway.security.csrf.DjangoCSRFValidator"
    allowed_content_types: List[str] = field(
        default_factory=lambda: ["application/json", "application/graphql+json"]
    )
    subprotocols: List[str] = field(
        default_factory=lambda: ["graphql-transport-ws", "graphql-ws"]
    )
    connection_init_timeout: float = 10.0
    idle_timeout: float = 300.0
    keepalive_interval: float = 0
    schema: Optional[str] = None
    report_engine_errors: bool = True

    def __post_init__(self):
        self.allowed_content_types = [
            value.strip().lower() for value in self.allowed_content_types if value
        ]
        self.subprotocols = [value.strip() for value in self.subprotocols if value]

    @classmethod
    def from_django(cls, **overrides: Any) -> "GatewaySettings":
        merged = merge_settings(_get_library_defaults(), _get_project_settings(), overrides)
        valid_fields = set(cls.__dataclass_fields__.keys())
        return cls(**{k: v for k, v in merged.items() if k in valid_fields})


def get_gateway_settings() -> GatewaySettings:
    """Build settings from the current Django configuration.

    Not cached, so ``override_settings`` in tests takes effect immediately.
    """
    return GatewaySettings.from_django()
