"""
Default configuration for the rail-gateway library.

This module is the single source of truth for every setting the gateway
consumes. Projects override individual keys through the ``RAIL_GATEWAY``
dictionary in their Django settings; anything they leave out falls back
to the values below.
"""

from __future__ import annotations

import copy
from typing import Any

LIBRARY_VERSION = "0.1.0"
LIBRARY_NAME = "rail-gateway"


# --------------------------------------------------------------------------- #
# Library-wide defaults
# --------------------------------------------------------------------------- #
LIBRARY_DEFAULTS: dict[str, Any] = {
    "gateway_settings": {
        # Token validation for both transports. When False the validator is
        # never built nor called.
        "csrf_protection": False,
        "csrf_validator": "rail_gateway.security.csrf.DjangoCSRFValidator",
        # Content types a simple POST may carry. Anything a plain HTML form
        # can produce must stay out of this list.
        "allowed_content_types": [
            "application/json",
            "application/graphql+json",
        ],
        # Server preference order.
        "subprotocols": ["graphql-transport-ws", "graphql-ws"],
        # Seconds a socket may stay open without sending connection_init.
        "connection_init_timeout": 10.0,
        # Seconds an acknowledged session may go without an inbound frame;
        # 0 disables. Sessions running operations count as busy unless the
        # server is pinging (graphql-transport-ws with keepalive_interval).
        "idle_timeout": 300.0,
        # Seconds between keep-alive frames after ack ("ka" on graphql-ws,
        # "ping" on graphql-transport-ws); 0 disables.
        "keepalive_interval": 0,
        # Dotted path to a graphene schema; falls back to GRAPHENE["SCHEMA"].
        "schema": None,
        "report_engine_errors": True,
    },
}


# Environment-specific overrides applied on top of LIBRARY_DEFAULTS.
ENVIRONMENT_DEFAULTS: dict[str, dict[str, Any]] = {
    "development": {
        "gateway_settings": {
            "report_engine_errors": False,
        },
    },
    "testing": {
        "gateway_settings": {
            "report_engine_errors": False,
            "connection_init_timeout": 2.0,
        },
    },
    "production": {
        "gateway_settings": {
            "csrf_protection": True,
        },
    },
}


def get_environment_defaults(environment: str) -> dict[str, Any]:
    """Return the overrides registered for an environment name."""
    return copy.deepcopy(ENVIRONMENT_DEFAULTS.get(environment, {}))


def merge_settings(*settings_dicts: dict[str, Any]) -> dict[str, Any]:
    """
    Merge multiple settings dictionaries with deep merging for nested dicts.
    Later dictionaries override earlier ones.
    """
    result: dict[str, Any] = {}
    for settings_dict in settings_dicts:
        for key, value in (settings_dict or {}).items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = merge_settings(result[key], value)
            else:
                result[key] = copy.deepcopy(value)
    return result
