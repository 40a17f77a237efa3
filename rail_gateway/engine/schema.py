"""
Schema lookup for the gateway.
"""

import logging
from typing import Any, Optional

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from ..core.settings import GatewaySettings, get_gateway_settings

logger = logging.getLogger(__name__)


def get_schema(settings: Optional[GatewaySettings] = None) -> Any:
    """
    Return the graphene schema served by the gateway.

    ``RAIL_GATEWAY["SCHEMA"]`` wins; otherwise graphene-django's
    ``GRAPHENE["SCHEMA"]`` is used.
    """
    settings = settings or get_gateway_settings()
    if settings.schema:
        schema = settings.schema
        if isinstance(schema, str):
            schema = import_string(schema)
        return schema

    from graphene_django.settings import graphene_settings

    schema = graphene_settings.SCHEMA
    if schema is None:
        raise ImproperlyConfigured(
            "No GraphQL schema configured. Set RAIL_GATEWAY['SCHEMA'] or GRAPHENE['SCHEMA']."
        )
    return schema
