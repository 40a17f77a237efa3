"""
Signal handlers for the gateway.

django-cors-headers only processes requests that match ``CORS_URLS_REGEX``
or that a ``check_request_enabled`` handler opts in. The project settings
set the regex to match nothing, so a preflight from an origin outside the
allow-list is not answered by the middleware and reaches the view, which
rejects it.
"""

import logging
import re

from corsheaders.conf import conf as cors_conf
from corsheaders.signals import check_request_enabled
from django.dispatch import receiver

logger = logging.getLogger(__name__)


def origin_is_allowed(origin: str) -> bool:
    if not origin:
        return False
    if cors_conf.CORS_ALLOW_ALL_ORIGINS:
        return True
    if origin in cors_conf.CORS_ALLOWED_ORIGINS:
        return True
    return any(re.match(pattern, origin) for pattern in cors_conf.CORS_ALLOWED_ORIGIN_REGEXES)


@receiver(check_request_enabled)
def enable_cors_for_allowed_origins(sender, request, **kwargs):
    """Let the CORS middleware handle requests from allow-listed origins only."""
    origin = request.headers.get("origin", "")
    allowed = origin_is_allowed(origin)
    if origin and not allowed:
        logger.debug("CORS not enabled for origin %s", origin)
    return allowed
