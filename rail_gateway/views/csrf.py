"""
CSRF bootstrap endpoint.

Browser clients fetch a token here before talking to the gateway, then
present it in a header on simple requests or inside the
``connection_init`` payload of a WebSocket session.
"""

from django.conf import settings
from django.http import JsonResponse
from django.middleware.csrf import get_token
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_http_methods

from ..security.csrf import PAYLOAD_TOKEN_KEYS


def _header_name() -> str:
    """Turn ``HTTP_X_CSRFTOKEN`` back into ``X-Csrftoken``."""
    name = settings.CSRF_HEADER_NAME
    if name.startswith("HTTP_"):
        name = name[5:]
    return "-".join(part.capitalize() for part in name.split("_"))


@ensure_csrf_cookie
@require_http_methods(["GET"])
def csrf_token_view(request):
    """Issue a token and tell the client where each transport expects it."""
    token = get_token(request)
    response = JsonResponse(
        {
            "csrfToken": token,
            "headerName": _header_name(),
            "connectionInitKey": PAYLOAD_TOKEN_KEYS[0],
        }
    )
    response["X-CSRFToken"] = token
    return response
