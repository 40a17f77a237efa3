"""
ASGI application serving both halves of the GraphQL route.

Usage in a project's ``asgi.py``::

    import os

    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "myproject.settings")

    from rail_gateway.asgi import get_gateway_application

    application = get_gateway_application()
"""

from typing import Any, Optional


def get_gateway_application(http_application: Optional[Any] = None):
    """
    Build a ``ProtocolTypeRouter`` for HTTP and WebSocket traffic.

    The WebSocket stack deliberately has no ``AllowedHostsOriginValidator``:
    cross-origin upgrades are accepted and the handshake's CSRF check
    decides whether the session may run operations.
    """
    from django.core.asgi import get_asgi_application

    if http_application is None:
        http_application = get_asgi_application()

    from channels.auth import AuthMiddlewareStack
    from channels.routing import ProtocolTypeRouter, URLRouter

    from .routing import websocket_urlpatterns

    return ProtocolTypeRouter(
        {
            "http": http_application,
            "websocket": AuthMiddlewareStack(URLRouter(websocket_urlpatterns)),
        }
    )
