"""
URL configuration for the gateway.

- ``graphql/``: queries and mutations over HTTP
- ``csrf/``: CSRF token bootstrap

WebSocket routes live in ``rail_gateway.routing``.
"""

from django.urls import path

from .views import GatewayView, csrf_token_view

urlpatterns = [
    path("graphql/", GatewayView.as_view(), name="graphql"),
    path("csrf/", csrf_token_view, name="csrf_token"),
]
