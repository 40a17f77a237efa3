"""
WebSocket URL patterns for Channels.
"""

from django.urls import path

from .subscriptions import GatewayConsumer

websocket_urlpatterns = [
    path("graphql/", GatewayConsumer.as_asgi(), name="graphql-ws"),
]
