"""
rail-gateway: one GraphQL route served over HTTP and WebSocket.
"""

from .defaults import LIBRARY_VERSION as __version__

default_app_config = "rail_gateway.apps.AppConfig"
