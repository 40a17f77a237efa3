"""
HTTP views for the gateway.
"""

from .csrf import csrf_token_view
from .graphql import GatewayView

__all__ = ["GatewayView", "csrf_token_view"]
