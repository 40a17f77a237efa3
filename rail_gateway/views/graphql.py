"""
GatewayView: the HTTP half of the GraphQL route.
"""

import logging
from typing import Any, Optional

from django.http import HttpRequest, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from ..core.exceptions import GatewayError, TransportRejected
from ..core.reporting import report_exception
from ..core.settings import GatewaySettings, get_gateway_settings
from ..engine.adapter import QueryEngineAdapter
from ..engine.schema import get_schema
from ..security.csrf import CSRFValidator
from ..transport.classifier import classify_request
from ..transport.guard import SimpleRequestGuard, ensure_operation_allowed

logger = logging.getLogger(__name__)


@method_decorator(csrf_exempt, name="dispatch")
class GatewayView(View):
    """
    Serve queries and mutations over plain HTTP.

    Django's CSRF middleware is bypassed on purpose: the gateway applies
    its own content-type rules and, when enabled, its own token check
    through ``SimpleRequestGuard``.
    """

    schema: Any = None
    gateway_settings: Optional[GatewaySettings] = None
    csrf_validator: Optional[CSRFValidator] = None

    def get_gateway_settings(self) -> GatewaySettings:
        return self.gateway_settings or get_gateway_settings()

    def get_adapter(self, settings: GatewaySettings) -> QueryEngineAdapter:
        return QueryEngineAdapter(self.schema or get_schema(settings), settings=settings)

    def get_context(self, request: HttpRequest) -> Any:
        return request

    def dispatch(self, request: HttpRequest, *args, **kwargs):
        settings = self.get_gateway_settings()
        classification = classify_request(request, settings.subprotocols)
        if classification.is_rejected:
            logger.info("Rejected %s request: %s", request.method, classification.reason)
            return self._error_response(TransportRejected(classification.reason))
        if classification.is_upgrade:
            return self._error_response(
                TransportRejected("WebSocket upgrades are served by the ASGI websocket route.")
            )

        try:
            operation = SimpleRequestGuard(settings, self.csrf_validator).check(request)
            adapter = self.get_adapter(settings)
            ensure_operation_allowed(request, adapter.operation_type(operation))
            result = adapter.execute_sync(operation, self.get_context(request))
        except GatewayError as error:
            logger.info("Rejected %s request: %s", request.method, error.message)
            return self._error_response(error)
        except Exception as exc:
            logger.exception("Error handling GraphQL request: %s", exc)
            report_exception(exc, transport="http", settings=settings)
            return JsonResponse({"errors": [{"message": "Internal server error."}]}, status=500)

        status = 400 if result.is_request_error else 200
        return JsonResponse(result.formatted(), status=status)

    def _error_response(self, error: GatewayError) -> JsonResponse:
        return JsonResponse(error.as_payload(), status=error.status_code)
