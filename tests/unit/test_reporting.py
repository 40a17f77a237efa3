"""
Unit tests for Sentry error reporting.
"""

from unittest.mock import patch

import pytest

from rail_gateway.core.reporting import report_exception
from rail_gateway.core.settings import GatewaySettings

pytestmark = pytest.mark.unit


def test_report_exception_captures_when_enabled():
    error = RuntimeError("engine down")

    with patch("rail_gateway.core.reporting.sentry_sdk.capture_exception") as capture:
        report_exception(
            error,
            transport="websocket",
            operation_name="Ticker",
            settings=GatewaySettings(report_engine_errors=True),
        )

    capture.assert_called_once_with(error)


def test_report_exception_respects_disabled_setting():
    with patch("rail_gateway.core.reporting.sentry_sdk.capture_exception") as capture:
        report_exception(
            RuntimeError("quiet"),
            transport="http",
            settings=GatewaySettings(report_engine_errors=False),
        )

    capture.assert_not_called()


def test_test_environment_does_not_report_by_default():
    with patch("rail_gateway.core.reporting.sentry_sdk.capture_exception") as capture:
        report_exception(RuntimeError("quiet"), transport="http")

    capture.assert_not_called()
