"""
Unit tests for gateway settings resolution.
"""

import importlib
import re

import pytest
from django.test import override_settings

import rail_gateway.conf.framework_settings as framework_settings
from rail_gateway.core.settings import GatewaySettings, get_gateway_settings
from rail_gateway.defaults import LIBRARY_DEFAULTS, merge_settings

pytestmark = pytest.mark.unit


def test_test_settings_are_applied():
    settings = get_gateway_settings()

    assert settings.csrf_protection is False
    assert settings.schema == "tests.schema.schema"
    assert settings.connection_init_timeout == 2.0
    assert settings.report_engine_errors is False
    assert settings.subprotocols == ["graphql-transport-ws", "graphql-ws"]


def test_production_environment_enables_csrf():
    with override_settings(ENVIRONMENT="production", RAIL_GATEWAY={}):
        settings = get_gateway_settings()

    assert settings.csrf_protection is True
    assert settings.report_engine_errors is True


def test_nested_and_upper_case_keys_are_accepted():
    with override_settings(
        RAIL_GATEWAY={"gateway_settings": {"CSRF_PROTECTION": True, "KEEPALIVE_INTERVAL": 5}}
    ):
        settings = get_gateway_settings()

    assert settings.csrf_protection is True
    assert settings.keepalive_interval == 5


def test_overrides_win_and_unknown_keys_are_ignored():
    settings = GatewaySettings.from_django(csrf_protection=True, not_a_setting=1)

    assert settings.csrf_protection is True
    assert not hasattr(settings, "not_a_setting")


def test_content_types_are_normalised():
    settings = GatewaySettings(allowed_content_types=[" Application/JSON ", ""])

    assert settings.allowed_content_types == ["application/json"]


def test_merge_settings_is_deep_and_does_not_mutate():
    base = {"gateway_settings": {"csrf_protection": False, "subprotocols": ["graphql-ws"]}}
    merged = merge_settings(base, {"gateway_settings": {"csrf_protection": True}})

    assert merged["gateway_settings"] == {
        "csrf_protection": True,
        "subprotocols": ["graphql-ws"],
    }
    assert base["gateway_settings"]["csrf_protection"] is False


def _reload_framework_settings(monkeypatch, env):
    for key in (
        "RAIL_GATEWAY_CSRF_PROTECTION",
        "RAIL_GATEWAY_ALLOWED_CONTENT_TYPES",
        "RAIL_GATEWAY_INIT_TIMEOUT",
        "RAIL_GATEWAY_KEEPALIVE_INTERVAL",
        "RAIL_GATEWAY_IDLE_TIMEOUT",
        "CORS_ALLOWED_ORIGINS",
    ):
        monkeypatch.delenv(key, raising=False)
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return importlib.reload(framework_settings)


def test_framework_settings_read_gateway_env(monkeypatch):
    module = _reload_framework_settings(
        monkeypatch,
        {
            "RAIL_GATEWAY_CSRF_PROTECTION": "true",
            "RAIL_GATEWAY_ALLOWED_CONTENT_TYPES": "application/json, ,",
            "RAIL_GATEWAY_INIT_TIMEOUT": "3.5",
            "RAIL_GATEWAY_IDLE_TIMEOUT": "60",
        },
    )
    gateway = module.RAIL_GATEWAY["gateway_settings"]

    assert gateway["csrf_protection"] is True
    assert gateway["allowed_content_types"] == ["application/json"]
    assert gateway["connection_init_timeout"] == 3.5
    assert gateway["idle_timeout"] == 60.0


def test_invalid_init_timeout_env_does_not_override(monkeypatch):
    module = _reload_framework_settings(monkeypatch, {"RAIL_GATEWAY_INIT_TIMEOUT": "soon"})

    assert "connection_init_timeout" not in module.RAIL_GATEWAY["gateway_settings"]
    assert LIBRARY_DEFAULTS["gateway_settings"]["connection_init_timeout"] == 10.0


def test_cors_origins_trimmed(monkeypatch):
    module = _reload_framework_settings(
        monkeypatch, {"CORS_ALLOWED_ORIGINS": "https://a.com, https://b.com, ,"}
    )

    assert module.CORS_ALLOWED_ORIGINS == ["https://a.com", "https://b.com"]


def test_cors_middleware_matches_no_path_by_default():
    assert re.match(framework_settings.CORS_URLS_REGEX, "/graphql/") is None
