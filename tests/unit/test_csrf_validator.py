"""
Unit tests for CSRF validation.
"""

import pytest
from django.conf import settings
from django.middleware.csrf import get_token
from django.test import RequestFactory
from django.test.utils import override_settings

from rail_gateway.core.settings import GatewaySettings
from rail_gateway.security.csrf import (
    CSRFContext,
    CSRFDecision,
    DjangoCSRFValidator,
    check_csrf,
    get_csrf_validator,
    token_from_payload,
)

from tests.fakes import GOOD_TOKEN, ExplodingCSRFValidator, FakeCSRFValidator

pytestmark = pytest.mark.unit


def _issue_token():
    """Return (masked token, cookie secret) the way a browser would hold them."""
    request = RequestFactory().get("/csrf/")
    token = get_token(request)
    return token, request.META["CSRF_COOKIE"]


def test_django_validator_accepts_matching_token():
    token, secret = _issue_token()
    context = CSRFContext(token=token, cookies={settings.CSRF_COOKIE_NAME: secret})

    assert DjangoCSRFValidator().validate(context) is True


def test_django_validator_accepts_payload_sourced_token():
    token, secret = _issue_token()
    context = CSRFContext(
        token=token, cookies={settings.CSRF_COOKIE_NAME: secret}, source="payload"
    )

    assert DjangoCSRFValidator().validate(context) is True


def test_django_validator_rejects_token_from_another_session():
    token, _ = _issue_token()
    _, other_secret = _issue_token()
    context = CSRFContext(token=token, cookies={settings.CSRF_COOKIE_NAME: other_secret})

    assert DjangoCSRFValidator().validate(context) is False


def test_django_validator_rejects_missing_cookie_or_token():
    token, secret = _issue_token()

    assert DjangoCSRFValidator().validate(CSRFContext(token=token, cookies={})) is False
    assert (
        DjangoCSRFValidator().validate(
            CSRFContext(token=None, cookies={settings.CSRF_COOKIE_NAME: secret})
        )
        is False
    )


def test_django_validator_reads_secret_from_session_store():
    token, secret = _issue_token()

    class _Session(dict):
        pass

    session = _Session({"_csrftoken": secret})

    with override_settings(CSRF_USE_SESSIONS=True):
        validator = DjangoCSRFValidator(session_store_class=lambda key: session)
        assert validator.validate(CSRFContext(token=token, cookies={"sessionid": "abc"})) is True
        assert validator.validate(CSRFContext(token="x" * 64, cookies={"sessionid": "abc"})) is False


def test_check_csrf_is_not_applicable_when_disabled():
    built = []

    decision = check_csrf(
        GatewaySettings(csrf_protection=False),
        lambda: built.append(True),
        ExplodingCSRFValidator(),
    )

    assert decision is CSRFDecision.NOT_APPLICABLE
    assert built == []


def test_check_csrf_decisions_when_enabled():
    validator = FakeCSRFValidator()
    enabled = GatewaySettings(csrf_protection=True)

    assert check_csrf(enabled, lambda: CSRFContext(token=GOOD_TOKEN), validator) is CSRFDecision.VALID
    assert check_csrf(enabled, lambda: CSRFContext(token="bad"), validator) is CSRFDecision.INVALID
    assert len(validator.calls) == 2


def test_get_csrf_validator_imports_dotted_path():
    settings_obj = GatewaySettings(csrf_validator="tests.fakes.FakeCSRFValidator")

    assert isinstance(get_csrf_validator(settings_obj), FakeCSRFValidator)


def test_get_csrf_validator_accepts_instances():
    validator = FakeCSRFValidator()

    assert get_csrf_validator(GatewaySettings(csrf_validator=validator)) is validator


@pytest.mark.parametrize(
    "payload",
    [
        {"csrfToken": "t"},
        {"csrf_token": "t"},
        {"X-CSRFToken": "t"},
        {"headers": {"x-csrftoken": "t"}},
        {"headers": {"X-CSRF-Token": "t"}},
    ],
)
def test_token_from_payload(payload):
    assert token_from_payload(payload) == "t"


@pytest.mark.parametrize("payload", [None, "csrfToken", {}, {"csrfToken": 12}, {"headers": "x"}])
def test_token_from_payload_missing(payload):
    assert token_from_payload(payload) is None
