"""
Tests for the CSRF bootstrap endpoint.
"""

import json

from django.conf import settings
from django.test import Client, TestCase


class CsrfEndpointTestCase(TestCase):
    """Validate the /csrf/ endpoint used by both transports."""

    def setUp(self):
        self.client = Client()

    def test_csrf_endpoint_returns_token_and_cookie(self):
        response = self.client.get("/csrf/")

        self.assertEqual(response.status_code, 200)
        payload = json.loads(response.content)

        self.assertTrue(payload["csrfToken"])
        self.assertEqual(response.get("X-CSRFToken"), payload["csrfToken"])
        self.assertIn(settings.CSRF_COOKIE_NAME, response.cookies)

    def test_csrf_endpoint_describes_where_to_send_the_token(self):
        payload = json.loads(self.client.get("/csrf/").content)

        self.assertEqual(payload["headerName"], "X-Csrftoken")
        self.assertEqual(payload["connectionInitKey"], "csrfToken")

    def test_csrf_endpoint_is_get_only(self):
        response = self.client.post("/csrf/")

        self.assertEqual(response.status_code, 405)
