"""Tests for outbound request composition."""

import base64
import unittest

import httpx

from sitesync.cloud.dispatcher import RequestDispatcher, check_response
from sitesync.cloud.interfaces import ResourceRequest
from sitesync.errors import TransportError
from tests.base import ACQUIA_ENDPOINT, InventoryTestCase, MockProvider


class TestBuildUrl(InventoryTestCase):
    """Tests for URL composition."""

    def setUp(self):
        super().setUp()
        self.provider = self.context.provider("acquia")

    def test_resource_appended_to_endpoint(self):
        url = RequestDispatcher.build_url(
            self.provider, ResourceRequest(method="GET", resource="/sites")
        )
        self.assertEqual(url, f"{ACQUIA_ENDPOINT}/sites")

    def test_segments_appended_in_order(self):
        url = RequestDispatcher.build_url(
            self.provider,
            ResourceRequest(
                method="GET", resource="/sites", segments=("prod:alpha", "envs")
            ),
        )
        self.assertEqual(url, f"{ACQUIA_ENDPOINT}/sites/prod:alpha/envs")


class TestMergeOptions(unittest.TestCase):
    """Tests for merging auth options with caller overrides."""

    def test_overrides_win(self):
        merged = RequestDispatcher.merge_options(
            {"auth": ("a", "b"), "follow_redirects": True},
            {"follow_redirects": False},
        )
        self.assertEqual(merged, {"auth": ("a", "b"), "follow_redirects": False})

    def test_headers_merged_key_by_key(self):
        merged = RequestDispatcher.merge_options(
            {"headers": {"Cookie": "SSESSabc=xyz"}},
            {"headers": {"Accept": "application/json"}},
        )
        self.assertEqual(
            merged["headers"],
            {"Cookie": "SSESSabc=xyz", "Accept": "application/json"},
        )


class TestDispatch(InventoryTestCase):
    """Tests for executing requests."""

    def setUp(self):
        super().setUp()
        self.provider = self.context.provider("acquia")

    def test_auth_options_attached(self):
        """Test that basic auth from the credential cache is sent."""
        self.provider.store_credentials("me@example.com", "secret-key")
        self.route("GET", f"{ACQUIA_ENDPOINT}/sites", json=[])

        self.context.dispatcher.dispatch(
            self.provider, ResourceRequest(method="GET", resource="/sites")
        )

        request = self.requests_to("GET", f"{ACQUIA_ENDPOINT}/sites")[0]
        token = base64.b64encode(b"me@example.com:secret-key").decode()
        self.assertEqual(request.headers["authorization"], f"Basic {token}")

    def test_unauthenticated_dispatch_skips_auth(self):
        """Test that authenticate=False sends no credentials."""
        self.provider.store_credentials("me@example.com", "secret-key")
        self.route("GET", f"{ACQUIA_ENDPOINT}/sites", json=[])

        self.context.dispatcher.dispatch(
            self.provider,
            ResourceRequest(method="GET", resource="/sites"),
            authenticate=False,
        )

        request = self.requests_to("GET", f"{ACQUIA_ENDPOINT}/sites")[0]
        self.assertNotIn("authorization", request.headers)

    def test_form_data_is_sent(self):
        """Test that request data is form-encoded."""
        self.route("POST", f"{ACQUIA_ENDPOINT}/login", status_code=302)

        response = self.context.dispatcher.dispatch(
            self.provider,
            ResourceRequest(method="POST", resource="/login", data={"op": "Login"}),
            follow_redirects=False,
        )

        self.assertEqual(response.status_code, 302)
        request = self.requests_to("POST", f"{ACQUIA_ENDPOINT}/login")[0]
        self.assertEqual(request.content, b"op=Login")

    def test_non_2xx_response_is_returned_raw(self):
        """Test that the dispatcher does not interpret status codes."""
        response = self.context.dispatcher.dispatch(
            self.provider, ResourceRequest(method="GET", resource="/missing")
        )
        self.assertEqual(response.status_code, 404)

    def test_transport_failure_raises_transport_error(self):
        """Test that connection errors become TransportError."""
        self.route(
            "GET", f"{ACQUIA_ENDPOINT}/sites", error=httpx.ConnectError("refused")
        )

        with self.assertRaises(TransportError):
            self.context.dispatcher.dispatch(
                self.provider, ResourceRequest(method="GET", resource="/sites")
            )

    def test_no_retry_on_failure(self):
        """Test that a failed call is attempted exactly once."""
        self.route(
            "GET", f"{ACQUIA_ENDPOINT}/sites", error=httpx.ConnectError("refused")
        )

        with self.assertRaises(TransportError):
            self.context.dispatcher.dispatch(
                self.provider, ResourceRequest(method="GET", resource="/sites")
            )
        self.assertEqual(len(self.requests_to("GET", f"{ACQUIA_ENDPOINT}/sites")), 1)


class TestCheckResponse(InventoryTestCase):
    """Tests for status checking."""

    def test_success_passes_through(self):
        provider = self.context.register(MockProvider(self.context))
        self.route("GET", "https://mock.example.com/ok", json={})
        response = self.context.dispatcher.dispatch(
            provider, ResourceRequest(method="GET", resource="/ok")
        )
        self.assertIs(check_response(response), response)

    def test_error_status_raises(self):
        provider = self.context.register(MockProvider(self.context))
        self.route("GET", "https://mock.example.com/down", status_code=503)
        response = self.context.dispatcher.dispatch(
            provider, ResourceRequest(method="GET", resource="/down")
        )
        with self.assertRaises(TransportError) as ctx:
            check_response(response)
        self.assertEqual(ctx.exception.status_code, 503)


if __name__ == "__main__":
    unittest.main()
