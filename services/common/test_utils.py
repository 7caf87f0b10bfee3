"""
Common test utilities for integration tests across all services.

Provides a base class with HTTP call detection rakes that fail a test when it
tries to reach a real external service, while still letting FastAPI's
TestClient talk to the app under test.
"""

from unittest.mock import patch

from fastapi.testclient import TestClient


class BaseSelectiveHTTPIntegrationTest:
    """Block outbound HTTP calls; TestClient keeps working."""

    def setup_method(self, method=None):
        # TestClient drives the app through httpx.Client.send, so only the
        # async client and the other common HTTP stacks are patched.
        self.http_patches = [
            patch(
                "httpx.AsyncClient._send_single_request",
                side_effect=AssertionError(
                    "Real HTTP call detected! AsyncClient._send_single_request was called"
                ),
            ),
            patch(
                "urllib.request.urlopen",
                side_effect=AssertionError(
                    "Real HTTP call detected! urllib.request.urlopen was called"
                ),
            ),
        ]
        for http_patch in self.http_patches:
            http_patch.start()

    def teardown_method(self, method=None):
        for http_patch in self.http_patches:
            http_patch.stop()

    def create_test_client(self, app) -> TestClient:
        """Create a FastAPI test client for the given app."""
        return TestClient(app)
