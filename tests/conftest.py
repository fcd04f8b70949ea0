"""Test configuration for webhook tests."""

import json

import httpx
import pytest


# Configure pytest-asyncio marker
def pytest_configure(config):
    config.addinivalue_line("markers", "asyncio: mark test as async")


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every outbound request for inspection."""

    def __init__(self, status_code=200, error=None):
        self.requests = []
        self._status_code = status_code
        self._error = error
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._error is not None:
            raise self._error
        return httpx.Response(self._status_code, json={"success": self._status_code < 300})

    def paths(self):
        return [r.url.path for r in self.requests]

    def bodies(self, endpoint):
        return [
            json.loads(r.content)
            for r in self.requests
            if r.url.path == f"/v1/{endpoint}"
        ]


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def make_transport():
    return RecordingTransport
