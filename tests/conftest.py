"""Pytest configuration and fixtures."""

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from n8nform.client import N8nClient
from n8nform.config import get_settings
from n8nform.credentials.repository import CredentialRepository
from n8nform.credentials.resource import CredentialResource

TEST_HOST = "https://n8n.test"
TEST_API_KEY = "test-api-key"

Handler = Callable[[httpx.Request], httpx.Response]


class StubServer:
    """In-memory stand-in for the n8n API, served through httpx.MockTransport.

    Routes are registered per method and path (relative to ``/api/v1/``).
    A route value is either a response or a callable taking the request.
    Unrouted requests answer 404.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.requests: List[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def on(self, method: str, path: str, response: Any = None, status: int = 200, json_body: Any = None):
        if response is None:
            response = httpx.Response(status, json=json_body)
        self.routes[(method.upper(), path)] = response
        return self

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        prefix = "/api/v1/"
        path = request.url.path
        path = path[len(prefix):] if path.startswith(prefix) else path
        if request.url.query:
            path = f"{path}?{request.url.query.decode()}"

        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if callable(route):
            return route(request)
        return route

    def calls(self, method: Optional[str] = None) -> List[Tuple[str, str]]:
        return [
            (r.method, r.url.path)
            for r in self.requests
            if method is None or r.method == method
        ]

    def json_body(self, index: int = -1) -> Any:
        return json.loads(self.requests[index].content)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Isolate tests from N8N_* variables and the settings cache."""
    for var in ("N8N_HOST", "N8N_API_KEY", "N8N_INSECURE", "N8N_ENVIRONMENT"):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def stub_server():
    """Empty stub n8n server."""
    return StubServer()


@pytest.fixture
def n8n_client(stub_server):
    """Client wired to the stub server."""
    return N8nClient(TEST_HOST, TEST_API_KEY, transport=stub_server.transport)


@pytest.fixture
def repository(n8n_client):
    return CredentialRepository(n8n_client)


@pytest.fixture
def credential_resource(repository):
    return CredentialResource(repository)


@pytest.fixture
def oauth2_block() -> Dict[str, Any]:
    """A complete oauth2 shape block."""
    return {
        "client_id": "client-123",
        "client_secret": "secret-456",
        "access_token_url": "https://auth.example.com/token",
        "auth_url": "https://auth.example.com/authorize",
        "scope": "read write",
    }
