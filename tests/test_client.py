"""Tests for the n8n HTTP client."""

import httpx
import pytest
import structlog
from structlog.testing import capture_logs

import n8nform.client as client_module
from n8nform.client import API_KEY_HEADER, DEFAULT_TIMEOUT, N8nClient, decode_json
from n8nform.config import Settings
from n8nform.exceptions import ApiError, ConfigurationError, TransportError

from conftest import TEST_API_KEY, TEST_HOST


@pytest.mark.unit
class TestClientConstruction:
    """Client configuration."""

    def test_requires_host(self):
        with pytest.raises(ConfigurationError, match="host is required"):
            N8nClient("", TEST_API_KEY)

    def test_requires_api_key(self):
        with pytest.raises(ConfigurationError, match="api_key is required"):
            N8nClient(TEST_HOST, "")

    def test_builds_versioned_url(self):
        client = N8nClient("https://n8n.example.com/", TEST_API_KEY)

        assert client.base_url == "https://n8n.example.com/api/v1"
        assert client.url_for("credentials/abc") == "https://n8n.example.com/api/v1/credentials/abc"

    def test_tls_verification_on_by_default(self):
        client = N8nClient(TEST_HOST, TEST_API_KEY)

        options = client.client_options()
        assert client.insecure is False
        assert options["verify"] is True
        assert options["timeout"] == DEFAULT_TIMEOUT == 30.0

    def test_insecure_is_opt_in(self):
        client = N8nClient(TEST_HOST, TEST_API_KEY, insecure=True)

        assert client.client_options()["verify"] is False

    def test_insecure_logs_warning(self, monkeypatch):
        monkeypatch.setattr(client_module, "logger", structlog.get_logger())

        with capture_logs() as logs:
            N8nClient(TEST_HOST, TEST_API_KEY)
            N8nClient(TEST_HOST, TEST_API_KEY, insecure=True)

        assert logs == [
            {
                "event": "TLS certificate verification disabled",
                "host": TEST_HOST,
                "log_level": "warning",
            }
        ]

    def test_from_settings(self):
        settings = Settings(host=TEST_HOST, api_key=TEST_API_KEY, insecure=True)

        client = N8nClient.from_settings(settings)

        assert client.host == TEST_HOST
        assert client.insecure is True

    def test_from_settings_without_host(self):
        with pytest.raises(ConfigurationError):
            N8nClient.from_settings(Settings(api_key=TEST_API_KEY))


@pytest.mark.unit
class TestClientRequests:
    """Request and response handling."""

    @pytest.mark.asyncio
    async def test_sends_json_and_api_key(self, stub_server, n8n_client):
        stub_server.on("POST", "credentials", json_body={"id": "1"})

        body = await n8n_client.request("POST", "credentials", {"name": "x"})

        request = stub_server.requests[0]
        assert decode_json(body) == {"id": "1"}
        assert str(request.url) == f"{TEST_HOST}/api/v1/credentials"
        assert request.headers[API_KEY_HEADER] == TEST_API_KEY
        assert request.headers["Content-Type"] == "application/json"
        assert stub_server.json_body() == {"name": "x"}

    @pytest.mark.asyncio
    async def test_no_body_for_get(self, stub_server, n8n_client):
        stub_server.on("GET", "credentials", json_body={"data": []})

        await n8n_client.request("GET", "credentials")

        assert stub_server.requests[0].content == b""

    @pytest.mark.asyncio
    async def test_non_2xx_raises_api_error(self, stub_server, n8n_client):
        stub_server.on("DELETE", "credentials/abc", status=403, json_body={"message": "forbidden"})

        with pytest.raises(ApiError) as exc_info:
            await n8n_client.request("DELETE", "credentials/abc")

        assert exc_info.value.status_code == 403
        assert "forbidden" in exc_info.value.body
        assert exc_info.value.method == "DELETE"

    @pytest.mark.asyncio
    async def test_redirect_status_is_an_error(self, stub_server, n8n_client):
        stub_server.on("GET", "credentials", response=httpx.Response(302, text="moved"))

        with pytest.raises(ApiError) as exc_info:
            await n8n_client.request("GET", "credentials")

        assert exc_info.value.status_code == 302

    @pytest.mark.asyncio
    async def test_network_failure_raises_transport_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = N8nClient(TEST_HOST, TEST_API_KEY, transport=httpx.MockTransport(refuse))

        with pytest.raises(TransportError, match="error making request"):
            await client.request("GET", "credentials")

    @pytest.mark.asyncio
    async def test_unserializable_body_raises_transport_error(self, stub_server, n8n_client):
        with pytest.raises(TransportError, match="error marshaling"):
            await n8n_client.request("POST", "credentials", {"data": object()})

        assert stub_server.requests == []


@pytest.mark.unit
def test_decode_json_rejects_invalid_payload():
    with pytest.raises(TransportError, match="error unmarshaling"):
        decode_json(b"<html>")
