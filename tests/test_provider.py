"""Tests for provider configuration."""

import pytest

from n8nform.config import Settings
from n8nform.credentials.resource import CredentialResource
from n8nform.exceptions import ConfigurationError
from n8nform.provider import N8nProvider

from conftest import TEST_API_KEY, TEST_HOST


@pytest.mark.unit
class TestConfigure:

    def test_explicit_values(self):
        provider = N8nProvider(settings=Settings())

        client = provider.configure(host=TEST_HOST, api_key=TEST_API_KEY)

        assert client.host == TEST_HOST
        assert client.insecure is False
        assert provider.client is client

    def test_environment_fallback(self, monkeypatch):
        monkeypatch.setenv("N8N_HOST", "https://env.example.com")
        monkeypatch.setenv("N8N_API_KEY", "env-key")
        monkeypatch.setenv("N8N_INSECURE", "true")

        client = N8nProvider().configure()

        assert client.host == "https://env.example.com"
        assert client.insecure is True

    def test_explicit_values_win_over_environment(self, monkeypatch):
        monkeypatch.setenv("N8N_HOST", "https://env.example.com")
        monkeypatch.setenv("N8N_API_KEY", "env-key")

        client = N8nProvider().configure(host=TEST_HOST, insecure=False)

        assert client.host == TEST_HOST
        assert client.insecure is False

    def test_missing_values_reported_together(self):
        provider = N8nProvider(settings=Settings())

        with pytest.raises(ConfigurationError) as exc_info:
            provider.configure()

        assert [e.field for e in exc_info.value.field_errors] == ["host", "api_key"]
        assert provider.client is None

    def test_empty_api_key_rejected(self):
        provider = N8nProvider(settings=Settings())

        with pytest.raises(ConfigurationError) as exc_info:
            provider.configure(host=TEST_HOST, api_key="")

        assert [e.field for e in exc_info.value.field_errors] == ["api_key"]


@pytest.mark.unit
class TestResources:

    def test_credential_resource_registered(self):
        provider = N8nProvider(settings=Settings())
        provider.configure(host=TEST_HOST, api_key=TEST_API_KEY)

        resource = provider.resource("n8n_credential")

        assert isinstance(resource, CredentialResource)
        assert resource.repository.client is provider.client
        assert list(provider.resources()) == ["n8n_credential"]

    def test_resource_requires_configure(self):
        with pytest.raises(ConfigurationError, match="not configured"):
            N8nProvider(settings=Settings()).resource("n8n_credential")

    def test_unknown_resource(self):
        provider = N8nProvider(settings=Settings())
        provider.configure(host=TEST_HOST, api_key=TEST_API_KEY)

        with pytest.raises(ConfigurationError, match="unknown resource type"):
            provider.resource("n8n_workflow")

    @pytest.mark.asyncio
    async def test_transport_is_passed_to_client(self, stub_server):
        stub_server.on("GET", "credentials", json_body={"data": []})
        provider = N8nProvider(settings=Settings(), transport=stub_server.transport)
        provider.configure(host=TEST_HOST, api_key=TEST_API_KEY)

        credentials = await provider.resource("n8n_credential").repository.list()

        assert credentials == []
        assert len(stub_server.requests) == 1
