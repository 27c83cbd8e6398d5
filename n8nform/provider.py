"""n8n provider: configuration block and resource registry."""

from typing import Callable, Dict, List, Optional

import httpx
import structlog
from pydantic import BaseModel, Field, SecretStr

from n8nform.client import N8nClient
from n8nform.config import Settings, get_settings
from n8nform.credentials.repository import CredentialRepository
from n8nform.credentials.resource import CredentialResource
from n8nform.exceptions import ConfigurationError, FieldError

logger = structlog.get_logger()

TYPE_NAME = "n8n"


class ProviderConfig(BaseModel):
    """Provider configuration block."""

    host: str = Field(..., description="The n8n instance host URL (e.g., https://n8n.example.com).")
    api_key: SecretStr = Field(..., description="The API key for authenticating with n8n.")
    insecure: bool = Field(False, description="Allow insecure HTTPS connections. Defaults to false.")


class N8nProvider:
    """Entry point used by the host tool.

    ``configure`` must be called before resources are requested; it builds
    the one client shared by all resources of this provider instance.
    """

    type_name = TYPE_NAME

    def __init__(
        self,
        version: str = "dev",
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.version = version
        self._settings = settings
        self._transport = transport
        self.client: Optional[N8nClient] = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    def resolve_config(
        self,
        host: Optional[str] = None,
        api_key: Optional[str] = None,
        insecure: Optional[bool] = None,
    ) -> ProviderConfig:
        """Merge explicit values with N8N_* environment settings.

        Raises:
            ConfigurationError: host or api_key is missing or empty; both
                are reported together
        """
        host = host if host is not None else self.settings.host
        api_key = api_key if api_key is not None else self.settings.api_key_value
        insecure = insecure if insecure is not None else self.settings.insecure

        errors: List[FieldError] = []
        if not host:
            errors.append(FieldError("provider", "host", "is required (or set N8N_HOST)"))
        if not api_key:
            errors.append(FieldError("provider", "api_key", "is required (or set N8N_API_KEY)"))
        if errors:
            raise ConfigurationError("unable to create n8n API client", errors)

        return ProviderConfig(host=host, api_key=api_key, insecure=insecure)

    def configure(
        self,
        host: Optional[str] = None,
        api_key: Optional[str] = None,
        insecure: Optional[bool] = None,
    ) -> N8nClient:
        """Build the n8n client from the provider block and environment."""
        logger.info("Configuring n8n client")

        config = self.resolve_config(host=host, api_key=api_key, insecure=insecure)

        # api_key is masked by the logging processors
        logger.debug("Creating n8n client", n8n_host=config.host, api_key=config.api_key)

        self.client = N8nClient(
            host=config.host,
            api_key=config.api_key.get_secret_value(),
            insecure=config.insecure,
            transport=self._transport,
        )

        logger.info("Configured n8n client", n8n_host=config.host, success=True)
        return self.client

    def resources(self) -> Dict[str, Callable[[N8nClient], CredentialResource]]:
        """Resource factories by type name."""
        return {
            CredentialResource.type_name: lambda client: CredentialResource(
                CredentialRepository(client)
            ),
        }

    def resource(self, type_name: str) -> CredentialResource:
        """Resource bound to the configured client."""
        if self.client is None:
            raise ConfigurationError("provider is not configured; call configure() first")

        factory = self.resources().get(type_name)
        if factory is None:
            raise ConfigurationError(f"unknown resource type '{type_name}'")
        return factory(self.client)
