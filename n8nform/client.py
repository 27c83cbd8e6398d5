"""HTTP client for the n8n public API."""

import json
from typing import Any, Dict, Optional

import httpx
import structlog

from n8nform.config import Settings
from n8nform.exceptions import (
    ApiError,
    ConfigurationError,
    ResponseDecodeError,
    TransportError,
)

logger = structlog.get_logger()

API_VERSION = "v1"
DEFAULT_TIMEOUT = 30.0
API_KEY_HEADER = "X-N8N-API-KEY"


class N8nClient:
    """Issues authenticated JSON requests against an n8n instance.

    The client holds configuration only. Every request opens its own
    ``httpx.AsyncClient``, so one instance can be shared by concurrent
    operations on independent credentials.
    """

    def __init__(
        self,
        host: str,
        api_key: str,
        insecure: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not host:
            raise ConfigurationError("host is required")
        if not api_key:
            raise ConfigurationError("api_key is required")

        self.host = host.rstrip("/")
        self.insecure = bool(insecure)
        self.timeout = DEFAULT_TIMEOUT
        self._api_key = api_key
        self._transport = transport

        if self.insecure:
            logger.warning("TLS certificate verification disabled", host=self.host)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "N8nClient":
        """Build a client from Settings."""
        return cls(
            host=settings.host or "",
            api_key=settings.api_key_value or "",
            insecure=settings.insecure,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return f"{self.host}/api/{API_VERSION}"

    def url_for(self, path_suffix: str) -> str:
        """Build the absolute URL for an API path such as ``credentials/abc``."""
        return f"{self.base_url}/{path_suffix.lstrip('/')}"

    def client_options(self) -> Dict[str, Any]:
        """Keyword arguments for the per-request httpx.AsyncClient."""
        options: Dict[str, Any] = {
            "timeout": self.timeout,
            "verify": not self.insecure,
        }
        if self._transport is not None:
            options["transport"] = self._transport
        return options

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            API_KEY_HEADER: self._api_key,
        }

    async def request(
        self, method: str, path_suffix: str, body: Optional[Any] = None
    ) -> bytes:
        """Send a request and return the raw response body.

        Args:
            method: HTTP method
            path_suffix: Path below ``/api/v1/``
            body: JSON-serializable request body, if any

        Returns:
            Response body bytes for a 2xx response

        Raises:
            ApiError: The server answered outside 2xx
            TransportError: No response could be obtained or body was not serializable
        """
        url = self.url_for(path_suffix)

        content = None
        if body is not None:
            try:
                content = json.dumps(body).encode("utf-8")
            except (TypeError, ValueError) as e:
                raise TransportError(f"error marshaling request body: {e}", e) from e

        logger.debug("Sending n8n API request", method=method, url=url)

        try:
            async with httpx.AsyncClient(**self.client_options()) as client:
                response = await client.request(
                    method, url, content=content, headers=self._headers()
                )
                payload = response.content
        except httpx.HTTPError as e:
            raise TransportError(f"error making request: {e}", e) from e

        if not 200 <= response.status_code < 300:
            logger.debug(
                "n8n API request failed",
                method=method,
                url=url,
                status_code=response.status_code,
            )
            raise ApiError(
                response.status_code,
                payload.decode("utf-8", errors="replace"),
                method=method,
                url=url,
            )

        return payload


def decode_json(payload: bytes) -> Any:
    """Decode a JSON response body."""
    try:
        return json.loads(payload)
    except (TypeError, ValueError) as e:
        raise ResponseDecodeError(f"error unmarshaling response: {e}", e) from e
