"""Credential operations on the n8n API."""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import structlog
from pydantic import ValidationError

from n8nform.client import N8nClient, decode_json
from n8nform.credentials.models import (
    Credential,
    CredentialListResponse,
    node_access_from_types,
)
from n8nform.exceptions import (
    N8nFormException,
    NotFoundError,
    ReplacePartialFailureError,
    ResponseDecodeError,
    TransportError,
)

logger = structlog.get_logger()

CREDENTIALS_PATH = "credentials"


def _credential_path(credential_id: str) -> str:
    return f"{CREDENTIALS_PATH}/{quote(str(credential_id), safe='')}"


def _parse_credential(payload: Any) -> Credential:
    try:
        return Credential.model_validate(payload)
    except ValidationError as e:
        raise ResponseDecodeError(f"error unmarshaling response: {e}", e) from e


class CredentialRepository:
    """Create, fetch, replace and delete credentials.

    n8n has no update endpoint for credentials, so :meth:`replace` deletes
    and recreates, and the credential id changes.
    """

    def __init__(self, client: N8nClient):
        self.client = client

    async def create(
        self,
        name: str,
        credential_type: str,
        data: Dict[str, Any],
        nodes_access: Optional[List[str]] = None,
    ) -> Credential:
        """Create a credential.

        The returned credential carries ``data`` as submitted; n8n does not
        echo it back.
        """
        credential = Credential(
            name=name,
            type=credential_type,
            data=data,
            nodes_access=node_access_from_types(nodes_access),
        )

        payload = await self.client.request("POST", CREDENTIALS_PATH, credential.to_request())
        created = _parse_credential(decode_json(payload))

        logger.debug("Created credential", id=created.id, name=created.name)
        return created.model_copy(update={"data": dict(data)})

    async def list(self) -> List[Credential]:
        """List all credentials, following pagination cursors."""
        credentials: List[Credential] = []
        seen_cursors = set()
        path = CREDENTIALS_PATH

        while True:
            body = decode_json(await self.client.request("GET", path))

            # Older servers return a bare array without the data wrapper
            if isinstance(body, list):
                credentials.extend(_parse_credential(item) for item in body)
                return credentials

            try:
                page = CredentialListResponse.model_validate(body)
            except ValidationError as e:
                raise ResponseDecodeError(f"error unmarshaling response: {e}", e) from e

            credentials.extend(page.data)
            if not page.next_cursor:
                return credentials
            if page.next_cursor in seen_cursors:
                raise TransportError(
                    f"pagination cursor repeated while listing credentials: {page.next_cursor}"
                )
            seen_cursors.add(page.next_cursor)
            path = f"{CREDENTIALS_PATH}?cursor={quote(page.next_cursor, safe='')}"

    async def fetch(self, credential_id: str) -> Credential:
        """Fetch a credential by id.

        Tries ``GET /credentials/{id}`` first. Not every n8n version serves
        that route, so any failure falls back to listing all credentials and
        scanning for the id.

        Raises:
            NotFoundError: No credential with this id exists
        """
        try:
            payload = await self.client.request("GET", _credential_path(credential_id))
            credential = _parse_credential(decode_json(payload))
        except N8nFormException as e:
            logger.debug(
                "Direct credential fetch failed, falling back to list",
                id=credential_id,
                error=str(e),
            )
        else:
            if credential.id == str(credential_id):
                return credential
            logger.debug(
                "Direct credential fetch returned another id, falling back to list",
                id=credential_id,
                returned_id=credential.id,
            )

        for credential in await self.list():
            if credential.id == str(credential_id):
                return credential

        raise NotFoundError(credential_id)

    async def replace(
        self,
        old_id: str,
        name: str,
        credential_type: str,
        data: Dict[str, Any],
        nodes_access: Optional[List[str]] = None,
    ) -> Credential:
        """Replace a credential by deleting it and creating a new one.

        This is not atomic. If the delete fails, its exception is raised
        unchanged and nothing is created. If the delete succeeds and the
        create fails, the old credential is gone and
        :class:`ReplacePartialFailureError` is raised.

        The returned credential has a new id.
        """
        await self.delete(old_id)

        try:
            created = await self.create(name, credential_type, data, nodes_access)
        except N8nFormException as e:
            logger.error(
                "Credential deleted but replacement was not confirmed",
                old_id=old_id,
                name=name,
                error=str(e),
            )
            raise ReplacePartialFailureError(
                old_id,
                e,
                name=name,
                # 2xx whose echo could not be read: n8n did create the credential
                replacement_unconfirmed=isinstance(e, ResponseDecodeError),
            ) from e

        logger.info("Replaced credential", old_id=old_id, new_id=created.id)
        return created

    async def delete(self, credential_id: str) -> None:
        """Delete a credential by id."""
        await self.client.request("DELETE", _credential_path(credential_id))
        logger.debug("Deleted credential", id=credential_id)
