"""Lifecycle of the n8n_credential resource.

Declared configuration is reconciled against the last-known state. n8n
credentials cannot be updated in place, so every change to a declared
attribute is planned as a replace (delete, then create), and the
credential id changes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

from n8nform.credentials.repository import CredentialRepository
from n8nform.credentials.shapes import Shape, select_shape
from n8nform.exceptions import (
    ApiError,
    NotFoundError,
    ReplacePartialFailureError,
    ResourceOperationError,
    TransportError,
)

logger = structlog.get_logger()

TYPE_NAME = "n8n_credential"

# Attributes whose change forces a replace, in plan output order
REPLACE_ATTRIBUTES = ("name", "type", "data", "nodes_access")


class CredentialConfig(BaseModel):
    """Declared configuration of one credential."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, description="Credential name")
    basic_auth: Optional[Dict[str, Any]] = None
    oauth2: Optional[Dict[str, Any]] = None
    header_auth: Optional[Dict[str, Any]] = None
    nodes_access: Optional[List[str]] = Field(
        None, description="Node types allowed to use the credential"
    )

    def shape(self) -> Shape:
        return select_shape(
            basic_auth=self.basic_auth,
            oauth2=self.oauth2,
            header_auth=self.header_auth,
        )


class CredentialState(BaseModel):
    """Last-known state of a managed credential.

    ``data`` is the declared payload, kept locally because n8n never
    returns it.
    """

    id: Optional[str] = None
    name: str
    type: str
    data: Dict[str, Any] = Field(default_factory=dict)
    nodes_access: Optional[List[str]] = None


class PlanAction(str, Enum):
    """Planned operation for a credential."""
    CREATE = "create"
    REPLACE = "replace"
    DELETE = "delete"
    NOOP = "noop"


@dataclass
class ResourcePlan:
    action: PlanAction
    requires_replace: List[str] = field(default_factory=list)
    desired: Optional[CredentialState] = None


@dataclass
class ReadResult:
    state: CredentialState
    refreshed: bool
    warning: Optional[str] = None


@dataclass
class ReplaceResult:
    previous_id: Optional[str]
    state: CredentialState

    @property
    def id_changed(self) -> bool:
        return self.state.id != self.previous_id


def _access_set(nodes_access: Optional[List[str]]) -> Optional[FrozenSet[str]]:
    return None if nodes_access is None else frozenset(nodes_access)


class CredentialResource:
    """Create, read, replace and delete one kind of resource: n8n credentials."""

    type_name = TYPE_NAME

    def __init__(self, repository: CredentialRepository):
        self.repository = repository

    def validate(self, config: CredentialConfig) -> Shape:
        """Check the shape blocks of a declaration without contacting n8n."""
        return config.shape()

    def desired_state(
        self, config: CredentialConfig, current: Optional[CredentialState] = None
    ) -> CredentialState:
        """State the declaration converges to; id carries over from current."""
        shape = self.validate(config)
        return CredentialState(
            id=current.id if current else None,
            name=config.name,
            type=shape.credential_type,
            data=shape.to_payload(),
            nodes_access=list(config.nodes_access) if config.nodes_access is not None else None,
        )

    def plan(
        self, config: Optional[CredentialConfig], state: Optional[CredentialState]
    ) -> ResourcePlan:
        """Decide between create, replace, delete and noop.

        Validation runs first, so an invalid declaration fails here before
        any request is sent.
        """
        if config is None:
            if state is None:
                return ResourcePlan(action=PlanAction.NOOP)
            return ResourcePlan(action=PlanAction.DELETE)

        desired = self.desired_state(config, state)
        if state is None:
            return ResourcePlan(action=PlanAction.CREATE, desired=desired)

        changed = []
        for attribute in REPLACE_ATTRIBUTES:
            old = getattr(state, attribute)
            new = getattr(desired, attribute)
            if attribute == "nodes_access":
                old, new = _access_set(old), _access_set(new)
            if old != new:
                changed.append(attribute)

        if changed:
            return ResourcePlan(
                action=PlanAction.REPLACE, requires_replace=changed, desired=desired
            )
        return ResourcePlan(action=PlanAction.NOOP, desired=state)

    async def create(self, config: CredentialConfig) -> CredentialState:
        """Create the credential and return its initial state."""
        desired = self.desired_state(config)

        logger.info("Creating credential", name=desired.name, type=desired.type)

        try:
            created = await self.repository.create(
                desired.name, desired.type, desired.data, desired.nodes_access
            )
        except (TransportError, ApiError) as e:
            raise ResourceOperationError("create", desired.name, e) from e

        state = CredentialState(
            id=created.id,
            name=created.name,
            type=created.type,
            # Declared payload, n8n does not echo it
            data=desired.data,
            nodes_access=created.node_types or desired.nodes_access,
        )

        logger.info("Created credential", id=state.id, name=state.name)
        return state

    async def read(self, state: CredentialState) -> ReadResult:
        """Refresh state from n8n.

        n8n may refuse to return credentials. Any failure is logged as a
        warning and the given state is returned unchanged.
        """
        logger.info("Reading credential", id=state.id)

        try:
            credential = await self.repository.fetch(state.id)
        except (TransportError, ApiError, NotFoundError) as e:
            logger.warning(
                "Could not read credential from API, keeping existing state",
                id=state.id,
                error=str(e),
            )
            return ReadResult(state=state, refreshed=False, warning=str(e))

        nodes_access = state.nodes_access
        if "nodes_access" in credential.model_fields_set:
            if credential.node_types or state.nodes_access is not None:
                nodes_access = credential.node_types

        refreshed = state.model_copy(
            update={
                "id": credential.id or state.id,
                "name": credential.name,
                "type": credential.type,
                "nodes_access": nodes_access,
            }
        )

        logger.info("Read credential", id=refreshed.id, name=refreshed.name)
        return ReadResult(state=refreshed, refreshed=True)

    async def replace(
        self, state: CredentialState, config: CredentialConfig
    ) -> ReplaceResult:
        """Delete the current credential and create it again from config.

        The new credential has a different id. Anything referring to the
        old id, such as workflows, must be updated.
        """
        desired = self.desired_state(config)
        old_id = state.id

        logger.info(
            "Replacing credential via delete-and-recreate", old_id=old_id, name=desired.name
        )

        try:
            created = await self.repository.replace(
                old_id, desired.name, desired.type, desired.data, desired.nodes_access
            )
        except ReplacePartialFailureError:
            raise
        except (TransportError, ApiError) as e:
            raise ResourceOperationError("replace", old_id, e) from e

        result = ReplaceResult(
            previous_id=old_id,
            state=CredentialState(
                id=created.id,
                name=created.name,
                type=created.type,
                data=desired.data,
                nodes_access=created.node_types or desired.nodes_access,
            ),
        )

        if result.id_changed:
            logger.info(
                "Credential ID changed after replace", old_id=old_id, new_id=result.state.id
            )
        return result

    async def delete(self, state: CredentialState) -> None:
        logger.info("Deleting credential", id=state.id)

        try:
            await self.repository.delete(state.id)
        except (TransportError, ApiError) as e:
            raise ResourceOperationError("delete", state.id, e) from e

        logger.info("Deleted credential", id=state.id)

    async def apply(
        self, config: Optional[CredentialConfig], state: Optional[CredentialState]
    ) -> Optional[CredentialState]:
        """Plan and execute; returns the new state, or None once deleted."""
        plan = self.plan(config, state)

        if plan.action == PlanAction.CREATE:
            return await self.create(config)
        if plan.action == PlanAction.REPLACE:
            logger.info("Credential requires replace", id=state.id, changed=plan.requires_replace)
            return (await self.replace(state, config)).state
        if plan.action == PlanAction.DELETE:
            await self.delete(state)
            return None
        return state

    async def import_state(self, credential_id: str) -> CredentialState:
        """Adopt an existing credential by id.

        The payload cannot be imported; it stays empty until the credential
        is next replaced from a declaration.
        """
        credential = await self.repository.fetch(credential_id)

        logger.info("Imported credential", id=credential.id, name=credential.name)
        return CredentialState(
            id=credential.id,
            name=credential.name,
            type=credential.type,
            data={},
            nodes_access=credential.node_types or None,
        )
