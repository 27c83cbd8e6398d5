"""Credential wire models."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NodeAccess(BaseModel):
    """A node type allowed to use a credential."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    node_type: str = Field(..., alias="nodeType")


class Credential(BaseModel):
    """A credential as exchanged with n8n.

    n8n never returns ``data`` in responses, so ``data`` on a decoded
    response is always empty.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    name: str
    type: str
    data: Dict[str, Any] = Field(default_factory=dict)
    nodes_access: List[NodeAccess] = Field(default_factory=list, alias="nodesAccess")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        # Some n8n versions send numeric ids
        return None if v is None else str(v)

    @field_validator("nodes_access", mode="before")
    @classmethod
    def null_nodes_access(cls, v):
        return [] if v is None else v

    @property
    def node_types(self) -> List[str]:
        return [na.node_type for na in self.nodes_access]

    def to_request(self) -> Dict[str, Any]:
        """Body for POST /credentials."""
        body: Dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "data": self.data,
        }
        if self.nodes_access:
            body["nodesAccess"] = [
                na.model_dump(by_alias=True) for na in self.nodes_access
            ]
        return body


class CredentialListResponse(BaseModel):
    """Response of GET /credentials."""

    data: List[Credential] = Field(default_factory=list)
    next_cursor: Optional[str] = Field(None, alias="nextCursor")


def node_access_from_types(node_types: Optional[List[str]]) -> List[NodeAccess]:
    """Convert plain node type names to NodeAccess entries."""
    return [NodeAccess(node_type=t) for t in node_types or []]
