"""n8n credential management."""

from n8nform.credentials.models import (
    Credential,
    CredentialListResponse,
    NodeAccess,
)
from n8nform.credentials.repository import CredentialRepository
from n8nform.credentials.resource import (
    CredentialConfig,
    CredentialResource,
    CredentialState,
    PlanAction,
    ReadResult,
    ReplaceResult,
    ResourcePlan,
)
from n8nform.credentials.shapes import (
    BasicAuth,
    HeaderAuth,
    OAuth2,
    Shape,
    build_payload,
    select_shape,
)

__all__ = [
    # Models
    "Credential",
    "CredentialListResponse",
    "NodeAccess",
    # Shapes
    "BasicAuth",
    "HeaderAuth",
    "OAuth2",
    "Shape",
    "build_payload",
    "select_shape",
    # Operations
    "CredentialRepository",
    # Resource
    "CredentialConfig",
    "CredentialResource",
    "CredentialState",
    "PlanAction",
    "ReadResult",
    "ReplaceResult",
    "ResourcePlan",
]
