"""Credential shapes and their mapping to n8n credential data.

A credential declaration carries exactly one shape block. Each shape is a
pydantic model that knows its n8n credential type and how its fields are
named on the wire::

    shape = select_shape(oauth2={"client_id": "...", ...})
    shape.credential_type   # "oAuth2Api"
    shape.to_payload()      # {"clientId": "...", ...}
"""

from typing import Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Type, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from n8nform.exceptions import ConfigurationError, FieldError


class CredentialShape(BaseModel):
    """Base class for shape blocks."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    shape: ClassVar[str]
    credential_type: ClassVar[str]

    def to_payload(self) -> Dict[str, Any]:
        """Credential data using n8n field names."""
        return self.model_dump(by_alias=True)


class BasicAuth(CredentialShape):
    """HTTP basic authentication."""

    shape: ClassVar[str] = "basic_auth"
    credential_type: ClassVar[str] = "httpBasicAuth"

    user: str = Field(..., min_length=1, validation_alias=AliasChoices("user", "username"))
    password: str = Field(..., min_length=1)


class OAuth2(CredentialShape):
    """Generic OAuth2 API credential."""

    shape: ClassVar[str] = "oauth2"
    credential_type: ClassVar[str] = "oAuth2Api"

    client_id: str = Field(..., min_length=1, serialization_alias="clientId")
    client_secret: str = Field(..., min_length=1, serialization_alias="clientSecret")
    access_token_url: str = Field(..., min_length=1, serialization_alias="accessTokenUrl")
    auth_url: str = Field(..., min_length=1, serialization_alias="authUrl")
    scope: str = Field(..., min_length=1, serialization_alias="scope")
    auth_query_parameters: str = Field("", serialization_alias="authQueryParameters")
    send_additional_body_properties: bool = Field(
        False, serialization_alias="sendAdditionalBodyProperties"
    )
    additional_body_properties: str = Field(
        "", serialization_alias="additionalBodyProperties"
    )


class HeaderAuth(CredentialShape):
    """Authentication through a fixed request header."""

    shape: ClassVar[str] = "header_auth"
    credential_type: ClassVar[str] = "httpHeaderAuth"

    header_name: str = Field(..., min_length=1, serialization_alias="name")
    header_value: str = Field(..., min_length=1, serialization_alias="value")


Shape = Union[BasicAuth, OAuth2, HeaderAuth]

SHAPES: Dict[str, Type[CredentialShape]] = {
    BasicAuth.shape: BasicAuth,
    OAuth2.shape: OAuth2,
    HeaderAuth.shape: HeaderAuth,
}


def _is_empty(block: Any) -> bool:
    if block is None:
        return True
    if isinstance(block, CredentialShape):
        return False
    if isinstance(block, Mapping):
        return all(v is None for v in block.values())
    return False


def _field_errors(shape: str, error: ValidationError) -> List[FieldError]:
    errors = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or shape
        if item["type"] in ("missing", "string_too_short"):
            message = "is required"
        elif item["type"] == "extra_forbidden":
            message = "is not a known field"
        else:
            message = item["msg"]
        errors.append(FieldError(shape=shape, field=field, message=message))
    return errors


def parse_shape(shape: str, block: Any) -> Shape:
    """Validate one shape block, reporting every bad field at once."""
    model = SHAPES.get(shape)
    if model is None:
        raise ConfigurationError(f"unknown credential shape '{shape}'")

    if isinstance(block, model):
        return block
    if not isinstance(block, Mapping):
        raise ConfigurationError(
            f"invalid {shape} credential",
            [FieldError(shape=shape, field=shape, message="must be a mapping")],
        )

    # Unset optional values take their defaults; unset required ones are missing
    values = {k: v for k, v in block.items() if v is not None}
    try:
        return model.model_validate(values)
    except ValidationError as e:
        raise ConfigurationError(f"invalid {shape} credential", _field_errors(shape, e)) from e


def select_shape(
    basic_auth: Optional[Any] = None,
    oauth2: Optional[Any] = None,
    header_auth: Optional[Any] = None,
) -> Shape:
    """Pick the single populated shape block and validate it.

    Raises:
        ConfigurationError: No block, more than one block, or invalid fields
    """
    blocks = {
        BasicAuth.shape: basic_auth,
        OAuth2.shape: oauth2,
        HeaderAuth.shape: header_auth,
    }
    populated = [name for name, block in blocks.items() if not _is_empty(block)]

    if not populated:
        raise ConfigurationError("no credential shape specified")
    if len(populated) > 1:
        raise ConfigurationError(
            f"multiple credential shapes specified: {', '.join(populated)}"
        )

    shape = populated[0]
    return parse_shape(shape, blocks[shape])


def build_payload(
    basic_auth: Optional[Any] = None,
    oauth2: Optional[Any] = None,
    header_auth: Optional[Any] = None,
) -> Tuple[str, Dict[str, Any]]:
    """Return the n8n ``(type, data)`` pair for a declaration."""
    shape = select_shape(basic_auth=basic_auth, oauth2=oauth2, header_auth=header_auth)
    return shape.credential_type, shape.to_payload()
