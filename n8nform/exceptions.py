"""Base exceptions for n8nform."""

from dataclasses import dataclass
from typing import List, Optional


class N8nFormException(Exception):
    """Base exception for all n8nform errors."""
    pass


@dataclass(frozen=True)
class FieldError:
    """A single invalid or missing field inside a credential shape."""

    shape: str
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.shape}.{self.field}: {self.message}"


class ConfigurationError(N8nFormException):
    """Raised when declared configuration is invalid.

    Always detected before any request is sent to n8n.
    """

    def __init__(self, message: str, field_errors: Optional[List[FieldError]] = None):
        self.field_errors = list(field_errors or [])
        if self.field_errors:
            details = "; ".join(str(e) for e in self.field_errors)
            message = f"{message}: {details}"
        super().__init__(message)


class TransportError(N8nFormException):
    """Raised when no usable response was obtained (network, encoding)."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ResponseDecodeError(TransportError):
    """Raised when a 2xx response body could not be decoded.

    The request itself succeeded, so its side effect happened in n8n.
    """
    pass


class ApiError(N8nFormException):
    """Raised when n8n answers with a status outside 2xx."""

    def __init__(self, status_code: int, body: str, method: str = "", url: str = ""):
        self.status_code = status_code
        self.body = body
        self.method = method
        self.url = url
        super().__init__(f"API error (status {status_code}): {body}")


class NotFoundError(N8nFormException):
    """Raised when a credential id cannot be found, even after listing."""

    def __init__(self, credential_id: str):
        self.credential_id = credential_id
        super().__init__(f"credential with ID {credential_id} not found")


class ReplacePartialFailureError(N8nFormException):
    """Raised when replace deleted the old credential but the create did not complete.

    When ``replacement_unconfirmed`` is false, the old credential no longer
    exists and nothing took its place; it has to be recreated manually or
    by applying the configuration again. When it is true, n8n accepted the
    create but its response could not be read, so a replacement named
    ``name`` probably exists under an unknown id.
    """

    def __init__(
        self,
        old_id: str,
        cause: BaseException,
        name: str = "",
        replacement_unconfirmed: bool = False,
    ):
        self.old_id = old_id
        self.cause = cause
        self.name = name
        self.replacement_unconfirmed = replacement_unconfirmed
        if replacement_unconfirmed:
            message = (
                f"credential {old_id} was deleted and n8n accepted its replacement "
                f"'{name}', but the response could not be read; look up the new "
                f"credential in n8n before applying again: {cause}"
            )
        else:
            message = (
                f"credential {old_id} was deleted but its replacement could not be "
                f"created; the credential no longer exists in n8n: {cause}"
            )
        super().__init__(message)


class ResourceOperationError(N8nFormException):
    """Raised when a create, replace or delete of a credential fails."""

    def __init__(self, operation: str, credential_id: str, cause: BaseException):
        self.operation = operation
        self.credential_id = credential_id
        self.cause = cause
        super().__init__(
            f"could not {operation} credential {credential_id}: {cause}"
        )
