"""Kanidm-specific exceptions for error handling."""
from __future__ import annotations
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Closed set of failure classes raised by the Kanidm client."""

    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    HTTP = "http"
    TRANSPORT = "transport"
    DECODE = "decode"
    INCOMPLETE = "incomplete"
    CLIENT_TYPE = "client_type"


class KanidmError(Exception):
    """Base exception for all Kanidm operations.

    Attributes:
        kind: Failure class, match on this instead of the concrete type
        operation: Name of the operation that failed (e.g. "get group")
    """

    kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(self, message: str, operation: Optional[str] = None):
        self.message = message
        self.operation = operation
        super().__init__(f"{operation}: {message}" if operation else message)


class KanidmAPIError(KanidmError):
    """HTTP error from the Kanidm REST API.

    Attributes:
        status_code: HTTP status code
        message: Response body text (may be empty)
        endpoint: API endpoint that failed
    """

    kind = ErrorKind.HTTP

    def __init__(self, status_code: int, message: str, endpoint: str, operation: Optional[str] = None):
        self.status_code = status_code
        self.endpoint = endpoint
        detail = f"API error (HTTP {status_code})"
        if message:
            detail = f"{detail}: {message}"
        super().__init__(detail, operation)
        self.message = message


class NotFoundError(KanidmAPIError):
    """Resource does not exist (HTTP 404)."""

    kind = ErrorKind.NOT_FOUND


class UnauthorizedError(KanidmAPIError):
    """Bearer token missing, expired or rejected (HTTP 401)."""

    kind = ErrorKind.UNAUTHORIZED


class ForbiddenError(KanidmAPIError):
    """Token is valid but lacks permission for the call (HTTP 403)."""

    kind = ErrorKind.FORBIDDEN


class TransportError(KanidmError):
    """Network failure or request body could not be serialized."""

    kind = ErrorKind.TRANSPORT


class DecodeError(KanidmError):
    """Response body is not the JSON shape the call expects."""

    kind = ErrorKind.DECODE


class ClientTypeMismatchError(KanidmError):
    """An OAuth2 client exists but is not of the expected type (public vs basic)."""

    kind = ErrorKind.CLIENT_TYPE


class IncompleteCreateError(KanidmError):
    """Resource was created server-side but a follow-up step failed.

    The remote object exists; the caller decides whether to treat the
    operation as failed or partially succeeded and should re-read it.

    Attributes:
        resource: Resource kind (e.g. "oauth2 client")
        identifier: Identifier of the created resource
        partial: Whatever result was assembled before the failure
    """

    kind = ErrorKind.INCOMPLETE

    def __init__(self, resource: str, identifier: str, step: str, cause: KanidmError, partial=None):
        self.resource = resource
        self.identifier = identifier
        self.step = step
        self.cause = cause
        self.partial = partial
        super().__init__(f"{resource} '{identifier}' was created but {step} failed: {cause}")


# Status codes with a dedicated exception type
STATUS_ERRORS = {
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
}
