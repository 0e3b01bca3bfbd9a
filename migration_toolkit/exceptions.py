"""Exception hierarchy for the migration toolkit."""

from enum import Enum
from typing import Any, Dict, Optional

RATE_LIMIT_ERROR_CODE = 10000


class ApiErrorKind(str, Enum):
    """Classification of a failed remote call."""
    RATE_LIMITED = "rate_limited"
    REJECTED = "rejected"
    NOT_FOUND = "not_found"
    TRANSPORT = "transport"


def classify(error_code: Optional[int], status: Optional[int] = None) -> ApiErrorKind:
    """
    Classify a remote failure by its application error code and HTTP status.

    Args:
        error_code: Application error code from the response body, if any
        status: HTTP status code, if a response was received

    Returns:
        The error kind
    """
    if error_code == RATE_LIMIT_ERROR_CODE:
        return ApiErrorKind.RATE_LIMITED
    if status == 404:
        return ApiErrorKind.NOT_FOUND
    if error_code is not None and error_code >= 0:
        return ApiErrorKind.REJECTED
    return ApiErrorKind.TRANSPORT


class MigrationToolkitError(Exception):
    """Base exception for all migration toolkit errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(MigrationToolkitError):
    """A referenced content type, element, workflow step or archive entry is missing."""


class DuplicateMappingError(MigrationToolkitError):
    """An identifier mapping was recorded twice with different targets."""

    def __init__(self, kind: str, codename: str, existing_id: str, new_id: str):
        super().__init__(
            f"Conflicting {kind} mapping for '{codename}': "
            f"already mapped to '{existing_id}', got '{new_id}'",
            {"kind": kind, "codename": codename, "existing_id": existing_id, "new_id": new_id},
        )
        self.kind = kind
        self.codename = codename


class NoPathError(MigrationToolkitError):
    """A workflow step cannot be reached from the current step."""

    def __init__(self, workflow: str, from_step: str, to_step: str):
        super().__init__(
            f"Could not find a path from step '{from_step}' to step '{to_step}' "
            f"in workflow '{workflow}'",
            {"workflow": workflow, "from_step": from_step, "to_step": to_step},
        )
        self.workflow = workflow
        self.from_step = from_step
        self.to_step = to_step


class ArchiveError(MigrationToolkitError):
    """The migration archive is malformed."""


class ImportAbortedError(MigrationToolkitError):
    """The import cannot continue."""


class RemoteApiError(MigrationToolkitError):
    """A classified failure of a remote API call."""

    kind = ApiErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        status: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.error_code = error_code
        self.status = status

    def __str__(self) -> str:
        parts = [self.message]
        if self.status is not None:
            parts.append(f"status={self.status}")
        if self.error_code is not None:
            parts.append(f"error_code={self.error_code}")
        return " ".join(parts)


class RateLimitedError(RemoteApiError):
    kind = ApiErrorKind.RATE_LIMITED


class RemoteRejectedError(RemoteApiError):
    kind = ApiErrorKind.REJECTED


class RemoteNotFoundError(RemoteRejectedError):
    kind = ApiErrorKind.NOT_FOUND


class TransportError(RemoteApiError):
    kind = ApiErrorKind.TRANSPORT


_ERRORS_BY_KIND = {
    ApiErrorKind.RATE_LIMITED: RateLimitedError,
    ApiErrorKind.REJECTED: RemoteRejectedError,
    ApiErrorKind.NOT_FOUND: RemoteNotFoundError,
    ApiErrorKind.TRANSPORT: TransportError,
}


def remote_error(
    message: str,
    error_code: Optional[int] = None,
    status: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
) -> RemoteApiError:
    """Build the exception matching the classified kind of a failure."""
    error_class = _ERRORS_BY_KIND[classify(error_code, status)]
    return error_class(message, error_code=error_code, status=status, details=details)
