# app/actas/exceptions.py

"""
Custom exceptions for the Actas and Signatures modules.

Every exception carries a `kind` from the error taxonomy shared by the
minutes API; routers map kinds onto HTTP status codes with
`convert_to_http_exception`.
"""

from typing import Optional

from fastapi import HTTPException, status


class ActaBaseException(Exception):
    """Base exception for all acta-related errors."""
    kind = "internal"

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidArgumentException(ActaBaseException):
    """Raised when a required input is missing or malformed."""
    kind = "invalid_argument"


class UnauthenticatedException(ActaBaseException):
    """Raised when no caller identity is present."""
    kind = "unauthenticated"

    def __init__(self, message: str = "Authentication is required for this operation"):
        super().__init__(message)


class PermissionDeniedException(ActaBaseException):
    """Raised when the caller has no rights over the acta or a token does not match."""
    kind = "permission_denied"


class ActaNotFoundException(ActaBaseException):
    """Raised when an acta does not exist."""
    kind = "not_found"

    def __init__(self, acta_id: str):
        super().__init__(f"Acta {acta_id} not found", {"acta_id": acta_id})


class AttendeeNotFoundException(ActaBaseException):
    """Raised when an attendee does not exist in the acta."""
    kind = "not_found"

    def __init__(self, acta_id: str, attendee_id: str):
        super().__init__(
            f"Attendee {attendee_id} not found in acta {acta_id}",
            {"acta_id": acta_id, "attendee_id": attendee_id},
        )


class AlreadySignedException(ActaBaseException):
    """Raised when recording a signature for an attendee that already signed."""
    kind = "already_exists"

    def __init__(self, acta_id: str, attendee_id: str):
        super().__init__(
            f"Attendee {attendee_id} has already signed acta {acta_id}",
            {"acta_id": acta_id, "attendee_id": attendee_id},
        )


class ConcurrentModificationException(ActaBaseException):
    """Raised when the acta changed between read and conditional write."""
    kind = "aborted"

    def __init__(self, acta_id: str):
        super().__init__(
            f"Acta {acta_id} was modified concurrently, retry the operation",
            {"acta_id": acta_id},
        )


class InternalStorageException(ActaBaseException):
    """Raised when the underlying storage cannot be read or written."""
    kind = "internal"


STATUS_BY_KIND = {
    "invalid_argument": status.HTTP_400_BAD_REQUEST,
    "unauthenticated": status.HTTP_401_UNAUTHORIZED,
    "permission_denied": status.HTTP_403_FORBIDDEN,
    "not_found": status.HTTP_404_NOT_FOUND,
    "already_exists": status.HTTP_409_CONFLICT,
    "aborted": status.HTTP_409_CONFLICT,
    "internal": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def convert_to_http_exception(exc: ActaBaseException) -> HTTPException:
    """
    Convert an ActaBaseException to an HTTPException with appropriate status code.

    Args:
        exc: The acta exception to convert

    Returns:
        HTTPException with appropriate status code and detail
    """
    status_code = STATUS_BY_KIND.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    headers = {"WWW-Authenticate": "Bearer"} if exc.kind == "unauthenticated" else None
    return HTTPException(
        status_code=status_code,
        detail={"message": exc.message, "details": exc.details, "kind": exc.kind},
        headers=headers,
    )
