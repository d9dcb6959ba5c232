"""
Error kinds raised by services and dependencies.

Each one is an HTTPException so FastAPI renders it as {"detail": ...}
with the matching status code without extra handlers.
"""

from fastapi import HTTPException, status
from postgrest.exceptions import APIError

# Postgres SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"
# Postgres SQLSTATE for invalid_text_representation
INVALID_TEXT_REPRESENTATION = "22P02"


class ValidationError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class UnauthenticatedError(HTTPException):
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ConflictError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class UpstreamError(HTTPException):
    def __init__(self, detail: str = "Upstream service request failed"):
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)


class StoreError(HTTPException):
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


def is_unique_violation(exc: Exception) -> bool:
    return isinstance(exc, APIError) and str(getattr(exc, "code", "")) == UNIQUE_VIOLATION


def is_invalid_input(exc: Exception) -> bool:
    """True when Postgres rejected a filter value for its column type (e.g. a non-uuid id)"""
    return isinstance(exc, APIError) and str(getattr(exc, "code", "")) == INVALID_TEXT_REPRESENTATION
