"""HTTP-facing error taxonomy shared by services and routes."""

from __future__ import annotations

from fastapi import HTTPException, status

INTERNAL_ERROR_MESSAGE = "Internal server error"


class ApiError(HTTPException):
    """Base class for errors that map onto a fixed HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = INTERNAL_ERROR_MESSAGE

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(
            status_code=type(self).status_code,
            detail=detail or self.default_detail,
        )


class Unauthorized(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "User unauthorized"


class BadRequest(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Bad request"


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class InternalServerError(ApiError):
    """Server-side failure; the client only ever sees the generic message."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self) -> None:
        super().__init__(INTERNAL_ERROR_MESSAGE)


__all__ = [
    "INTERNAL_ERROR_MESSAGE",
    "ApiError",
    "Unauthorized",
    "BadRequest",
    "NotFound",
    "InternalServerError",
]
