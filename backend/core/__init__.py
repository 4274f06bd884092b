"""Core configuration, security and error primitives."""

from .config import Settings, settings
from .errors import (
    INTERNAL_ERROR_MESSAGE,
    ApiError,
    BadRequest,
    InternalServerError,
    NotFound,
    Unauthorized,
)
from .logging import configure_logging
from .security import (
    create_access_token,
    decode_token,
    hash_password,
    needs_rehash,
    verify_password,
)

__all__ = [
    "Settings",
    "settings",
    "INTERNAL_ERROR_MESSAGE",
    "ApiError",
    "BadRequest",
    "InternalServerError",
    "NotFound",
    "Unauthorized",
    "configure_logging",
    "create_access_token",
    "decode_token",
    "hash_password",
    "needs_rehash",
    "verify_password",
]
