"""Authentication domain services."""

from .cookies import (
    SESSION_COOKIE,
    TOKEN_COOKIE,
    clear_identity_cookie,
    set_identity_cookie,
)
from .identity import (
    IdentityIssuer,
    SessionIdentityIssuer,
    TokenIdentityIssuer,
    build_identity_issuer,
)
from .identity_resolution import (
    find_account_by_id,
    find_account_by_username,
    find_account_conflict,
    insert_account,
    normalize_email,
    resolve_login_user,
)
from .session_store import RedisSessionStore, SessionStore, get_session_store

__all__ = [
    "SESSION_COOKIE",
    "TOKEN_COOKIE",
    "clear_identity_cookie",
    "set_identity_cookie",
    "IdentityIssuer",
    "SessionIdentityIssuer",
    "TokenIdentityIssuer",
    "build_identity_issuer",
    "find_account_by_id",
    "find_account_by_username",
    "find_account_conflict",
    "insert_account",
    "normalize_email",
    "resolve_login_user",
    "RedisSessionStore",
    "SessionStore",
    "get_session_store",
]
