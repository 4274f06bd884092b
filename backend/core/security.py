"""Password hashing and signed access-token helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from .config import settings

REQUIRED_TOKEN_CLAIMS = ("sub", "iat", "exp")

_password_hasher = PasswordHasher()


def hash_password(password: str | bytes) -> str:
    """Return an encoded Argon2id hash with a fresh random salt."""
    return _password_hasher.hash(password)


def verify_password(password: str | bytes, password_hash: str) -> bool:
    """Check ``password`` against a stored hash.

    A malformed or unparsable stored hash counts as a mismatch so callers
    cannot tell a corrupt record apart from a wrong password.
    """
    try:
        return _password_hasher.verify(password_hash, password)
    except (VerificationError, InvalidHashError, ValueError):
        # ValueError covers hashes argon2 cannot even ASCII-encode.
        return False


def needs_rehash(password_hash: str) -> bool:
    try:
        return _password_hasher.check_needs_rehash(password_hash)
    except (InvalidHashError, ValueError):
        return False


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(
    subject: str,
    *,
    now: datetime | None = None,
    expires_minutes: int | None = None,
) -> str:
    """Sign ``{sub, iat, exp}`` for ``subject`` with the configured secret."""
    issued_at = now or _utcnow()
    lifetime = timedelta(
        minutes=expires_minutes
        if expires_minutes is not None
        else settings.access_token_expire_minutes
    )
    payload = {
        "sub": subject,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + lifetime).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str, *, now: datetime | None = None) -> dict[str, Any]:
    """Verify signature and expiry, returning the claims.

    Raises ``ValueError`` for any bad signature, malformed token, missing claim
    or expired token. Expiry is checked against ``now`` so callers (and tests)
    can evaluate a token at an arbitrary instant.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={
                "require": list(REQUIRED_TOKEN_CLAIMS),
                "verify_exp": False,
                "verify_iat": False,
            },
        )
    except jwt.PyJWTError as exc:
        raise ValueError("Invalid token") from exc

    expires_at = payload.get("exp")
    if not isinstance(expires_at, int):
        raise ValueError("Invalid token expiry")

    checked_at = (now or _utcnow()).timestamp()
    if checked_at >= expires_at:
        raise ValueError("Token expired")

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.strip():
        raise ValueError("Invalid token subject")
    return payload


__all__ = [
    "hash_password",
    "verify_password",
    "needs_rehash",
    "create_access_token",
    "decode_token",
]
