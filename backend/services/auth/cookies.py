"""HTTP cookie helpers for identity-proof transport."""

from __future__ import annotations

from typing import Literal

from fastapi import Response

from core import settings

TOKEN_COOKIE = "token"
SESSION_COOKIE = "session_id"
COOKIE_PATH = "/"
COOKIE_SAMESITE: Literal["lax", "strict", "none"] = "lax"


def cookie_secure() -> bool:
    return not settings.is_local_env and not settings.allow_insecure_http_cookies


def set_identity_cookie(
    response: Response,
    name: str,
    value: str,
    *,
    max_age: int | None = None,
) -> None:
    """Attach the proof cookie; ``max_age=None`` makes it a browser-session cookie."""
    response.set_cookie(
        key=name,
        value=value,
        httponly=True,
        secure=cookie_secure(),
        samesite=COOKIE_SAMESITE,
        max_age=max_age,
        path=COOKIE_PATH,
    )


def clear_identity_cookie(response: Response, name: str) -> None:
    """Reissue ``name`` with an already-expired max-age."""
    response.delete_cookie(
        key=name,
        path=COOKIE_PATH,
        secure=cookie_secure(),
        httponly=True,
        samesite=COOKIE_SAMESITE,
    )
