"""Identity issuance: signed tokens or server-side sessions.

A deployment runs exactly one :class:`IdentityIssuer`, built at startup by
:func:`build_identity_issuer` and stored on ``app.state``. Both variants hand
the client a cookie; they differ in where the proof is checked and in what
logout means.
"""

from __future__ import annotations

import logging
import secrets
import time
from abc import ABC, abstractmethod
from typing import Callable

from fastapi import Request, Response
from redis.exceptions import RedisError

from core import InternalServerError, Settings, Unauthorized, create_access_token, decode_token

from .cookies import SESSION_COOKIE, TOKEN_COOKIE, clear_identity_cookie, set_identity_cookie
from .session_store import SessionStore, get_session_store

logger = logging.getLogger(__name__)

NOT_LOGGED_IN = "You are not logged in"


def _extract_bearer_token(request: Request) -> str | None:
    authorization = request.headers.get("authorization")
    if not authorization:
        return None

    scheme, _, value = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = value.strip()
    return token or None


class IdentityIssuer(ABC):
    """Creates, resolves and revokes identity proofs."""

    cookie_name: str
    requires_identity_for_logout: bool

    def extract_proof(self, request: Request) -> str | None:
        value = request.cookies.get(self.cookie_name)
        if value is None:
            return None
        value = value.strip()
        return value or None

    @abstractmethod
    async def issue(self, response: Response, user_id: str) -> str:
        """Create a proof for ``user_id`` and attach it to ``response``."""

    @abstractmethod
    async def resolve(self, request: Request) -> str:
        """Return the account id carried by the request's proof.

        Raises ``Unauthorized`` when the proof is absent, invalid or expired.
        """

    @abstractmethod
    async def revoke(self, request: Request, response: Response) -> None:
        """Log the client out."""


class TokenIdentityIssuer(IdentityIssuer):
    """Stateless strategy: an HS256 JWT carried in the ``token`` cookie.

    Logout only clears the cookie. A copied token stays valid until its
    embedded expiry; there is no server-side denylist.
    """

    cookie_name = TOKEN_COOKIE
    requires_identity_for_logout = False

    def __init__(self, expires_minutes: int) -> None:
        self.expires_minutes = expires_minutes

    def extract_proof(self, request: Request) -> str | None:
        return super().extract_proof(request) or _extract_bearer_token(request)

    async def issue(self, response: Response, user_id: str) -> str:
        token = create_access_token(user_id, expires_minutes=self.expires_minutes)
        set_identity_cookie(
            response,
            self.cookie_name,
            token,
            max_age=self.expires_minutes * 60,
        )
        return token

    async def resolve(self, request: Request) -> str:
        token = self.extract_proof(request)
        if token is None:
            raise Unauthorized(NOT_LOGGED_IN)
        try:
            payload = decode_token(token)
        except ValueError as exc:
            logger.info("Rejected access token: %s", exc)
            raise Unauthorized("Invalid or expired token") from exc
        return str(payload["sub"])

    async def revoke(self, request: Request, response: Response) -> None:
        clear_identity_cookie(response, self.cookie_name)


class SessionIdentityIssuer(IdentityIssuer):
    """Stateful strategy: an opaque key resolved through a shared store.

    Expiry slides forward on every resolved request. When
    ``absolute_ttl_minutes`` is positive a session is also capped at that age
    regardless of activity. Logout deletes the record, so revocation is
    immediate.
    """

    cookie_name = SESSION_COOKIE
    requires_identity_for_logout = True

    def __init__(
        self,
        store: SessionStore,
        *,
        expires_minutes: int,
        absolute_ttl_minutes: int = 0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.ttl_seconds = expires_minutes * 60
        self.absolute_ttl_seconds = absolute_ttl_minutes * 60
        self.clock = clock

    async def issue(self, response: Response, user_id: str) -> str:
        session_key = secrets.token_urlsafe(32)
        attributes = {"user_id": user_id, "created_at": int(self.clock())}
        try:
            await self.store.set(session_key, attributes, self.ttl_seconds)
        except RedisError as exc:
            logger.exception("Session store unavailable while creating a session")
            raise InternalServerError() from exc
        set_identity_cookie(response, self.cookie_name, session_key)
        return session_key

    def _exceeds_ceiling(self, attributes: dict) -> bool:
        if self.absolute_ttl_seconds <= 0:
            return False
        created_at = attributes.get("created_at")
        if not isinstance(created_at, (int, float)):
            return True
        return self.clock() - created_at >= self.absolute_ttl_seconds

    async def resolve(self, request: Request) -> str:
        session_key = self.extract_proof(request)
        if session_key is None:
            raise Unauthorized(NOT_LOGGED_IN)

        try:
            attributes = await self.store.get(session_key)
            if attributes is None:
                raise Unauthorized("Session expired or invalid")

            user_id = attributes.get("user_id")
            if not isinstance(user_id, str) or not user_id:
                await self.store.delete(session_key)
                raise Unauthorized("Session expired or invalid")

            if self._exceeds_ceiling(attributes):
                await self.store.delete(session_key)
                raise Unauthorized("Session expired or invalid")

            await self.store.touch(session_key, self.ttl_seconds)
        except RedisError as exc:
            logger.exception("Session store unavailable while resolving a session")
            raise InternalServerError() from exc
        return user_id

    async def revoke(self, request: Request, response: Response) -> None:
        session_key = self.extract_proof(request)
        if session_key is None:
            raise Unauthorized(NOT_LOGGED_IN)
        try:
            await self.store.delete(session_key)
        except RedisError as exc:
            logger.exception("Session store unavailable while deleting a session")
            raise InternalServerError() from exc
        clear_identity_cookie(response, self.cookie_name)


def build_identity_issuer(
    config: Settings,
    *,
    session_store: SessionStore | None = None,
) -> IdentityIssuer:
    """Build the single issuer selected by ``config.identity_strategy``."""
    if config.identity_strategy == "session":
        return SessionIdentityIssuer(
            session_store or get_session_store(),
            expires_minutes=config.session_expire_minutes,
            absolute_ttl_minutes=config.session_absolute_ttl_minutes,
        )
    if config.identity_strategy == "token":
        return TokenIdentityIssuer(expires_minutes=config.access_token_expire_minutes)
    raise ValueError(f"Unknown identity strategy: {config.identity_strategy}")
