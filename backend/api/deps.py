"""Shared FastAPI dependencies: database sessions and the authorization gate."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core import InternalServerError, Unauthorized
from db.session import get_session
from models import User
from services.auth import IdentityIssuer, find_account_by_id

logger = logging.getLogger(__name__)


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


def get_identity_issuer(request: Request) -> IdentityIssuer:
    """Return the issuer configured for this application at startup."""
    return request.app.state.identity_issuer


async def authenticate_request(
    request: Request,
    session: AsyncSession,
    issuer: IdentityIssuer,
) -> User:
    """Resolve the request's identity proof to a currently existing account."""
    user_id = await issuer.resolve(request)

    try:
        user = await find_account_by_id(session, user_id)
    except SQLAlchemyError as exc:
        logger.exception("Account lookup failed during authorization")
        raise InternalServerError() from exc

    # A valid proof for a deleted account is not enough.
    if user is None:
        logger.info("Rejected proof for missing account %s", user_id)
        raise Unauthorized("User unauthorized")
    return user


async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(get_db),
    issuer: IdentityIssuer = Depends(get_identity_issuer),
) -> User:
    return await authenticate_request(request, session, issuer)


async def get_logout_identity(
    request: Request,
    session: AsyncSession = Depends(get_db),
    issuer: IdentityIssuer = Depends(get_identity_issuer),
) -> User | None:
    """Session logout needs a live session; token logout accepts anyone."""
    if not issuer.requires_identity_for_logout:
        return None
    return await authenticate_request(request, session, issuer)
