"""Credential-store access and login-user resolution helpers."""

from __future__ import annotations

import asyncio
from typing import Any, cast

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import hash_password, needs_rehash, verify_password
from models import User


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def normalize_email(value: str) -> str:
    return value.strip().lower()


async def find_account_by_username(session: AsyncSession, username: str) -> User | None:
    result = await session.execute(select(User).where(_eq(User.username, username)).limit(1))
    return result.scalar_one_or_none()


async def find_account_by_id(session: AsyncSession, user_id: str) -> User | None:
    return await session.get(User, user_id)


async def find_account_conflict(
    session: AsyncSession,
    *,
    username: str,
    normalized_email: str,
) -> str | None:
    """Return ``"username"`` or ``"email"`` when either is already taken.

    This pre-check only produces a precise message; the unique constraints on
    ``users`` remain the authority under concurrent registrations.
    """
    lowered_email_column = cast(Any, func.lower(cast(Any, User.email)))
    result = await session.execute(
        select(User.username, User.email)
        .where(
            or_(
                _eq(User.username, username),
                _eq(lowered_email_column, normalized_email),
            )
        )
        .limit(2)
    )
    rows = result.all()
    if any(row.username == username for row in rows):
        return "username"
    if rows:
        return "email"
    return None


async def insert_account(
    session: AsyncSession,
    *,
    username: str,
    email: str,
    password_hash: str,
) -> str:
    """Insert and commit a new account, returning its id.

    A uniqueness conflict rolls the session back and re-raises the
    ``IntegrityError`` for the caller to classify.
    """
    user = User(username=username, email=email, password_hash=password_hash)
    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise
    return user.id


async def resolve_login_user(
    session: AsyncSession,
    *,
    username: str,
    password: str,
) -> User | None:
    """Return the account when ``password`` matches its stored hash.

    Argon2 verification runs in a worker thread so concurrent requests keep
    being served while it computes.
    """
    user = await find_account_by_username(session, username)
    if user is None:
        return None

    is_valid = await asyncio.to_thread(verify_password, password, user.password_hash)
    if not is_valid:
        return None

    if needs_rehash(user.password_hash):
        user.password_hash = await asyncio.to_thread(hash_password, password)
        await session.commit()
    return user
