"""Reaction ledger: one like/dislike per (post, account) and derived counts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, cast
from uuid import uuid4

from sqlalchemy import case, func, select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from db.errors import is_unique_violation
from models import PostReaction

logger = logging.getLogger(__name__)

# Dialects whose INSERT supports ON CONFLICT DO UPDATE.
_UPSERT_INSERTS: dict[str, Callable[..., Any]] = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


@dataclass(frozen=True)
class ReactionCounts:
    post_id: str
    like_count: int
    dislike_count: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "postId": self.post_id,
            "likeCount": self.like_count,
            "dislikeCount": self.dislike_count,
        }


async def _upsert_on_conflict(
    session: AsyncSession,
    insert_factory: Callable[..., Any],
    *,
    user_id: str,
    post_id: str,
    is_like: bool,
) -> None:
    table = cast(Any, PostReaction).__table__
    stmt = insert_factory(table).values(
        id=str(uuid4()),
        post_id=post_id,
        user_id=user_id,
        is_like=is_like,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.post_id, table.c.user_id],
        set_={"is_like": stmt.excluded.is_like, "updated_at": func.now()},
    )
    await session.execute(stmt)
    await session.commit()


async def _update_existing(
    session: AsyncSession,
    *,
    user_id: str,
    post_id: str,
    is_like: bool,
) -> None:
    await session.execute(
        update(PostReaction)
        .where(
            _eq(PostReaction.post_id, post_id),
            _eq(PostReaction.user_id, user_id),
        )
        .values(is_like=is_like)
    )
    await session.commit()


async def _lookup_then_write(
    session: AsyncSession,
    *,
    user_id: str,
    post_id: str,
    is_like: bool,
) -> None:
    existing = await session.execute(
        select(PostReaction.id).where(
            _eq(PostReaction.post_id, post_id),
            _eq(PostReaction.user_id, user_id),
        )
    )
    if existing.scalar_one_or_none() is not None:
        await _update_existing(session, user_id=user_id, post_id=post_id, is_like=is_like)
        return

    session.add(PostReaction(post_id=post_id, user_id=user_id, is_like=is_like))
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if not is_unique_violation(exc):
            raise
        # A concurrent request inserted the row first; ours becomes the update.
        await _update_existing(session, user_id=user_id, post_id=post_id, is_like=is_like)


async def get_reaction_counts(session: AsyncSession, post_id: str) -> ReactionCounts:
    """Count likes and dislikes for ``post_id`` straight from the rows."""
    is_like_column = cast(Any, PostReaction.is_like)
    like_count = func.coalesce(func.sum(case((_eq(is_like_column, True), 1), else_=0)), 0)
    dislike_count = func.coalesce(func.sum(case((_eq(is_like_column, False), 1), else_=0)), 0)
    result = await session.execute(
        select(like_count, dislike_count).where(_eq(PostReaction.post_id, post_id))
    )
    likes, dislikes = result.one()
    return ReactionCounts(
        post_id=post_id,
        like_count=int(likes or 0),
        dislike_count=int(dislikes or 0),
    )


async def react(
    session: AsyncSession,
    *,
    user_id: str,
    post_id: str,
    is_like: bool,
) -> ReactionCounts:
    """Record ``user_id``'s reaction to ``post_id`` and return fresh counts.

    Re-sending the same value leaves one row with the same state; sending the
    opposite value flips it in place. The post is assumed to exist: callers
    check that first, since the ledger does not.
    """
    dialect_name = session.get_bind().dialect.name
    insert_factory = _UPSERT_INSERTS.get(dialect_name)
    if insert_factory is not None:
        await _upsert_on_conflict(
            session,
            insert_factory,
            user_id=user_id,
            post_id=post_id,
            is_like=is_like,
        )
    else:
        logger.debug("No native upsert for dialect %s; using lookup-then-write", dialect_name)
        await _lookup_then_write(session, user_id=user_id, post_id=post_id, is_like=is_like)

    return await get_reaction_counts(session, post_id)


__all__ = ["ReactionCounts", "get_reaction_counts", "react"]
