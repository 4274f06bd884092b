"""Post existence checks run before touching the reaction ledger."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import NotFound
from models import Post


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


async def require_post_exists(
    session: AsyncSession,
    post_id: str,
) -> str:
    """Return the post author id or raise 404 when the post does not exist."""
    post_author_column = cast(ColumnElement[str], Post.user_id)
    result = await session.execute(
        select(post_author_column)
        .where(_eq(Post.id, post_id))
        .limit(1)
    )
    author_id = result.scalar_one_or_none()
    if author_id is None:
        raise NotFound("Post not found")
    return author_id
