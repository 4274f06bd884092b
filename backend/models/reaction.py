"""Post reaction (like / dislike) model."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlmodel import Field, SQLModel

POST_USER_UNIQUE_CONSTRAINT = "uq_post_reactions_post_user"


class PostReaction(SQLModel, table=True):
    """One account's vote on one post.

    The unique constraint on ``(post_id, user_id)`` is what keeps a single row
    per pair when the same account reacts from concurrent requests.
    """

    __tablename__ = "post_reactions"
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name=POST_USER_UNIQUE_CONSTRAINT),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), sa_column=Column(String(36), primary_key=True))
    post_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("posts.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    user_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        )
    )
    is_like: bool = Field(sa_column=Column(Boolean, nullable=False))
    created_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        ),
    )
    updated_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        ),
    )
