"""SQLModel models package."""

from .post import Post
from .reaction import POST_USER_UNIQUE_CONSTRAINT, PostReaction
from .user import User

__all__ = [
    "User",
    "Post",
    "PostReaction",
    "POST_USER_UNIQUE_CONSTRAINT",
]
