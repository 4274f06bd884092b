"""Business logic services."""

from .post_policy import require_post_exists
from .reactions import ReactionCounts, get_reaction_counts, react

__all__ = [
    "ReactionCounts",
    "get_reaction_counts",
    "react",
    "require_post_exists",
]
