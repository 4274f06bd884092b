"""Post reaction endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db
from core import InternalServerError
from models import User
from services import get_reaction_counts, react, require_post_exists

from .responses import ApiResponse, success

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/post", tags=["posts"])


class ReactRequest(BaseModel):
    is_like: bool


@router.post("/{post_id}/react", response_model=ApiResponse)
async def react_to_post(
    post_id: str,
    payload: ReactRequest,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ApiResponse:
    await require_post_exists(session, post_id)

    try:
        counts = await react(
            session,
            user_id=current_user.id,
            post_id=post_id,
            is_like=payload.is_like,
        )
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("Failed to record reaction on post %s", post_id)
        raise InternalServerError() from exc

    return success("Reaction recorded", counts.to_payload())


@router.get("/{post_id}/reactions", response_model=ApiResponse)
async def get_post_reactions(
    post_id: str,
    session: AsyncSession = Depends(get_db),
) -> ApiResponse:
    await require_post_exists(session, post_id)
    counts = await get_reaction_counts(session, post_id)
    return success("Reactions retrieved", counts.to_payload())
