"""Authentication endpoints."""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db, get_identity_issuer, get_logout_identity
from core import BadRequest, InternalServerError, hash_password
from db.errors import unique_violation_column
from models import User
from services.auth import (
    IdentityIssuer,
    find_account_conflict,
    insert_account,
    normalize_email,
    resolve_login_user,
)

from .responses import ApiResponse, success

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

CONFLICT_MESSAGES = {
    "username": "Username already exists",
    "email": "Email is already in use",
}
INVALID_CREDENTIALS = "Invalid username or password"
# Constraint names as PostgreSQL reports them and table.column as SQLite does.
CONFLICT_CONSTRAINTS = {
    "username": ("ix_users_username", "users.username"),
    "email": ("ix_users_email", "users.email"),
}


class RegisterRequest(BaseModel):
    username: Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=30)]
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)

    @field_validator("username")
    @classmethod
    def _reject_email_like_username(cls, value: str) -> str:
        if "@" in value:
            raise ValueError("Username cannot contain '@'")
        return value


class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=30)
    password: str = Field(min_length=1, max_length=128)


class FilteredUser(BaseModel):
    """Public view of an account; never includes the hash or email."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str


@router.post("/register", response_model=ApiResponse)
async def register(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_db),
) -> ApiResponse:
    normalized_email = normalize_email(str(payload.email))
    conflict = await find_account_conflict(
        session,
        username=payload.username,
        normalized_email=normalized_email,
    )
    if conflict is not None:
        raise BadRequest(CONFLICT_MESSAGES[conflict])

    password_hash = await asyncio.to_thread(hash_password, payload.password)
    try:
        user_id = await insert_account(
            session,
            username=payload.username,
            email=normalized_email,
            password_hash=password_hash,
        )
    except IntegrityError as exc:
        # Lost a race with a concurrent registration for the same name or email.
        column = unique_violation_column(exc, CONFLICT_CONSTRAINTS)
        if column is not None:
            raise BadRequest(CONFLICT_MESSAGES[column]) from exc
        logger.exception("Account insert failed")
        raise InternalServerError() from exc

    logger.info("Registered account %s", user_id)
    return success(
        "User has been registered",
        {"id": user_id, "username": payload.username},
    )


@router.post("/login", response_model=ApiResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_db),
    issuer: IdentityIssuer = Depends(get_identity_issuer),
) -> ApiResponse:
    user = await resolve_login_user(
        session,
        username=payload.username.strip(),
        password=payload.password,
    )
    if user is None:
        raise BadRequest(INVALID_CREDENTIALS)

    await issuer.issue(response, user.id)
    return success(
        "User has been logged in",
        {"user": FilteredUser.model_validate(user).model_dump()},
    )


@router.api_route("/logout", methods=["GET", "POST"], response_model=ApiResponse)
async def logout(
    request: Request,
    response: Response,
    _: User | None = Depends(get_logout_identity),
    issuer: IdentityIssuer = Depends(get_identity_issuer),
) -> ApiResponse:
    await issuer.revoke(request, response)
    return success("User has been logged out")


@router.get("/is_logged_in", response_model=ApiResponse)
async def is_logged_in(
    current_user: User = Depends(get_current_user),
) -> ApiResponse:
    return success(
        "User is logged in",
        FilteredUser.model_validate(current_user).model_dump(),
    )
