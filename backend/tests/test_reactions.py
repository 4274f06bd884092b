"""Tests for the reaction ledger and its HTTP endpoints."""

import asyncio
from typing import Any, cast
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import create_access_token
from models import Post, PostReaction
from services import get_reaction_counts, react


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


async def _reaction_rows(session: AsyncSession, post_id: str, user_id: str | None = None) -> int:
    query = select(func.count()).select_from(PostReaction).where(_eq(PostReaction.post_id, post_id))
    if user_id is not None:
        query = query.where(_eq(PostReaction.user_id, user_id))
    result = await session.execute(query)
    return int(result.scalar_one())


def _auth_headers(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.mark.asyncio
async def test_counts_default_to_zero(db_session: AsyncSession, make_user, make_post):
    author = await make_user(f"author_{uuid4().hex[:6]}")
    post = await make_post(author)

    counts = await get_reaction_counts(db_session, post.id)

    assert (counts.like_count, counts.dislike_count) == (0, 0)
    assert counts.post_id == post.id


@pytest.mark.asyncio
async def test_repeat_reaction_is_idempotent(db_session: AsyncSession, make_user, make_post):
    author = await make_user(f"author_{uuid4().hex[:6]}")
    post = await make_post(author)

    first = await react(db_session, user_id=author.id, post_id=post.id, is_like=True)
    second = await react(db_session, user_id=author.id, post_id=post.id, is_like=True)

    assert first == second
    assert (second.like_count, second.dislike_count) == (1, 0)
    assert await _reaction_rows(db_session, post.id, author.id) == 1


@pytest.mark.asyncio
async def test_flipping_reaction_moves_count(db_session: AsyncSession, make_user, make_post):
    author = await make_user(f"author_{uuid4().hex[:6]}")
    post = await make_post(author)

    liked = await react(db_session, user_id=author.id, post_id=post.id, is_like=True)
    disliked = await react(db_session, user_id=author.id, post_id=post.id, is_like=False)

    assert disliked.like_count == liked.like_count - 1
    assert disliked.dislike_count == liked.dislike_count + 1
    assert await _reaction_rows(db_session, post.id, author.id) == 1


@pytest.mark.asyncio
async def test_counts_are_scoped_to_post(db_session: AsyncSession, make_user, make_post):
    author = await make_user(f"author_{uuid4().hex[:6]}")
    first_post = await make_post(author, title="one")
    second_post = await make_post(author, title="two")

    await react(db_session, user_id=author.id, post_id=first_post.id, is_like=True)
    counts = await get_reaction_counts(db_session, second_post.id)

    assert (counts.like_count, counts.dislike_count) == (0, 0)


@pytest.mark.asyncio
async def test_concurrent_reactions_from_distinct_accounts_both_persist(
    session_maker, db_session: AsyncSession, make_user, make_post
):
    alice = await make_user(f"alice_{uuid4().hex[:6]}")
    bob = await make_user(f"bob_{uuid4().hex[:6]}")
    post = await make_post(alice)

    async def _react(user_id: str, is_like: bool):
        async with session_maker() as session:
            return await react(session, user_id=user_id, post_id=post.id, is_like=is_like)

    await asyncio.gather(_react(alice.id, True), _react(bob.id, False))

    counts = await get_reaction_counts(db_session, post.id)
    assert counts.like_count + counts.dislike_count == 2
    assert (counts.like_count, counts.dislike_count) == (1, 1)


@pytest.mark.asyncio
async def test_concurrent_reactions_from_same_account_keep_one_row(
    session_maker, db_session: AsyncSession, make_user, make_post
):
    alice = await make_user(f"alice_{uuid4().hex[:6]}")
    post = await make_post(alice)

    async def _react(is_like: bool):
        async with session_maker() as session:
            return await react(session, user_id=alice.id, post_id=post.id, is_like=is_like)

    await asyncio.gather(*(_react(index % 2 == 0) for index in range(6)))

    assert await _reaction_rows(db_session, post.id, alice.id) == 1
    counts = await get_reaction_counts(db_session, post.id)
    assert counts.like_count + counts.dislike_count == 1


@pytest.mark.asyncio
async def test_lookup_then_write_flips_in_place(db_session: AsyncSession, make_user, make_post, monkeypatch):
    monkeypatch.setattr("services.reactions._UPSERT_INSERTS", {})
    author = await make_user(f"author_{uuid4().hex[:6]}")
    post = await make_post(author)

    liked = await react(db_session, user_id=author.id, post_id=post.id, is_like=True)
    disliked = await react(db_session, user_id=author.id, post_id=post.id, is_like=False)

    assert (liked.like_count, liked.dislike_count) == (1, 0)
    assert (disliked.like_count, disliked.dislike_count) == (0, 1)
    assert await _reaction_rows(db_session, post.id, author.id) == 1


@pytest.mark.asyncio
async def test_lookup_then_write_keeps_one_row_under_concurrency(
    session_maker, db_session: AsyncSession, make_user, make_post, monkeypatch
):
    monkeypatch.setattr("services.reactions._UPSERT_INSERTS", {})
    alice = await make_user(f"alice_{uuid4().hex[:6]}")
    post = await make_post(alice)

    async def _react(is_like: bool):
        async with session_maker() as session:
            return await react(session, user_id=alice.id, post_id=post.id, is_like=is_like)

    await asyncio.gather(*(_react(True) for _ in range(6)))

    assert await _reaction_rows(db_session, post.id, alice.id) == 1

    flipped = await react(db_session, user_id=alice.id, post_id=post.id, is_like=False)
    assert (flipped.like_count, flipped.dislike_count) == (0, 1)
    assert await _reaction_rows(db_session, post.id, alice.id) == 1


@pytest.mark.asyncio
async def test_react_endpoint_requires_authentication(async_client, make_user, make_post):
    author = await make_user(f"author_{uuid4().hex[:6]}")
    post = await make_post(author)

    response = await async_client.post(f"/api/v1/post/{post.id}/react", json={"is_like": True})

    assert response.status_code == 401
    assert response.json()["status"] == "fail"


@pytest.mark.asyncio
async def test_react_endpoint_returns_counts(async_client, make_user, make_post):
    author = await make_user(f"author_{uuid4().hex[:6]}")
    viewer = await make_user(f"viewer_{uuid4().hex[:6]}")
    post = await make_post(author)

    await async_client.post(
        f"/api/v1/post/{post.id}/react",
        json={"is_like": False},
        headers=_auth_headers(author.id),
    )
    response = await async_client.post(
        f"/api/v1/post/{post.id}/react",
        json={"is_like": True},
        headers=_auth_headers(viewer.id),
    )

    assert response.status_code == 200
    assert response.json() == {
        "status": "success",
        "message": "Reaction recorded",
        "data": {"postId": post.id, "likeCount": 1, "dislikeCount": 1},
    }


@pytest.mark.asyncio
async def test_react_to_missing_post_is_not_found(async_client, db_session: AsyncSession, make_user):
    user = await make_user(f"user_{uuid4().hex[:6]}")
    missing_post_id = str(uuid4())

    response = await async_client.post(
        f"/api/v1/post/{missing_post_id}/react",
        json={"is_like": True},
        headers=_auth_headers(user.id),
    )

    assert response.status_code == 404
    assert response.json()["status"] == "fail"
    assert await _reaction_rows(db_session, missing_post_id) == 0


@pytest.mark.asyncio
async def test_react_requires_boolean_body(async_client, make_user, make_post):
    user = await make_user(f"user_{uuid4().hex[:6]}")
    post = await make_post(user)

    response = await async_client.post(
        f"/api/v1/post/{post.id}/react",
        json={},
        headers=_auth_headers(user.id),
    )

    assert response.status_code == 400
    assert response.json()["status"] == "fail"


@pytest.mark.asyncio
async def test_store_failure_returns_error_envelope(async_client, make_user, make_post, monkeypatch):
    user = await make_user(f"user_{uuid4().hex[:6]}")
    post = await make_post(user)

    async def failing_react(*args, **kwargs):
        raise SQLAlchemyError("database went away")

    monkeypatch.setattr("api.v1.posts.react", failing_react)
    response = await async_client.post(
        f"/api/v1/post/{post.id}/react",
        json={"is_like": True},
        headers=_auth_headers(user.id),
    )

    assert response.status_code == 500
    assert response.json() == {
        "status": "error",
        "message": "Internal server error",
        "data": None,
    }


@pytest.mark.asyncio
async def test_reaction_summary_is_public(async_client, make_user, make_post):
    author = await make_user(f"author_{uuid4().hex[:6]}")
    post = await make_post(author)
    await async_client.post(
        f"/api/v1/post/{post.id}/react",
        json={"is_like": True},
        headers=_auth_headers(author.id),
    )

    response = await async_client.get(f"/api/v1/post/{post.id}/reactions")

    assert response.status_code == 200
    assert response.json()["data"] == {"postId": post.id, "likeCount": 1, "dislikeCount": 0}

    missing = await async_client.get(f"/api/v1/post/{uuid4()}/reactions")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_register_login_and_react_end_to_end(async_client, db_session: AsyncSession):
    register = await async_client.post(
        "/api/v1/auth/register",
        json={"username": "ada", "email": "ada@x.com", "password": "p@ss"},
    )
    assert register.status_code == 200
    assert register.json()["status"] == "success"

    wrong = await async_client.post(
        "/api/v1/auth/login",
        json={"username": "ada", "password": "wrong"},
    )
    assert wrong.status_code == 400
    assert wrong.json()["status"] == "fail"

    login = await async_client.post(
        "/api/v1/auth/login",
        json={"username": "ada", "password": "p@ss"},
    )
    assert login.status_code == 200
    assert login.cookies.get("token")

    me = await async_client.get("/api/v1/auth/is_logged_in")
    assert me.status_code == 200

    post = Post(user_id=register.json()["data"]["id"], title="P", content="post body")
    db_session.add(post)
    await db_session.commit()

    liked = await async_client.post(f"/api/v1/post/{post.id}/react", json={"is_like": True})
    assert liked.status_code == 200
    assert liked.json()["data"] == {"postId": post.id, "likeCount": 1, "dislikeCount": 0}

    disliked = await async_client.post(f"/api/v1/post/{post.id}/react", json={"is_like": False})
    assert disliked.status_code == 200
    assert disliked.json()["data"] == {"postId": post.id, "likeCount": 0, "dislikeCount": 1}
