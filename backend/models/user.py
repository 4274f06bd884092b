"""User account model."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, DateTime, String, func, text
from sqlmodel import Field, SQLModel

DEFAULT_ROLE = "user"


class User(SQLModel, table=True):
    """Registered account; the credential store consulted at login."""

    __tablename__ = "users"

    id: str = Field(default_factory=lambda: str(uuid4()), sa_column=Column(String(36), primary_key=True))
    username: str = Field(
        sa_column=Column(String(30), unique=True, nullable=False, index=True)
    )
    email: str = Field(
        sa_column=Column(String(255), unique=True, nullable=False, index=True)
    )
    # Encoded Argon2 string; written at registration only.
    password_hash: str = Field(
        sa_column=Column(String(255), nullable=False)
    )
    role: str = Field(
        default=DEFAULT_ROLE,
        sa_column=Column(
            String(20),
            nullable=False,
            server_default=text(f"'{DEFAULT_ROLE}'"),
        ),
    )
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
