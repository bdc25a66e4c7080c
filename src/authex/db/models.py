"""SQLAlchemy ORM models: the reference user schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] +
mapped_column). ``User`` mixes in ``UserSchema`` so the users context can
build changesets for it and verify its passwords. Host applications are
free to bring their own model instead; anything mixing in ``UserSchema``
works.

Key concepts:
- UUID primary keys (portable ``Uuid`` type, works on SQLite and PostgreSQL)
- unique login field, surfaced as a changeset error on conflict
- server_default for DB-level timestamps
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from authex.schema import UserSchema


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class User(UserSchema, Base):
    """A human user, identified by e-mail."""

    __tablename__ = "users"

    login_field = "email"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=new_uuid
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    password_hash: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"
