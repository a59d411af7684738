"""Shared bases for domain entities and their tables."""

import uuid
from datetime import UTC, datetime

import sqlalchemy as sa
from pydantic import BaseModel
from pydantic import Field as PydanticField
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(UTC)


class Entity(BaseModel):
    """Domain object with an immutable string id and storage timestamps."""

    id: str = PydanticField(
        default_factory=lambda: str(uuid.uuid4()),
        frozen=True,
        description="Identifier, fixed at creation",
    )
    created_at: datetime = PydanticField(default_factory=utcnow)
    updated_at: datetime = PydanticField(default_factory=utcnow)


class EntityTable(SQLModel, table=False):
    """Table base: string primary key, ``updated_at`` refreshed on every UPDATE."""

    id: str = Field(primary_key=True, max_length=128)
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now(), "onupdate": sa.func.now()},
    )
