"""Authentication identity (credentials only; everything else lives on Profile)."""

from typing import Optional

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class User(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    email: str = Field(unique=True, index=True, nullable=False)
    password_hash: Optional[str] = Field(default=None)  # bcrypt
