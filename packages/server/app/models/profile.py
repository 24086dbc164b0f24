"""Profile model: exactly one per authenticated identity (profiles.id == users.id)."""

from datetime import datetime
from typing import Any, Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin


class Profile(TimestampMixin, SQLModel, table=True):
    __tablename__ = "profiles"

    id: uuid.UUID = Field(foreign_key="users.id", primary_key=True)
    org_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    role: str = Field(default="contractor", nullable=False)  # admin | manager | contractor
    full_name: Optional[str] = None
    hourly_rate: Optional[float] = Field(default=None, ge=0)
    is_active: Optional[bool] = Field(default=True)  # null is treated as active
    manager_id: Optional[uuid.UUID] = Field(default=None, foreign_key="profiles.id", index=True)
    phone: Optional[str] = None
    address: Optional[str] = None
    avatar_url: Optional[str] = None
    ui_prefs: Optional[Any] = Field(default=None, sa_type=sa.JSON)
    onboarding_completed_at: Optional[datetime] = Field(
        default=None, sa_type=sa.DateTime(timezone=True)
    )
