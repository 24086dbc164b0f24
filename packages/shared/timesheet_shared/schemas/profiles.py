"""Profile schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from .common import Role
from ..preferences import UiPrefs


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class ProfileUpdate(BaseModel):
    """Partial update of a profile row. Only fields that are set are written."""
    full_name: Optional[str] = Field(default=None, max_length=200)
    role: Optional[Role] = None
    hourly_rate: Optional[float] = Field(default=None, ge=0)
    manager_id: Optional[UUID] = None
    is_active: Optional[bool] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=500)
    avatar_url: Optional[str] = Field(default=None, max_length=2000)


class ProfileSelfUpdate(BaseModel):
    """Personal details a user edits on their own profile."""
    full_name: Optional[str] = Field(default=None, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=500)
    avatar_url: Optional[str] = Field(default=None, max_length=2000)


class UiPrefsUpdate(BaseModel):
    ui_prefs: UiPrefs


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class ProfileRead(BaseModel):
    id: UUID
    org_id: Optional[UUID] = None
    role: Role = Role.CONTRACTOR
    full_name: Optional[str] = None
    hourly_rate: Optional[float] = None
    is_active: Optional[bool] = None
    manager_id: Optional[UUID] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    avatar_url: Optional[str] = None
    ui_prefs: Optional[Any] = None
    onboarding_completed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("role", mode="before")
    @classmethod
    def _known_role(cls, value):
        # Unrecognised roles carry no privileges.
        try:
            return Role(value)
        except ValueError:
            return Role.CONTRACTOR

    @property
    def active(self) -> bool:
        return self.is_active is not False


class SessionRead(BaseModel):
    user_id: UUID
    expires_at: datetime


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: UUID
    expires_at: datetime
