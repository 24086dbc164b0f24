from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from .common import WeekStart

PROJECT_NAME_MIN_LENGTH = 2


class ProjectCreate(BaseModel):
    name: str = Field(max_length=200)
    week_start: WeekStart = WeekStart.SUNDAY

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        valid, msg = validate_project_name(value)
        if not valid:
            raise ValueError(msg)
        return value.strip()


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=200)
    is_active: Optional[bool] = None
    week_start: Optional[WeekStart] = None

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        valid, msg = validate_project_name(value)
        if not valid:
            raise ValueError(msg)
        return value.strip()


class ProjectRead(BaseModel):
    id: UUID
    org_id: UUID
    name: str
    is_active: bool = True
    week_start: WeekStart = WeekStart.SUNDAY

    model_config = {"from_attributes": True}

    @field_validator("week_start", mode="before")
    @classmethod
    def _default_week_start(cls, value):
        return value or WeekStart.SUNDAY


class ProjectCounts(BaseModel):
    total: int = 0
    active: int = 0
    inactive: int = 0


class MembershipCreate(BaseModel):
    project_id: UUID
    profile_id: UUID


class MembershipUpdate(BaseModel):
    is_active: bool


class MembershipRead(BaseModel):
    id: UUID
    org_id: UUID
    project_id: UUID
    profile_id: UUID
    is_active: Optional[bool] = None

    model_config = {"from_attributes": True}

    @property
    def active(self) -> bool:
        return self.is_active is not False


class ProjectMemberRead(BaseModel):
    profile_id: UUID
    full_name: Optional[str] = None
    role: Optional[str] = None


def week_start_label(week_start: Optional[WeekStart]) -> str:
    value = week_start or WeekStart.SUNDAY
    return "Week starts Monday" if value == WeekStart.MONDAY else "Week starts Sunday"


def validate_project_name(name: Optional[str]) -> tuple[bool, str]:
    """Validate a project name before it is sent anywhere.

    Returns (is_valid, error_message).
    """
    if len((name or "").strip()) < PROJECT_NAME_MIN_LENGTH:
        return False, f"Project name must be at least {PROJECT_NAME_MIN_LENGTH} characters."
    return True, ""
