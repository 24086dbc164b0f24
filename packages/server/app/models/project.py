"""Project model. Soft-deactivated via is_active, never hard-deleted."""

import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Project(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "projects"

    org_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    name: str = Field(nullable=False)
    is_active: bool = Field(default=True, nullable=False)
    week_start: str = Field(default="sunday", nullable=False)  # sunday | monday
