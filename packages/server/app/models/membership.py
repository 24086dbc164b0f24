"""Project membership (join table, org-scoped)."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class ProjectMember(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "project_members"
    __table_args__ = (
        sa.UniqueConstraint("project_id", "profile_id", name="uq_project_members_project_profile"),
    )

    org_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True)
    profile_id: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, index=True)
    is_active: Optional[bool] = Field(default=True)  # null is treated as active
