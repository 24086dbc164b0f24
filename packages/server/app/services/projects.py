"""
Project service - org-scoped project listing and admin-only mutations.
"""

from __future__ import annotations

import uuid
from typing import Any

import structlog
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser
from app.models.membership import ProjectMember
from app.models.profile import Profile
from app.models.project import Project
from timesheet_shared.access import is_active, sort_by_name
from timesheet_shared.schemas.common import Scope
from timesheet_shared.schemas.projects import ProjectCreate

log = structlog.get_logger()


async def get_project_or_404(
    session: AsyncSession, project_id: uuid.UUID, org_id: uuid.UUID
) -> Project:
    project = await session.get(Project, project_id)
    if not project or project.org_id != org_id:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


async def list_projects(
    auth: AuthenticatedUser,
    session: AsyncSession,
    scope: Scope = Scope.ALL_ORG,
) -> list[Project]:
    """List org projects narrowed to what the caller may see."""
    result = await session.execute(select(Project).where(Project.org_id == auth.org_id))
    projects = list(result.scalars().all())

    memberships: list[ProjectMember] = []
    if not auth.policy.can_view_all_projects(scope):
        result = await session.execute(
            select(ProjectMember).where(
                ProjectMember.org_id == auth.org_id,
                ProjectMember.profile_id == auth.user_id,
            )
        )
        memberships = list(result.scalars().all())

    visible = auth.policy.visible_projects(projects, memberships, scope)
    return sort_by_name(visible)


async def create_project(
    auth: AuthenticatedUser, req: ProjectCreate, session: AsyncSession
) -> Project:
    if not auth.policy.can_manage_projects:
        raise HTTPException(status_code=403, detail="Admin access required")

    project = Project(
        org_id=auth.org_id,
        name=req.name,
        is_active=True,
        week_start=req.week_start.value,
    )
    session.add(project)
    await session.commit()
    await session.refresh(project)

    log.info(
        "project.created",
        project_id=str(project.id),
        org_id=str(auth.org_id),
        week_start=project.week_start,
    )
    return project


async def update_project(
    auth: AuthenticatedUser,
    project_id: uuid.UUID,
    patch: dict[str, Any],
    session: AsyncSession,
) -> Project:
    if not auth.policy.can_manage_projects:
        raise HTTPException(status_code=403, detail="Admin access required")

    project = await get_project_or_404(session, project_id, auth.org_id)
    for key, value in patch.items():
        if value is None:
            continue
        setattr(project, key, getattr(value, "value", value))

    session.add(project)
    await session.commit()
    await session.refresh(project)

    log.info("project.updated", project_id=str(project_id), fields=sorted(patch))
    return project


async def list_project_members(
    auth: AuthenticatedUser, project_id: uuid.UUID, session: AsyncSession
) -> list[dict]:
    """Active members of one project with their names (admin only)."""
    if not auth.policy.can_manage_memberships:
        raise HTTPException(status_code=403, detail="Admin access required")

    await get_project_or_404(session, project_id, auth.org_id)
    result = await session.execute(
        select(ProjectMember, Profile)
        .join(Profile, Profile.id == ProjectMember.profile_id)
        .where(
            ProjectMember.org_id == auth.org_id,
            ProjectMember.project_id == project_id,
        )
    )
    members = [
        {"profile_id": profile.id, "full_name": profile.full_name, "role": profile.role}
        for membership, profile in result.all()
        if is_active(membership)
    ]
    return sort_by_name(members, key="full_name")
