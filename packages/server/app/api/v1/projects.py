"""
Project endpoints.

GET   /api/v1/projects                       - Projects visible to the caller
POST  /api/v1/projects                       - Create a project (Admin)
PATCH /api/v1/projects/{projectId}           - Rename, (de)activate, week start (Admin)
GET   /api/v1/projects/{projectId}/members   - Active members with names (Admin)
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_admin, require_member
from app.core.database import get_session
from app.services import projects as project_service
from timesheet_shared.schemas.common import Scope
from timesheet_shared.schemas.projects import (
    ProjectCreate,
    ProjectMemberRead,
    ProjectRead,
    ProjectUpdate,
)

router = APIRouter()


@router.get("", response_model=List[ProjectRead])
async def list_projects(
    scope: Scope = Scope.ALL_ORG,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    """Admins and managers see the org; everyone else sees their memberships."""
    return await project_service.list_projects(auth, session, scope)


@router.post("", response_model=ProjectRead, status_code=201)
async def create_project(
    project_in: ProjectCreate,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    return await project_service.create_project(auth, project_in, session)


@router.patch("/{projectId}", response_model=ProjectRead)
async def update_project(
    projectId: uuid.UUID,
    body: ProjectUpdate,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    return await project_service.update_project(
        auth, projectId, body.model_dump(exclude_unset=True), session
    )


@router.get("/{projectId}/members", response_model=List[ProjectMemberRead])
async def list_project_members(
    projectId: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    return await project_service.list_project_members(auth, projectId, session)
