"""
Membership service - admin-only creation and toggling, self-only reads for
everyone else. At most one row exists per (project_id, profile_id); creating
an already-present pair reactivates the existing row.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import AuthenticatedUser
from app.models.membership import ProjectMember
from app.models.profile import Profile
from app.services.projects import get_project_or_404

log = structlog.get_logger()


def _require_admin(auth: AuthenticatedUser) -> None:
    if not auth.policy.can_manage_memberships:
        raise HTTPException(status_code=403, detail="Admin access required")


async def list_memberships(
    auth: AuthenticatedUser,
    session: AsyncSession,
    profile_id: Optional[uuid.UUID] = None,
    project_id: Optional[uuid.UUID] = None,
) -> list[ProjectMember]:
    if not auth.policy.can_manage_memberships:
        if profile_id is not None and profile_id != auth.user_id:
            raise HTTPException(status_code=403, detail="Admin access required")
        profile_id = auth.user_id

    stmt = select(ProjectMember).where(ProjectMember.org_id == auth.org_id)
    if profile_id is not None:
        stmt = stmt.where(ProjectMember.profile_id == profile_id)
    if project_id is not None:
        stmt = stmt.where(ProjectMember.project_id == project_id)

    result = await session.execute(stmt)
    return auth.policy.visible_memberships(result.scalars().all())


async def create_membership(
    auth: AuthenticatedUser,
    project_id: uuid.UUID,
    profile_id: uuid.UUID,
    session: AsyncSession,
) -> tuple[ProjectMember, bool]:
    """Grant access. Returns (membership, created)."""
    _require_admin(auth)

    await get_project_or_404(session, project_id, auth.org_id)
    profile = await session.get(Profile, profile_id)
    if profile is None or profile.org_id != auth.org_id:
        raise HTTPException(status_code=404, detail="Profile not found")

    result = await session.execute(
        select(ProjectMember).where(
            ProjectMember.project_id == project_id,
            ProjectMember.profile_id == profile_id,
        )
    )
    existing = result.scalar_one_or_none()
    if existing is not None:
        if existing.org_id != auth.org_id:
            raise HTTPException(status_code=409, detail="Membership belongs to another org")
        existing.is_active = True
        session.add(existing)
        await session.commit()
        await session.refresh(existing)
        log.info("membership.reactivated", membership_id=str(existing.id))
        return existing, False

    membership = ProjectMember(
        org_id=auth.org_id,
        project_id=project_id,
        profile_id=profile_id,
        is_active=True,
    )
    session.add(membership)
    await session.commit()
    await session.refresh(membership)

    log.info(
        "membership.created",
        membership_id=str(membership.id),
        project_id=str(project_id),
        profile_id=str(profile_id),
    )
    return membership, True


async def set_membership_active(
    auth: AuthenticatedUser,
    membership_id: uuid.UUID,
    active: bool,
    session: AsyncSession,
) -> ProjectMember:
    _require_admin(auth)

    result = await session.execute(
        select(ProjectMember).where(
            ProjectMember.id == membership_id,
            ProjectMember.org_id == auth.org_id,
        )
    )
    membership = result.scalar_one_or_none()
    if membership is None:
        raise HTTPException(status_code=404, detail="Membership not found")

    membership.is_active = active
    session.add(membership)
    await session.commit()
    await session.refresh(membership)

    log.info("membership.updated", membership_id=str(membership_id), is_active=active)
    return membership
