"""
Membership endpoints.

GET   /api/v1/memberships                   - Admin: any in org; others: own only
POST  /api/v1/memberships                   - Grant access (Admin, reactivates)
PATCH /api/v1/memberships/{membershipId}    - Toggle is_active (Admin)
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_admin, require_member
from app.core.database import get_session
from app.services import memberships as membership_service
from timesheet_shared.schemas.projects import (
    MembershipCreate,
    MembershipRead,
    MembershipUpdate,
)

router = APIRouter()


@router.get("", response_model=List[MembershipRead])
async def list_memberships(
    profile_id: Optional[uuid.UUID] = None,
    project_id: Optional[uuid.UUID] = None,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    return await membership_service.list_memberships(
        auth, session, profile_id=profile_id, project_id=project_id
    )


@router.post("", response_model=MembershipRead, status_code=201)
async def create_membership(
    body: MembershipCreate,
    response: Response,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Insert a membership, or reactivate the existing row for the pair."""
    membership, created = await membership_service.create_membership(
        auth, body.project_id, body.profile_id, session
    )
    if not created:
        response.status_code = 200
    return membership


@router.patch("/{membershipId}", response_model=MembershipRead)
async def update_membership(
    membershipId: uuid.UUID,
    body: MembershipUpdate,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    return await membership_service.set_membership_active(
        auth, membershipId, body.is_active, session
    )
