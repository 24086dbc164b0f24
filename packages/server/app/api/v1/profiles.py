"""
Profile endpoints.

GET   /api/v1/profiles                 - List profiles visible to the caller
GET   /api/v1/profiles/me              - The caller's own profile (by identity)
PATCH /api/v1/profiles/me              - Update personal details
PUT   /api/v1/profiles/me/ui-prefs     - Save appearance preferences
GET   /api/v1/profiles/{profileId}     - Get one visible profile
PATCH /api/v1/profiles/{profileId}     - Update a profile (field-gated by role)
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, Identity, get_identity, require_member
from app.core.database import get_session
from app.services import profiles as profile_service
from timesheet_shared.schemas.common import Scope
from timesheet_shared.schemas.profiles import (
    ProfileRead,
    ProfileSelfUpdate,
    ProfileUpdate,
    UiPrefsUpdate,
)

router = APIRouter()


@router.get("", response_model=List[ProfileRead])
async def list_profiles(
    scope: Scope = Scope.VISIBLE,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    """Org profiles narrowed to what the caller's role may see."""
    return await profile_service.list_profiles(auth, session, scope)


@router.get("/me", response_model=ProfileRead)
async def get_my_profile(
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
):
    """Exactly one profile row where id equals the session identity."""
    return await profile_service.get_own_profile(identity.user_id, session)


@router.patch("/me", response_model=ProfileRead)
async def update_my_profile(
    body: ProfileSelfUpdate,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    return await profile_service.update_profile(
        auth, auth.user_id, body.model_dump(exclude_unset=True), session
    )


@router.put("/me/ui-prefs", response_model=ProfileRead)
async def save_ui_prefs(
    body: UiPrefsUpdate,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    return await profile_service.save_ui_prefs(auth, body.ui_prefs, session)


@router.get("/{profileId}", response_model=ProfileRead)
async def get_profile(
    profileId: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    return await profile_service.get_profile(auth, profileId, session)


@router.patch("/{profileId}", response_model=ProfileRead)
async def update_profile(
    profileId: uuid.UUID,
    body: ProfileUpdate,
    auth: AuthenticatedUser = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    """Partial update. Privileged fields are admin-only; see AccessPolicy."""
    return await profile_service.update_profile(
        auth, profileId, body.model_dump(exclude_unset=True), session
    )
