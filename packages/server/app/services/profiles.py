"""
Profile service - row-level policy for profile reads and writes.

Reads issue a broad org-scoped query and narrow it with ``AccessPolicy``;
writes target exactly one row by id, additionally constrained by org_id
unless the caller is updating themselves. Last write wins.
"""

from __future__ import annotations

import uuid
from typing import Any, Optional

import structlog
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import PROFILE_MISSING_DETAIL, AuthenticatedUser
from app.models.profile import Profile
from timesheet_shared.preferences import UiPrefs, normalize_prefs
from timesheet_shared.schemas.common import Scope

log = structlog.get_logger()


async def get_own_profile(user_id: uuid.UUID, session: AsyncSession) -> Profile:
    """Fetch exactly one profile by identity; 404 when none was provisioned."""
    result = await session.execute(select(Profile).where(Profile.id == user_id))
    profile = result.scalar_one_or_none()
    if profile is None:
        raise HTTPException(status_code=404, detail=PROFILE_MISSING_DETAIL)
    return profile


async def list_profiles(
    auth: AuthenticatedUser,
    session: AsyncSession,
    scope: Scope = Scope.VISIBLE,
) -> list[Profile]:
    """List profiles the caller may see, ordered by name."""
    result = await session.execute(
        select(Profile)
        .where(Profile.org_id == auth.org_id)
        .order_by(Profile.full_name)
    )
    rows = list(result.scalars().all())
    return auth.policy.visible_profiles(rows, scope)


async def get_profile(
    auth: AuthenticatedUser, profile_id: uuid.UUID, session: AsyncSession
) -> Profile:
    profile = await session.get(Profile, profile_id)
    if profile is None or not auth.policy.can_view_profile(profile):
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


async def _load_for_update(
    auth: AuthenticatedUser, profile_id: uuid.UUID, session: AsyncSession
) -> Profile:
    stmt = select(Profile).where(Profile.id == profile_id)
    if profile_id != auth.user_id:
        stmt = stmt.where(Profile.org_id == auth.org_id)
    result = await session.execute(stmt)
    profile = result.scalar_one_or_none()
    if profile is None or not auth.policy.can_view_profile(profile):
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


async def _manager_in_org(
    manager_id: Optional[uuid.UUID], org_id: uuid.UUID, session: AsyncSession
) -> bool:
    if manager_id is None:
        return True
    manager = await session.get(Profile, manager_id)
    return manager is not None and manager.org_id == org_id


async def update_profile(
    auth: AuthenticatedUser,
    profile_id: uuid.UUID,
    patch: dict[str, Any],
    session: AsyncSession,
) -> Profile:
    """Apply a partial update, refusing any field the caller may not write."""
    profile = await _load_for_update(auth, profile_id, session)

    denied = auth.policy.denied_profile_fields(profile, patch.keys())
    if denied:
        log.warning(
            "profile.update_denied",
            actor_id=str(auth.user_id),
            profile_id=str(profile_id),
            fields=sorted(denied),
        )
        raise HTTPException(
            status_code=403,
            detail=f"Not permitted to change: {', '.join(sorted(denied))}",
        )

    if "manager_id" in patch:
        if patch["manager_id"] == profile.id:
            raise HTTPException(status_code=422, detail="A profile cannot manage itself")
        if not await _manager_in_org(patch["manager_id"], profile.org_id, session):
            raise HTTPException(status_code=422, detail="Manager must belong to the same org")

    for key, value in patch.items():
        if key == "role":
            if value is None:
                continue
            value = getattr(value, "value", value)
        setattr(profile, key, value)

    session.add(profile)
    await session.commit()
    await session.refresh(profile)

    log.info(
        "profile.updated",
        actor_id=str(auth.user_id),
        profile_id=str(profile_id),
        fields=sorted(patch),
    )
    return profile


async def save_ui_prefs(
    auth: AuthenticatedUser, prefs: Any, session: AsyncSession
) -> Profile:
    """Persist the caller's appearance preferences in normalized form."""
    profile = await get_own_profile(auth.user_id, session)
    if not auth.policy.can_save_prefs(profile):
        raise HTTPException(status_code=403, detail="Not permitted to change: ui_prefs")

    normalized: UiPrefs = normalize_prefs(prefs)
    profile.ui_prefs = normalized.as_dataset()
    session.add(profile)
    await session.commit()
    await session.refresh(profile)

    log.info("profile.prefs_saved", profile_id=str(profile.id), **normalized.as_dataset())
    return profile
