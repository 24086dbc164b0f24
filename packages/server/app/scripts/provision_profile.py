"""
Provision an org, a login and its profile.

Profiles are never created by the application itself; an admin runs this
(or an equivalent trigger) for every new person.
"""

from __future__ import annotations

import argparse
import asyncio
import uuid
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import hash_password
from app.core.database import init_db, session_scope
from app.models.organization import Organization
from app.models.profile import Profile
from app.models.user import User
from timesheet_shared.logging import configure_logging
from timesheet_shared.schemas.common import Role

log = structlog.get_logger()


async def ensure_org(session: AsyncSession, slug: str, name: Optional[str] = None) -> Organization:
    result = await session.execute(select(Organization).where(Organization.slug == slug))
    org = result.scalar_one_or_none()
    if org is None:
        org = Organization(name=name or slug, slug=slug)
        session.add(org)
        await session.flush()
        log.info("provision.org_created", org_id=str(org.id), slug=slug)
    return org


async def provision(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    org_slug: str,
    role: Role = Role.CONTRACTOR,
    full_name: Optional[str] = None,
    manager_id: Optional[uuid.UUID] = None,
    hourly_rate: Optional[float] = None,
) -> Profile:
    """Create (or reuse) the user and org, then create the profile if missing."""
    org = await ensure_org(session, org_slug)

    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is None:
        user = User(email=email, password_hash=hash_password(password))
        session.add(user)
        await session.flush()
        log.info("provision.user_created", user_id=str(user.id))

    profile = await session.get(Profile, user.id)
    if profile is not None:
        log.info("provision.profile_exists", profile_id=str(profile.id))
        return profile

    profile = Profile(
        id=user.id,
        org_id=org.id,
        role=role.value,
        full_name=full_name or email.split("@")[0],
        manager_id=manager_id,
        hourly_rate=hourly_rate,
        is_active=True,
    )
    session.add(profile)
    await session.flush()
    log.info("provision.profile_created", profile_id=str(profile.id), role=role.value)
    return profile


async def _main(args: argparse.Namespace) -> None:
    await init_db()
    async with session_scope() as session:
        await provision(
            session,
            email=args.email,
            password=args.password,
            org_slug=args.org,
            role=Role(args.role),
            full_name=args.name,
            manager_id=uuid.UUID(args.manager) if args.manager else None,
            hourly_rate=args.rate,
        )


def main() -> None:
    parser = argparse.ArgumentParser(description="Provision a timesheet login and profile.")
    parser.add_argument("--email", required=True, help="Login email address")
    parser.add_argument("--password", required=True, help="Login password")
    parser.add_argument("--org", default="default", help="Org slug (created if missing)")
    parser.add_argument("--role", default="contractor", choices=[r.value for r in Role])
    parser.add_argument("--name", default=None, help="Full name")
    parser.add_argument("--manager", default=None, help="Manager profile id")
    parser.add_argument("--rate", type=float, default=None, help="Hourly rate")
    args = parser.parse_args()

    configure_logging("info", "text")
    asyncio.run(_main(args))


if __name__ == "__main__":
    main()
