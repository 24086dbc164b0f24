"""
Authentication and Authorization for the Timesheet store.

Supports:
- Email/Password login with bcrypt hashes
- Bearer JWT sessions with a Redis revocation list
- Profile resolution for the authenticated identity
- Role-based authorization dependencies backed by ``AccessPolicy``
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import structlog
from fastapi import Depends, HTTPException
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import sessions
from app.core.config import get_settings
from app.core.database import get_session
from app.models.profile import Profile
from timesheet_shared.access import AccessPolicy

log = structlog.get_logger()
settings = get_settings()

authorization_header = APIKeyHeader(name="Authorization", auto_error=False)

PROFILE_MISSING_DETAIL = (
    "Profile missing: no row found in profiles for this user. "
    "An admin must provision it."
)

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt with the configured cost factor."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=settings.bcrypt_rounds)).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode(), hashed.encode())


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: uuid.UUID,
    *,
    expires_delta: timedelta | None = None,
) -> tuple[str, str, datetime]:
    """Create a signed session token. Returns (token, jti, expires_at)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti, exp


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return None


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

class Identity:
    """A verified session: who is calling, independent of their profile."""

    def __init__(self, user_id: uuid.UUID, jti: str, expires_at: datetime):
        self.user_id = user_id
        self.jti = jti
        self.expires_at = expires_at


class AuthenticatedUser:
    """Container for an authenticated identity and its resolved profile."""

    def __init__(self, identity: Identity, profile: Profile):
        self.identity = identity
        self.profile = profile
        self.user_id = profile.id
        self.org_id = profile.org_id
        self.role = profile.role
        self.policy = AccessPolicy.for_profile(profile)


async def get_identity(
    authorization: Optional[str] = Depends(authorization_header),
) -> Identity:
    """Verify the bearer token. Does not require a profile row."""
    token = bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")

    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    jti = payload.get("jti")
    if jti and await sessions.is_session_revoked(jti):
        raise HTTPException(status_code=401, detail="Session has been revoked")

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    return Identity(
        user_id=user_id,
        jti=jti or "",
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


async def get_authenticated_user(
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(get_session),
) -> AuthenticatedUser:
    """Main authentication dependency: identity plus its profile row."""
    profile = await session.get(Profile, identity.user_id)
    if profile is None:
        log.warning("auth.profile_missing", user_id=str(identity.user_id))
        raise HTTPException(status_code=403, detail=PROFILE_MISSING_DETAIL)
    return AuthenticatedUser(identity, profile)


# ---------------------------------------------------------------------------
# Authorization dependencies (role checks)
# ---------------------------------------------------------------------------

async def require_member(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
) -> AuthenticatedUser:
    """Any provisioned profile can access this endpoint."""
    return auth


async def require_admin(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
) -> AuthenticatedUser:
    """Requires the admin role."""
    if not auth.policy.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return auth
