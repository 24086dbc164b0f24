"""
Authentication endpoints.

POST /auth/login    - Email/password login, returns a bearer session token
POST /auth/refresh  - Issue a new token and revoke the current one
POST /auth/logout   - Revoke the current token
GET  /auth/session  - Resolve the current token to an identity
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core import sessions
from app.core.auth import Identity, create_jwt, get_identity, verify_password
from app.core.database import get_session
from app.models.user import User
from timesheet_shared.schemas.profiles import SessionRead, TokenResponse

log = structlog.get_logger()
router = APIRouter()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


def _remaining_seconds(identity: Identity) -> int:
    return int((identity.expires_at - datetime.now(timezone.utc)).total_seconds())


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_session),
):
    """Authenticate with email/password and receive a session token."""
    result = await session.execute(select(User).where(User.email == body.email))
    user = result.scalar_one_or_none()

    if not user or not user.password_hash:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not verify_password(body.password, user.password_hash):
        log.warning("auth.login_failure", email=body.email, reason="bad_password")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token, _jti, expires_at = create_jwt(user.id)
    log.info("auth.login_success", user_id=str(user.id))
    return TokenResponse(access_token=token, user_id=user.id, expires_at=expires_at)


@router.post("/refresh", response_model=TokenResponse)
async def refresh_session(identity: Identity = Depends(get_identity)):
    """Issue a new token and revoke the one used for this call."""
    token, _jti, expires_at = create_jwt(identity.user_id)
    if identity.jti:
        await sessions.revoke_session(identity.jti, _remaining_seconds(identity))
    log.info("auth.session_refreshed", user_id=str(identity.user_id))
    return TokenResponse(access_token=token, user_id=identity.user_id, expires_at=expires_at)


@router.post("/logout")
async def logout(identity: Identity = Depends(get_identity)):
    """Invalidate the current session."""
    if identity.jti:
        await sessions.revoke_session(identity.jti, _remaining_seconds(identity))
    log.info("auth.logout", user_id=str(identity.user_id))
    return {"message": "Logged out"}


@router.get("/session", response_model=SessionRead)
async def current_session(identity: Identity = Depends(get_identity)):
    """Return the identity behind the current token (no profile lookup)."""
    return SessionRead(user_id=identity.user_id, expires_at=identity.expires_at)
