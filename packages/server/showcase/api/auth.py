"""
Authentication endpoints.

- Provider discovery (OAuth clients + credentials fallback)
- Email/Password login
- Session inspection and logout
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, EmailStr
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from showcase.core.auth import (
    SESSION_COOKIE,
    build_auth_providers,
    create_jwt,
    get_current_user,
    verify_password,
)
from showcase.core.config import get_configuration
from showcase.core.database import get_session
from showcase.core.environment import Mode
from showcase.core.settings import get_settings
from showcase.models.user import User

log = structlog.get_logger()
router = APIRouter()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class SessionUser(BaseModel):
    id: str
    email: str
    name: str | None = None


class ProviderInfo(BaseModel):
    id: str
    name: str
    type: str
    authorization_url: str | None = None


@router.get("/providers", response_model=list[ProviderInfo])
async def list_providers():
    """Sign-in methods enabled by the current configuration."""
    return [ProviderInfo(**vars(p)) for p in build_auth_providers(get_configuration())]


@router.post("/login", response_model=SessionUser)
async def login(
    body: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Authenticate with email/password and receive a session cookie."""
    result = await session.execute(select(User).where(User.email == body.email))
    user = result.scalar_one_or_none()

    if not user or not user.password_hash:
        log.info("auth.login_failure", email=body.email, reason="unknown_user")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not verify_password(body.password, user.password_hash):
        log.warning("auth.login_failure", email=body.email, reason="bad_password")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    settings = get_settings()
    token = create_jwt(user.id, user.email)
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=get_configuration().mode is Mode.PRODUCTION,
        samesite="lax",
        path="/",
        max_age=settings.jwt_expire_minutes * 60,
    )

    log.info("auth.login_success", user_id=str(user.id), email=user.email)
    return SessionUser(id=str(user.id), email=user.email, name=user.name)


@router.get("/me", response_model=SessionUser)
async def me(user: User = Depends(get_current_user)):
    return SessionUser(id=str(user.id), email=user.email, name=user.name)


@router.post("/logout")
async def logout(response: Response):
    """Clear the session cookie."""
    response.delete_cookie(SESSION_COOKIE, path="/")
    return {"message": "Logged out"}
