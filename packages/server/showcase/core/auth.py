"""
Authentication for the Speech Showcase.

Supports:
- OAuth sign-in (Google/GitHub) when both halves of a client pair are configured
- Email/Password credentials, always available as the fallback
- JWT session cookie signed with AUTH_SECRET
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Literal, Optional
from urllib.parse import urlencode

import bcrypt
import jwt
import structlog
from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from showcase.core.config import Configuration, get_configuration
from showcase.core.database import get_session
from showcase.core.settings import get_settings
from showcase.models.user import User

log = structlog.get_logger()

SESSION_COOKIE = "showcase_session"

# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------

_AUTHORIZE_ENDPOINTS = {
    "google": ("https://accounts.google.com/o/oauth2/v2/auth", "openid email profile"),
    "github": ("https://github.com/login/oauth/authorize", "read:user user:email"),
}


@dataclass(frozen=True)
class AuthProvider:
    id: str
    name: str
    type: Literal["oauth", "credentials"]
    authorization_url: Optional[str] = None


def callback_url(configuration: Configuration, provider: str) -> str:
    return f"{configuration.auth_url.rstrip('/')}/api/auth/callback/{provider}"


def build_auth_providers(configuration: Configuration) -> list[AuthProvider]:
    """Enabled sign-in methods: configured OAuth clients, then credentials."""
    providers: list[AuthProvider] = []
    oauth = configuration.oauth_providers
    if oauth:
        for name in oauth.enabled():
            client = getattr(oauth, name)
            endpoint, scope = _AUTHORIZE_ENDPOINTS[name]
            query = urlencode({
                "client_id": client.client_id,
                "redirect_uri": callback_url(configuration, name),
                "response_type": "code",
                "scope": scope,
            })
            providers.append(AuthProvider(
                id=name,
                name="GitHub" if name == "github" else "Google",
                type="oauth",
                authorization_url=f"{endpoint}?{query}",
            ))
    providers.append(AuthProvider(id="credentials", name="Email", type="credentials"))

    log.info(
        "auth.providers_configured",
        mode=configuration.mode.value,
        providers=[p.id for p in providers],
    )
    return providers


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt with cost factor 12."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12)).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode(), hashed.encode())


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: uuid.UUID,
    email: str,
    *,
    secret: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed session JWT."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "email": email,
        "iat": now,
        "exp": exp,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(
        payload,
        secret or get_configuration().auth_secret,
        algorithm=settings.jwt_algorithm,
    )


def decode_jwt(token: str, *, secret: str | None = None) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(
        token,
        secret or get_configuration().auth_secret,
        algorithms=[get_settings().jwt_algorithm],
    )


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

async def get_current_user(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the signed-in user from the session cookie."""
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    result = await session.execute(select(User).where(User.id == uuid.UUID(payload["sub"])))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user
