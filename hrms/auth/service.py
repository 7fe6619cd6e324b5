"""Auth service — credential check, JWT issue, session lifecycle."""

from __future__ import annotations

import hashlib
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.models import User, UserSession
from hrms.common.constants import UserRole
from hrms.common.exceptions import UnauthorizedException
from hrms.common.security import verify_password
from hrms.config import settings

_INVALID_CREDENTIALS = "Invalid username or password."


# ── Credentials ─────────────────────────────────────────────────────

async def authenticate(db: AsyncSession, username: str, password: str) -> User:
    """Return the active user matching *username*/*password*, else 401.

    Unknown users, wrong passwords and disabled accounts all produce the
    same message so the endpoint does not leak which usernames exist.
    """
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalars().first()
    if user is None or not verify_password(password, user.password_hash):
        raise UnauthorizedException(detail=_INVALID_CREDENTIALS)
    if not user.is_active:
        raise UnauthorizedException(detail=_INVALID_CREDENTIALS)
    return user


# ── JWT helpers ─────────────────────────────────────────────────────

def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def create_access_token(user_id: uuid.UUID, role: UserRole) -> tuple[str, int]:
    """Return (encoded_jwt, expires_in_seconds)."""
    expires_in = settings.JWT_EXPIRY_HOURS * 3600
    payload = {
        "sub": str(user_id),
        "role": role.value,
        "type": "access",
        # jti keeps two logins in the same second from sharing a token hash
        "jti": uuid.uuid4().hex,
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS),
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, expires_in


# ── Session management ──────────────────────────────────────────────

async def create_session(
    db: AsyncSession,
    user: User,
    ip: Optional[str],
    user_agent: Optional[str],
) -> tuple[str, int]:
    """Issue an access token and persist its session row."""
    access_token, expires_in = create_access_token(user.id, user.role)

    db.add(
        UserSession(
            user_id=user.id,
            token_hash=hash_token(access_token),
            ip_address=ip,
            user_agent=user_agent,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        )
    )
    await db.flush()
    return access_token, expires_in


async def revoke_session(db: AsyncSession, token_hash: str) -> bool:
    """Mark a session as revoked by its token hash. Returns False if unknown."""
    result = await db.execute(
        select(UserSession).where(UserSession.token_hash == token_hash),
    )
    session = result.scalars().first()
    if session is None:
        return False
    session.is_revoked = True
    await db.flush()
    return True


async def revoke_all_user_sessions(db: AsyncSession, user_id: uuid.UUID) -> int:
    """Revoke every live session of a user (password reset, deactivation)."""
    result = await db.execute(
        select(UserSession).where(
            UserSession.user_id == user_id,
            UserSession.is_revoked.is_(False),
        ),
    )
    sessions = result.scalars().all()
    for session in sessions:
        session.is_revoked = True
    await db.flush()
    return len(sessions)
