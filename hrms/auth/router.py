"""Auth router — username/password login, logout, current user profile."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user, get_employee_for_user
from hrms.auth.models import User
from hrms.auth.schemas import LoginRequest, MeResponse, TokenResponse, UserInfo
from hrms.auth.service import authenticate, create_session, hash_token, revoke_session
from hrms.common.activity import log_activity
from hrms.common.constants import PERMISSIONS, ActivityAction
from hrms.common.rate_limit import LOGIN_RATE_LIMIT, limiter
from hrms.database import get_db

router = APIRouter(prefix="", tags=["auth"])


async def _user_info(db: AsyncSession, user: User) -> dict:
    employee = await get_employee_for_user(db, user)
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role.value,
        "department_id": user.department_id,
        "employee_id": employee.id if employee else None,
    }


# ── POST /login ─────────────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
@limiter.limit(LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate(db, body.username, body.password)

    ip = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")
    access_token, expires_in = await create_session(db, user, ip, user_agent)

    await log_activity(
        db,
        user_id=user.id,
        action_type=ActivityAction.login,
        description=f"User '{user.username}' logged in",
        entity_type="User",
        entity_id=user.id,
        details={"ip": ip, "user_agent": user_agent},
    )

    return TokenResponse(
        access_token=access_token,
        expires_in=expires_in,
        user=UserInfo(**await _user_info(db, user)),
    )


# ── POST /logout: Revoke current session ──────────────────────────

@router.post("/logout")
async def logout(
    request: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    token = request.headers.get("Authorization", "").removeprefix("Bearer ")
    await revoke_session(db, hash_token(token))

    await log_activity(
        db,
        user_id=user.id,
        action_type=ActivityAction.logout,
        description=f"User '{user.username}' logged out",
        entity_type="User",
        entity_id=user.id,
    )

    return {"message": "Logged out successfully"}


# ── GET /me: Current user profile ─────────────────────────────────

@router.get("/me", response_model=MeResponse)
async def me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    info = await _user_info(db, user)
    return MeResponse(**info, permissions=PERMISSIONS.get(user.role, []))
