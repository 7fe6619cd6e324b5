"""Auth dependencies — JWT validation, RBAC enforcement, employee scoping."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.exceptions import HTTPException
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.models import User, UserSession
from hrms.auth.service import hash_token
from hrms.common.constants import UserRole
from hrms.common.exceptions import ForbiddenException, NotFoundException
from hrms.config import settings
from hrms.core_hr.models import Employee
from hrms.database import get_db

# Role hierarchy: each role implicitly includes the roles listed for it
ROLE_HIERARCHY: dict[UserRole, set[UserRole]] = {
    UserRole.admin: set(UserRole),
    UserRole.hr: {UserRole.hr, UserRole.employee},
    UserRole.department_head: {UserRole.department_head, UserRole.manager, UserRole.employee},
    UserRole.manager: {UserRole.manager, UserRole.employee},
    UserRole.employee: {UserRole.employee},
}


def effective_roles(role: UserRole) -> set[UserRole]:
    return ROLE_HIERARCHY.get(role, {role})


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header.")
    return auth_header[7:]


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Validate JWT, verify session, return the authenticated User."""
    token = _extract_bearer(request)

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired.")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token.")

    if payload.get("type") != "access":
        raise HTTPException(status_code=401, detail="Invalid token type.")

    # Verify session exists, not revoked, not expired
    result = await db.execute(
        select(UserSession).where(
            UserSession.token_hash == hash_token(token),
            UserSession.is_revoked.is_(False),
            UserSession.expires_at > datetime.now(timezone.utc),
        ),
    )
    if result.scalars().first() is None:
        raise HTTPException(status_code=401, detail="Session invalid or expired.")

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token.")

    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail="User account is inactive or not found.")

    # Role is re-read from the row so a demotion takes effect immediately
    request.state.user_role = user.role
    request.state.user_id = user.id
    return user


# ── Role-based dependency ───────────────────────────────────────────

def require_role(*allowed_roles: UserRole) -> Callable:
    """Return a FastAPI dependency that enforces role membership.

    Respects hierarchy — e.g. admin can access department_head endpoints.
    """

    async def _check(user: User = Depends(get_current_user)) -> User:
        if not effective_roles(user.role).intersection(allowed_roles):
            raise ForbiddenException(
                detail=(
                    f"Role '{user.role.value}' is not permitted. "
                    f"Required: {[r.value for r in allowed_roles]}."
                ),
            )
        return user

    return _check


# ── Employee linkage ────────────────────────────────────────────────

async def get_employee_for_user(db: AsyncSession, user: User) -> Optional[Employee]:
    """The employee profile linked to *user*, if any."""
    result = await db.execute(select(Employee).where(Employee.user_id == user.id))
    return result.scalars().first()


async def require_employee_for_user(db: AsyncSession, user: User) -> Employee:
    employee = await get_employee_for_user(db, user)
    if employee is None:
        raise ForbiddenException(detail="No employee profile linked to this account.")
    return employee


def require_department(user: User) -> uuid.UUID:
    """Department scoping for department heads / managers. 403 if unassigned."""
    if user.department_id is None:
        raise ForbiddenException(detail="Your account is not assigned to a department.")
    return user.department_id


async def ensure_employee_access(
    db: AsyncSession,
    user: User,
    employee_id: uuid.UUID,
    *,
    write: bool = False,
) -> Employee:
    """Load *employee_id* and check that *user* may see (or, with
    ``write=True``, change) it.

    * admin — always
    * hr — read-only, all employees
    * department_head / manager — employees of their own department
    * employee — only the profile linked to their account
    """
    employee = await db.get(Employee, employee_id)
    if employee is None:
        raise NotFoundException(entity_type="Employee", entity_id=employee_id)

    role = user.role
    if role == UserRole.admin:
        return employee
    if role == UserRole.hr and not write:
        return employee
    if role in (UserRole.department_head, UserRole.manager):
        if employee.department_id == require_department(user):
            return employee
    elif role == UserRole.employee:
        if employee.user_id == user.id:
            return employee

    raise ForbiddenException(detail="You do not have access to this employee.")


async def apply_employee_scope(
    db: AsyncSession,
    user: User,
    query: Select,
    employee_col,
    employee_id: Optional[uuid.UUID] = None,
    *,
    outside_is_not_found: bool = False,
) -> Optional[Select]:
    """Restrict a list *query* to rows whose *employee_col* the user may see.

    Returns None when the requested ``employee_id`` is out of scope and the
    caller should answer with an empty page; with ``outside_is_not_found``
    that case raises 404 instead.
    """
    role = user.role
    if role in (UserRole.admin, UserRole.hr):
        if employee_id is not None:
            query = query.where(employee_col == employee_id)
        return query

    if role in (UserRole.department_head, UserRole.manager):
        department_id = require_department(user)
        if employee_id is None:
            return query.where(
                employee_col.in_(
                    select(Employee.id).where(Employee.department_id == department_id)
                )
            )
        target = await db.get(Employee, employee_id)
        if target is None or target.department_id != department_id:
            if outside_is_not_found:
                raise NotFoundException(entity_type="Employee", entity_id=employee_id)
            return None
        return query.where(employee_col == employee_id)

    own = await require_employee_for_user(db, user)
    if employee_id is not None and employee_id != own.id:
        if outside_is_not_found:
            raise NotFoundException(entity_type="Employee", entity_id=employee_id)
        return None
    return query.where(employee_col == own.id)
