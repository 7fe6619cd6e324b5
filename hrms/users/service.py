"""User administration: accounts, roles and password resets."""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.models import User
from hrms.auth.service import revoke_all_user_sessions
from hrms.common.activity import log_activity
from hrms.common.constants import ActivityAction, UserRole
from hrms.common.exceptions import BadRequestException, ConflictError, NotFoundException
from hrms.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrms.common.security import hash_password
from hrms.core_hr.models import Department, Employee
from hrms.users.schemas import UserCreate, UserResponse, UserUpdate


class UserService:

    @staticmethod
    async def list_users(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        role: Optional[UserRole] = None,
        search: Optional[str] = None,
    ) -> PaginatedResponse:
        query = select(User).order_by(User.username)
        if role is not None:
            query = query.where(User.role == role)
        if search:
            query = query.where(User.username.ilike(f"%{search.strip()}%"))
        return await paginate(db, query, pagination, model=User, transform=UserResponse.model_validate)

    @staticmethod
    async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundException("User", str(user_id))
        return user

    @staticmethod
    async def create_user(db: AsyncSession, data: UserCreate, actor: User) -> User:
        username = data.username.strip()
        existing = await db.execute(select(User.id).where(User.username == username))
        if existing.first() is not None:
            raise ConflictError("username", username)
        await _validate_department(db, data.department_id)

        user = User(
            username=username,
            email=data.email,
            password_hash=hash_password(data.password),
            role=data.role,
            department_id=data.department_id,
            is_active=data.is_active,
        )
        db.add(user)
        await db.flush()

        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.create,
            description=f"Created user '{username}' with role {data.role.value}",
            entity_type="User",
            entity_id=user.id,
        )
        return user

    @staticmethod
    async def update_user(
        db: AsyncSession, user_id: uuid.UUID, data: UserUpdate, actor: User,
    ) -> User:
        user = await UserService.get_user(db, user_id)
        changes = data.model_dump(exclude_unset=True)

        if "department_id" in changes:
            await _validate_department(db, changes["department_id"])
        password = changes.pop("password", None)
        for field, value in changes.items():
            setattr(user, field, value)
        if password:
            user.password_hash = hash_password(password)
        await db.flush()

        # A reset password or a disabled account ends every open session
        if password or changes.get("is_active") is False:
            await revoke_all_user_sessions(db, user.id)

        fields = sorted(changes) + (["password"] if password else [])
        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.update,
            description=f"Updated user '{user.username}'",
            entity_type="User",
            entity_id=user.id,
            details={"fields": fields},
        )
        return user

    @staticmethod
    async def delete_user(db: AsyncSession, user_id: uuid.UUID, actor: User) -> None:
        if user_id == actor.id:
            raise BadRequestException("You cannot delete your own account.")
        user = await UserService.get_user(db, user_id)
        username = user.username
        await db.execute(update(Employee).where(Employee.user_id == user_id).values(user_id=None))
        await db.execute(
            update(Department).where(Department.manager_id == user_id).values(manager_id=None)
        )
        await db.delete(user)
        await db.flush()

        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.delete,
            description=f"Deleted user '{username}'",
            entity_type="User",
            entity_id=user_id,
        )


async def _validate_department(db: AsyncSession, department_id: Optional[uuid.UUID]) -> None:
    if department_id is not None and await db.get(Department, department_id) is None:
        raise BadRequestException(
            "Department not found.",
            errors={"department_id": [f"No department with id {department_id}."]},
        )
