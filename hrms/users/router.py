"""Users router: account administration. Admin only."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import require_role
from hrms.auth.models import User
from hrms.common.constants import UserRole
from hrms.common.pagination import PaginationParams
from hrms.database import get_db
from hrms.users.schemas import UserCreate, UserResponse, UserUpdate
from hrms.users.service import UserService

router = APIRouter(prefix="", tags=["users"])

_admin_dep = require_role(UserRole.admin)


def _payload(user) -> dict:
    return UserResponse.model_validate(user).model_dump(mode="json")


@router.get("")
async def list_users(
    pagination: PaginationParams = Depends(),
    role: Optional[UserRole] = Query(None),
    search: Optional[str] = Query(None, description="Substring of the username"),
    _user: User = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    result = await UserService.list_users(db, pagination, role=role, search=search)
    return result.to_envelope()


@router.post("", status_code=201)
async def create_user(
    body: UserCreate,
    actor: User = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService.create_user(db, body, actor)
    return {"data": _payload(user), "message": "User created successfully."}


@router.get("/{user_id}")
async def get_user(
    user_id: uuid.UUID,
    _user: User = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService.get_user(db, user_id)
    return {"data": _payload(user), "message": "User retrieved successfully."}


@router.put("/{user_id}")
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    actor: User = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService.update_user(db, user_id, body, actor)
    return {"data": _payload(user), "message": "User updated successfully."}


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: uuid.UUID,
    actor: User = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    await UserService.delete_user(db, user_id, actor)
    return Response(status_code=204)
