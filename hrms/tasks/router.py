"""Tasks router."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user, require_role
from hrms.auth.models import User
from hrms.common.constants import RelatedEntityType, TaskStatus, UserRole
from hrms.common.pagination import PaginationParams
from hrms.database import get_db
from hrms.tasks.schemas import TaskCreate, TaskResponse, TaskUpdate
from hrms.tasks.service import TASK_MANAGER_ROLES, TaskService

router = APIRouter(prefix="", tags=["tasks"])


def _payload(task) -> dict:
    return TaskResponse.model_validate(task).model_dump(mode="json")


@router.get("")
async def list_tasks(
    pagination: PaginationParams = Depends(),
    assigned_to_id: Optional[uuid.UUID] = Query(None),
    status: Optional[TaskStatus] = Query(None),
    related_entity_type: Optional[RelatedEntityType] = Query(None),
    related_entity_id: Optional[uuid.UUID] = Query(None),
    user: User = Depends(require_role(*TASK_MANAGER_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    """Tasks by due date (earliest first). Not available to plain employees."""
    result = await TaskService.list_tasks(
        db, pagination,
        assigned_to_id=assigned_to_id,
        status=status,
        related_entity_type=related_entity_type,
        related_entity_id=related_entity_id,
    )
    return result.to_envelope()


@router.post("", status_code=201)
async def create_task(
    body: TaskCreate,
    user: User = Depends(require_role(UserRole.manager)),
    db: AsyncSession = Depends(get_db),
):
    task = await TaskService.create(db, body, user)
    return {"data": _payload(task), "message": "Task created successfully."}


@router.get("/{task_id}")
async def get_task(
    task_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await TaskService.get_task(db, task_id, user)
    return {"data": _payload(task), "message": "Task retrieved successfully."}


@router.put("/{task_id}")
async def update_task(
    task_id: uuid.UUID,
    body: TaskUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await TaskService.update_task(db, task_id, body, user)
    return {"data": _payload(task), "message": "Task updated successfully."}


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: uuid.UUID,
    user: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    await TaskService.delete_task(db, task_id, user)
    return Response(status_code=204)
