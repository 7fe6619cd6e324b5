"""Task service layer."""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import effective_roles, get_employee_for_user
from hrms.auth.models import User
from hrms.common.activity import log_activity
from hrms.common.constants import ActivityAction, RelatedEntityType, TaskStatus, UserRole
from hrms.common.exceptions import BadRequestException, ForbiddenException, NotFoundException
from hrms.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrms.core_hr.models import Employee
from hrms.tasks.models import Task
from hrms.tasks.schemas import TaskCreate, TaskResponse, TaskUpdate

logger = logging.getLogger(__name__)

TASK_MANAGER_ROLES = (UserRole.hr, UserRole.manager)


async def create_task(
    db: AsyncSession,
    data: TaskCreate,
    created_by_id: Optional[uuid.UUID],
) -> Task:
    """Validate and insert one task. Used by the API and by onboarding."""
    title = (data.title or "").strip()
    if not title:
        raise BadRequestException(
            "Task title is required.",
            errors={"title": ["Must not be blank."]},
        )
    if data.assigned_to_id is not None:
        if await db.get(Employee, data.assigned_to_id) is None:
            raise BadRequestException(
                "Assigned employee not found",
                errors={"assigned_to_id": [f"No employee with id {data.assigned_to_id}."]},
            )
    if created_by_id is not None:
        if await db.get(User, created_by_id) is None:
            raise BadRequestException("Creator user not found")

    task = Task(
        title=title,
        description=data.description,
        status=data.status,
        due_date=data.due_date,
        assigned_to_id=data.assigned_to_id,
        created_by_id=created_by_id,
        related_entity_type=data.related_entity_type,
        related_entity_id=data.related_entity_id,
    )
    db.add(task)
    await db.flush()
    return task


class TaskService:

    @staticmethod
    async def list_tasks(
        db: AsyncSession,
        pagination: PaginationParams,
        *,
        assigned_to_id: Optional[uuid.UUID] = None,
        status: Optional[TaskStatus] = None,
        related_entity_type: Optional[RelatedEntityType] = None,
        related_entity_id: Optional[uuid.UUID] = None,
    ) -> PaginatedResponse:
        query = select(Task).order_by(Task.due_date.asc(), Task.created_at.desc())
        if assigned_to_id is not None:
            query = query.where(Task.assigned_to_id == assigned_to_id)
        if status is not None:
            query = query.where(Task.status == status)
        if related_entity_type is not None:
            query = query.where(Task.related_entity_type == related_entity_type)
        if related_entity_id is not None:
            query = query.where(Task.related_entity_id == related_entity_id)
        return await paginate(
            db, query, pagination,
            model=Task,
            transform=TaskResponse.model_validate,
        )

    @staticmethod
    async def create(db: AsyncSession, data: TaskCreate, actor: User) -> Task:
        task = await create_task(db, data, actor.id)
        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.create,
            description=f"Created task '{task.title}'",
            entity_type="Task",
            entity_id=task.id,
        )
        return task

    @staticmethod
    async def get_task(db: AsyncSession, task_id: uuid.UUID, user: User) -> Task:
        task = await db.get(Task, task_id)
        if task is None:
            raise NotFoundException("Task", str(task_id))
        await _ensure_can_access(db, user, task)
        return task

    @staticmethod
    async def update_task(
        db: AsyncSession,
        task_id: uuid.UUID,
        data: TaskUpdate,
        user: User,
    ) -> Task:
        task = await TaskService.get_task(db, task_id, user)
        changes = data.model_dump(exclude_unset=True)

        # Assignees without a task-managing role may only move the status
        if not _manages_tasks(user) and set(changes) - {"status"}:
            raise ForbiddenException(detail="You can only change the status of your own tasks.")
        if changes.get("assigned_to_id") is not None:
            if await db.get(Employee, changes["assigned_to_id"]) is None:
                raise BadRequestException("Assigned employee not found")

        for field, value in changes.items():
            setattr(task, field, value)
        await db.flush()

        await log_activity(
            db,
            user_id=user.id,
            action_type=ActivityAction.update,
            description=f"Updated task '{task.title}'",
            entity_type="Task",
            entity_id=task.id,
            details={"fields": sorted(changes)},
        )
        return task

    @staticmethod
    async def delete_task(db: AsyncSession, task_id: uuid.UUID, actor: User) -> None:
        task = await db.get(Task, task_id)
        if task is None:
            raise NotFoundException("Task", str(task_id))
        title = task.title
        await db.delete(task)
        await db.flush()
        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.delete,
            description=f"Deleted task '{title}'",
            entity_type="Task",
            entity_id=task_id,
        )


def _manages_tasks(user: User) -> bool:
    return bool(effective_roles(user.role).intersection(TASK_MANAGER_ROLES))


async def _ensure_can_access(db: AsyncSession, user: User, task: Task) -> None:
    if _manages_tasks(user):
        return
    own = await get_employee_for_user(db, user)
    if own is not None and task.assigned_to_id == own.id:
        return
    raise ForbiddenException(detail="You do not have access to this task.")
