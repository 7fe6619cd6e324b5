"""Offboarding service layer.

Business logic:
  - Initiation creates the record, marks the employee Terminating and copies
    every TaskTemplate into an OffboardingTask, all in the request transaction
  - Completing the offboarding terminates the employee; cancelling it
    returns them to Active
  - The first completed task moves a Pending offboarding to InProgress
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hrms.auth.dependencies import require_department
from hrms.auth.models import User
from hrms.common.activity import log_activity
from hrms.common.constants import (
    ActivityAction,
    EmployeeStatus,
    OffboardingStatus,
    OffboardingTaskStatus,
    UserRole,
)
from hrms.common.exceptions import ConflictError, ForbiddenException, NotFoundException
from hrms.common.models import utcnow
from hrms.core_hr.models import Employee
from hrms.offboarding.models import Offboarding, OffboardingTask, TaskTemplate
from hrms.offboarding.schemas import (
    OffboardingListItem,
    OffboardingTaskUpdate,
    OffboardingUpdate,
    TaskTemplateCreate,
)
from hrms.offboarding.templates import DEFAULT_TASK_TEMPLATES

logger = logging.getLogger(__name__)

STATUS_PROGRESS: dict[OffboardingStatus, int] = {
    OffboardingStatus.pending: 10,
    OffboardingStatus.in_progress: 50,
    OffboardingStatus.completed: 100,
}

# ?status= query values
STATUS_FILTERS: dict[str, tuple[OffboardingStatus, ...]] = {
    "active": (OffboardingStatus.pending, OffboardingStatus.in_progress),
    "pending": (OffboardingStatus.pending,),
    "inprogress": (OffboardingStatus.in_progress,),
    "completed": (OffboardingStatus.completed,),
}


async def initiate_offboarding(
    db: AsyncSession,
    employee_id: uuid.UUID,
    exit_date: date,
    reason: Optional[str],
    actor: User,
) -> Offboarding:
    """Open an offboarding for *employee_id* with one task per TaskTemplate."""
    employee = await db.get(Employee, employee_id)
    if employee is None:
        raise NotFoundException("Employee", str(employee_id))

    existing = await db.execute(select(Offboarding.id).where(Offboarding.employee_id == employee_id))
    if existing.first() is not None:
        raise ConflictError(
            "employee_id",
            employee_id,
            detail="This employee is already in an offboarding process.",
        )

    offboarding = Offboarding(
        employee_id=employee_id,
        exit_date=exit_date,
        reason=reason,
        status=OffboardingStatus.pending,
    )
    db.add(offboarding)
    employee.status = EmployeeStatus.terminating
    await db.flush()

    templates = (await db.execute(select(TaskTemplate).order_by(TaskTemplate.created_at))).scalars().all()
    db.add_all(
        OffboardingTask(
            offboarding_id=offboarding.id,
            description=template.description,
            status=OffboardingTaskStatus.pending,
            assigned_role=template.default_assigned_role,
        )
        for template in templates
    )
    await db.flush()

    await log_activity(
        db,
        user_id=actor.id,
        action_type=ActivityAction.create,
        description=f"Initiated offboarding for {employee.full_name} (exit {exit_date.isoformat()})",
        entity_type="Offboarding",
        entity_id=offboarding.id,
        details={"tasks_created": len(templates)},
    )
    logger.info("Offboarding %s opened with %d tasks", offboarding.id, len(templates))
    return offboarding


async def ensure_default_task_templates(db: AsyncSession) -> int:
    """Insert the default HR task templates that are not present yet."""
    present = set((await db.execute(select(TaskTemplate.description))).scalars().all())
    missing = [
        TaskTemplate(description=description, default_assigned_role=role)
        for description, role in DEFAULT_TASK_TEMPLATES
        if description not in present
    ]
    db.add_all(missing)
    await db.flush()
    return len(missing)


class OffboardingService:

    @staticmethod
    async def list_offboardings(
        db: AsyncSession,
        user: User,
        *,
        status: Optional[str] = None,
    ) -> list[OffboardingListItem]:
        """Non-cancelled offboardings by exit date, optionally narrowed by *status*."""
        query = (
            select(Offboarding)
            .options(selectinload(Offboarding.employee))
            .order_by(Offboarding.exit_date.asc())
        )
        statuses = STATUS_FILTERS.get((status or "").lower())
        if statuses:
            query = query.where(Offboarding.status.in_(statuses))
        else:
            query = query.where(Offboarding.status != OffboardingStatus.cancelled)
        if user.role in (UserRole.department_head, UserRole.manager):
            query = query.join(Employee, Offboarding.employee_id == Employee.id).where(
                Employee.department_id == require_department(user)
            )

        rows = (await db.execute(query)).scalars().all()
        return [
            OffboardingListItem(
                id=row.id,
                employee_id=row.employee_id,
                name=row.employee.sort_name if row.employee else "N/A, N/A",
                exit_date=row.exit_date,
                reason=row.reason,
                status=row.status,
                progress=STATUS_PROGRESS.get(row.status, 0),
            )
            for row in rows
        ]

    @staticmethod
    async def get_offboarding(
        db: AsyncSession,
        offboarding_id: uuid.UUID,
        user: Optional[User] = None,
    ) -> Offboarding:
        """Load an offboarding with its tasks; *user* narrows it to their department."""
        result = await db.execute(
            select(Offboarding)
            .where(Offboarding.id == offboarding_id)
            .options(selectinload(Offboarding.tasks), selectinload(Offboarding.employee))
        )
        offboarding = result.scalars().first()
        if offboarding is None:
            raise NotFoundException("Offboarding", str(offboarding_id))
        if user is not None:
            _ensure_in_scope(user, offboarding)
        return offboarding

    @staticmethod
    async def update_offboarding(
        db: AsyncSession,
        offboarding_id: uuid.UUID,
        data: OffboardingUpdate,
        actor: User,
    ) -> Offboarding:
        offboarding = await OffboardingService.get_offboarding(db, offboarding_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        if "exit_date" in changes:
            offboarding.exit_date = changes["exit_date"]
        if "reason" in changes:
            offboarding.reason = changes["reason"]
        new_status = changes.get("status")
        if new_status is not None and new_status != offboarding.status:
            offboarding.status = new_status
            employee = offboarding.employee
            if employee is not None:
                if new_status == OffboardingStatus.completed:
                    employee.status = EmployeeStatus.terminated
                elif new_status == OffboardingStatus.cancelled:
                    employee.status = EmployeeStatus.active
        await db.flush()

        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.update,
            description=f"Updated offboarding {offboarding.id}",
            entity_type="Offboarding",
            entity_id=offboarding.id,
            details={k: str(v) for k, v in changes.items()},
        )
        return offboarding

    @staticmethod
    async def update_task(
        db: AsyncSession,
        offboarding_id: uuid.UUID,
        task_id: uuid.UUID,
        data: OffboardingTaskUpdate,
        actor: User,
    ) -> OffboardingTask:
        offboarding = await OffboardingService.get_offboarding(db, offboarding_id, actor)
        task = next((t for t in offboarding.tasks if t.id == task_id), None)
        if task is None:
            raise NotFoundException("OffboardingTask", str(task_id))

        task.status = data.status
        if data.notes is not None:
            task.notes = data.notes
        if data.status == OffboardingTaskStatus.completed:
            task.completed_at = task.completed_at or utcnow()
            if offboarding.status == OffboardingStatus.pending:
                offboarding.status = OffboardingStatus.in_progress
        else:
            task.completed_at = None
        await db.flush()

        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.update,
            description=f"Marked offboarding task '{task.description}' {data.status.value}",
            entity_type="OffboardingTask",
            entity_id=task.id,
        )
        return task

    # ── Task templates ──────────────────────────────────────────────

    @staticmethod
    async def list_task_templates(db: AsyncSession) -> list[TaskTemplate]:
        result = await db.execute(select(TaskTemplate).order_by(TaskTemplate.created_at))
        return list(result.scalars().all())

    @staticmethod
    async def create_task_template(
        db: AsyncSession, data: TaskTemplateCreate, actor: User,
    ) -> TaskTemplate:
        template = TaskTemplate(
            description=data.description.strip(),
            default_assigned_role=data.default_assigned_role,
        )
        db.add(template)
        await db.flush()
        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.create,
            description=f"Added offboarding task template '{template.description}'",
            entity_type="TaskTemplate",
            entity_id=template.id,
        )
        return template


def _ensure_in_scope(user: User, offboarding: Offboarding) -> None:
    if user.role in (UserRole.department_head, UserRole.manager):
        department_id = require_department(user)
        employee = offboarding.employee
        if employee is None or employee.department_id != department_id:
            raise ForbiddenException(detail="This offboarding belongs to another department.")
