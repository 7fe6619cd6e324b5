"""Onboarding service layer.

An employee is "onboarding" while their hire date falls within the last
``ONBOARDING_WINDOW_DAYS``. Progress is measured by the Onboarding tasks
created when a checklist is applied to them.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hrms.auth.dependencies import require_department
from hrms.auth.models import User
from hrms.common.activity import log_activity
from hrms.common.constants import (
    DATE_FORMAT,
    ONBOARDING_WINDOW_DAYS,
    ActivityAction,
    RelatedEntityType,
    ResponsibleRole,
    TaskStatus,
    UserRole,
)
from hrms.common.exceptions import ConflictError, ForbiddenException, NotFoundException
from hrms.common.models import today as utc_today
from hrms.core_hr.models import Employee
from hrms.onboarding.models import OnboardingTemplate, OnboardingTemplateItem
from hrms.onboarding.schemas import OnboardingListItem, OnboardingStats, TemplateResponse
from hrms.onboarding.templates import (
    ONBOARDING_TEMPLATES,
    ChecklistItem,
    ChecklistTemplate,
    get_static_template,
)
from hrms.tasks.models import Task
from hrms.tasks.schemas import TaskCreate
from hrms.tasks.service import create_task

logger = logging.getLogger(__name__)


def due_date_for(hire_date: Optional[date], due_days: Optional[int]) -> Optional[date]:
    """Task due date relative to the start date; None without a start date."""
    if hire_date is None:
        return None
    return hire_date + timedelta(days=due_days or 0)


def _to_checklist(template: OnboardingTemplate) -> ChecklistTemplate:
    return ChecklistTemplate(
        id=template.template_code,
        name=template.name,
        description=template.description,
        items=[
            ChecklistItem(
                id=item.item_code or str(item.id),
                task=item.task_description,
                responsible_role=ResponsibleRole(item.responsible_role),
                due_days=item.due_days,
                notes=item.notes,
            )
            for item in template.items
        ],
    )


async def _load_persisted(db: AsyncSession, code: Optional[str] = None) -> list[OnboardingTemplate]:
    query = (
        select(OnboardingTemplate)
        .options(selectinload(OnboardingTemplate.items))
        .order_by(OnboardingTemplate.name)
    )
    if code is not None:
        query = query.where(OnboardingTemplate.template_code == code)
    return list((await db.execute(query)).scalars().all())


async def sync_static_templates(db: AsyncSession) -> dict[str, int]:
    """Upsert the built-in checklists by template code, replacing their items."""
    existing = {t.template_code: t for t in await _load_persisted(db)}
    created = updated = 0

    for code, checklist in ONBOARDING_TEMPLATES.items():
        template = existing.get(code)
        if template is None:
            template = OnboardingTemplate(template_code=code, items=[])
            db.add(template)
            created += 1
        else:
            updated += 1
        template.name = checklist.name
        template.description = checklist.description
        template.items = [
            OnboardingTemplateItem(
                item_code=item.id,
                position=index,
                task_description=item.task,
                responsible_role=item.responsible_role.value,
                due_days=item.due_days,
                notes=item.notes,
            )
            for index, item in enumerate(checklist.items)
        ]

    await db.flush()
    logger.info("Synced onboarding templates: %d created, %d updated", created, updated)
    return {"created": created, "updated": updated}


class OnboardingService:

    # ── Templates ───────────────────────────────────────────────────

    @staticmethod
    async def list_templates(db: AsyncSession) -> list[TemplateResponse]:
        """Stored templates first, then built-in ones that were never synced."""
        persisted = await _load_persisted(db)
        result = [
            TemplateResponse(**_to_checklist(t).model_dump(), persisted=True) for t in persisted
        ]
        stored_codes = {t.template_code for t in persisted}
        result.extend(
            TemplateResponse(**t.model_dump(), persisted=False)
            for code, t in ONBOARDING_TEMPLATES.items()
            if code not in stored_codes
        )
        return result

    @staticmethod
    async def get_template(db: AsyncSession, code: str) -> TemplateResponse:
        persisted = await _load_persisted(db, code)
        if persisted:
            return TemplateResponse(**_to_checklist(persisted[0]).model_dump(), persisted=True)
        static = get_static_template(code)
        if static is None:
            raise NotFoundException("OnboardingTemplate", code)
        return TemplateResponse(**static.model_dump(), persisted=False)

    # ── Apply ───────────────────────────────────────────────────────

    @staticmethod
    async def apply_template(
        db: AsyncSession,
        employee_id: uuid.UUID,
        template_code: str,
        actor: User,
    ) -> list[Task]:
        """Create one Onboarding task per checklist item for *employee_id*."""
        employee = await db.get(Employee, employee_id)
        if employee is None:
            raise NotFoundException("Employee", str(employee_id))
        _ensure_in_scope(actor, employee)
        template = await OnboardingService.get_template(db, template_code)

        existing = await db.execute(
            select(Task.id).where(
                Task.related_entity_type == RelatedEntityType.onboarding,
                Task.related_entity_id == employee.id,
            ).limit(1)
        )
        if existing.first() is not None:
            raise ConflictError(
                "employee_id",
                employee.id,
                detail=f"Onboarding tasks already exist for {employee.full_name}.",
            )

        tasks = []
        for item in template.items:
            task = await create_task(
                db,
                TaskCreate(
                    title=item.task,
                    description=item.notes or f"Responsible: {item.responsible_role.value}",
                    due_date=due_date_for(employee.hire_date, item.due_days),
                    assigned_to_id=employee.id if item.responsible_role == ResponsibleRole.employee else None,
                    related_entity_type=RelatedEntityType.onboarding,
                    related_entity_id=employee.id,
                ),
                actor.id,
            )
            tasks.append(task)

        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.create,
            description=(
                f"Applied onboarding template '{template.id}' to {employee.full_name} "
                f"({len(tasks)} tasks)"
            ),
            entity_type="Employee",
            entity_id=employee.id,
        )
        return tasks

    # ── Overview ────────────────────────────────────────────────────

    @staticmethod
    async def list_onboarding(db: AsyncSession, user: User) -> list[OnboardingListItem]:
        employees = await _recent_hires(db, user)
        tasks_by_employee = await _onboarding_tasks(db, [e.id for e in employees])

        items = []
        for employee in employees:
            tasks = tasks_by_employee.get(employee.id, [])
            completed = sum(1 for t in tasks if t.status == TaskStatus.completed)
            progress = round(completed / len(tasks) * 100) if tasks else 0
            items.append(
                OnboardingListItem(
                    id=employee.id,
                    name=employee.sort_name,
                    start_date=employee.hire_date.strftime(DATE_FORMAT) if employee.hire_date else "N/A",
                    progress=progress,
                )
            )
        return items

    @staticmethod
    async def stats(db: AsyncSession, user: User) -> OnboardingStats:
        today = utc_today()
        month_start = today.replace(day=1)
        employees = await _recent_hires(db, user)
        tasks_by_employee = await _onboarding_tasks(db, [e.id for e in employees])

        completed_this_month = 0
        for employee in employees:
            tasks = tasks_by_employee.get(employee.id, [])
            if tasks and all(t.status == TaskStatus.completed for t in tasks):
                finished = max(t.updated_at for t in tasks)
                if finished is not None and finished.date() >= month_start:
                    completed_this_month += 1

        overdue_q = select(func.count()).select_from(Task).where(
            Task.related_entity_type == RelatedEntityType.onboarding,
            Task.status != TaskStatus.completed,
            Task.due_date < today,
        )
        if user.role in (UserRole.department_head, UserRole.manager):
            overdue_q = overdue_q.where(Task.related_entity_id.in_([e.id for e in employees]))
        overdue = (await db.execute(overdue_q)).scalar_one()

        return OnboardingStats(
            active=len(employees),
            completed_this_month=completed_this_month,
            overdue_tasks=overdue,
        )


# ── Helpers ─────────────────────────────────────────────────────────

def _ensure_in_scope(user: User, employee: Employee) -> None:
    if user.role in (UserRole.department_head, UserRole.manager):
        if employee.department_id != require_department(user):
            raise ForbiddenException(detail="You can only onboard employees in your department.")


async def _recent_hires(db: AsyncSession, user: User) -> list[Employee]:
    cutoff = utc_today() - timedelta(days=ONBOARDING_WINDOW_DAYS)
    query = (
        select(Employee)
        .where(Employee.hire_date >= cutoff)
        .order_by(Employee.hire_date.desc(), Employee.last_name)
    )
    if user.role in (UserRole.department_head, UserRole.manager):
        query = query.where(Employee.department_id == require_department(user))
    return list((await db.execute(query)).scalars().all())


async def _onboarding_tasks(db: AsyncSession, employee_ids: list[uuid.UUID]) -> dict[uuid.UUID, list[Task]]:
    if not employee_ids:
        return {}
    result = await db.execute(
        select(Task).where(
            Task.related_entity_type == RelatedEntityType.onboarding,
            Task.related_entity_id.in_(employee_ids),
        )
    )
    grouped: dict[uuid.UUID, list[Task]] = defaultdict(list)
    for task in result.scalars().all():
        grouped[task.related_entity_id].append(task)
    return grouped
