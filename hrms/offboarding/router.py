"""Offboarding router."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import require_role
from hrms.auth.models import User
from hrms.common.constants import UserRole
from hrms.database import get_db
from hrms.offboarding.schemas import (
    OffboardingCreate,
    OffboardingDetail,
    OffboardingResponse,
    OffboardingTaskResponse,
    OffboardingTaskUpdate,
    OffboardingUpdate,
    TaskTemplateCreate,
    TaskTemplateResponse,
)
from hrms.offboarding.service import OffboardingService, initiate_offboarding
from hrms.offboarding.templates import OFFBOARDING_TEMPLATES

router = APIRouter(prefix="", tags=["offboarding"])

_managers = require_role(UserRole.hr, UserRole.manager)
_hr = require_role(UserRole.hr)


# ── Static templates (before /{id} so the paths don't collide) ──────

@router.get("/templates")
async def list_process_templates(user: User = Depends(_managers)):
    return {
        "data": [t.model_dump(mode="json") for t in OFFBOARDING_TEMPLATES.values()],
        "message": "Offboarding templates retrieved successfully.",
    }


@router.get("/task-templates")
async def list_task_templates(
    user: User = Depends(_hr),
    db: AsyncSession = Depends(get_db),
):
    templates = await OffboardingService.list_task_templates(db)
    return {
        "data": [TaskTemplateResponse.model_validate(t).model_dump(mode="json") for t in templates],
        "message": "Task templates retrieved successfully.",
    }


@router.post("/task-templates", status_code=201)
async def create_task_template(
    body: TaskTemplateCreate,
    user: User = Depends(_hr),
    db: AsyncSession = Depends(get_db),
):
    template = await OffboardingService.create_task_template(db, body, user)
    return {
        "data": TaskTemplateResponse.model_validate(template).model_dump(mode="json"),
        "message": "Task template created successfully.",
    }


# ── Offboardings ────────────────────────────────────────────────────

@router.post("", status_code=201)
async def create_offboarding(
    body: OffboardingCreate,
    user: User = Depends(_hr),
    db: AsyncSession = Depends(get_db),
):
    """Start offboarding: record, Terminating status and default tasks in one transaction."""
    offboarding = await initiate_offboarding(db, body.employee_id, body.exit_date, body.reason, user)
    return {
        "data": OffboardingResponse.model_validate(offboarding).model_dump(mode="json"),
        "message": "Offboarding initiated successfully.",
    }


@router.get("")
async def list_offboardings(
    status: Optional[str] = Query(None, description="active, pending, inprogress or completed"),
    user: User = Depends(_managers),
    db: AsyncSession = Depends(get_db),
):
    items = await OffboardingService.list_offboardings(db, user, status=status)
    return {
        "data": [i.model_dump(mode="json") for i in items],
        "message": "Offboardings retrieved successfully.",
    }


@router.get("/{offboarding_id}")
async def get_offboarding(
    offboarding_id: uuid.UUID,
    user: User = Depends(_managers),
    db: AsyncSession = Depends(get_db),
):
    offboarding = await OffboardingService.get_offboarding(db, offboarding_id, user)
    return {
        "data": OffboardingDetail.model_validate(offboarding).model_dump(mode="json"),
        "message": "Offboarding retrieved successfully.",
    }


@router.put("/{offboarding_id}")
async def update_offboarding(
    offboarding_id: uuid.UUID,
    body: OffboardingUpdate,
    user: User = Depends(_hr),
    db: AsyncSession = Depends(get_db),
):
    offboarding = await OffboardingService.update_offboarding(db, offboarding_id, body, user)
    return {
        "data": OffboardingResponse.model_validate(offboarding).model_dump(mode="json"),
        "message": "Offboarding updated successfully.",
    }


@router.put("/{offboarding_id}/tasks/{task_id}")
async def update_offboarding_task(
    offboarding_id: uuid.UUID,
    task_id: uuid.UUID,
    body: OffboardingTaskUpdate,
    user: User = Depends(_managers),
    db: AsyncSession = Depends(get_db),
):
    task = await OffboardingService.update_task(db, offboarding_id, task_id, body, user)
    return {
        "data": OffboardingTaskResponse.model_validate(task).model_dump(mode="json"),
        "message": "Offboarding task updated successfully.",
    }
