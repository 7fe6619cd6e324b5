"""Onboarding router: checklists, applying them, and progress."""


import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import require_role
from hrms.auth.models import User
from hrms.common.constants import UserRole
from hrms.database import get_db
from hrms.onboarding.schemas import ApplyTemplateRequest
from hrms.onboarding.service import OnboardingService, sync_static_templates
from hrms.tasks.schemas import TaskResponse

router = APIRouter(prefix="", tags=["onboarding"])

# admin, department heads and managers
_onboarding_roles = require_role(UserRole.manager)


@router.get("")
async def list_onboarding(
    user: User = Depends(_onboarding_roles),
    db: AsyncSession = Depends(get_db),
):
    """Employees hired in the last 90 days with checklist progress."""
    items = await OnboardingService.list_onboarding(db, user)
    return {
        "data": [i.model_dump(mode="json") for i in items],
        "message": "Onboarding employees retrieved successfully.",
    }


@router.get("/stats")
async def onboarding_stats(
    user: User = Depends(_onboarding_roles),
    db: AsyncSession = Depends(get_db),
):
    stats = await OnboardingService.stats(db, user)
    return {"data": stats.model_dump(), "message": "Onboarding stats retrieved successfully."}


@router.get("/templates")
async def list_templates(
    user: User = Depends(_onboarding_roles),
    db: AsyncSession = Depends(get_db),
):
    templates = await OnboardingService.list_templates(db)
    return {
        "data": [t.model_dump(mode="json") for t in templates],
        "message": "Onboarding templates retrieved successfully.",
    }


@router.post("/templates/sync")
async def sync_templates(
    user: User = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    results = await sync_static_templates(db)
    return {"data": results, "message": "Onboarding templates synced."}


@router.get("/templates/{template_code}")
async def get_template(
    template_code: str,
    user: User = Depends(_onboarding_roles),
    db: AsyncSession = Depends(get_db),
):
    template = await OnboardingService.get_template(db, template_code)
    return {"data": template.model_dump(mode="json"), "message": "Onboarding template retrieved successfully."}


@router.post("/{employee_id}/apply", status_code=201)
async def apply_template(
    employee_id: uuid.UUID,
    body: ApplyTemplateRequest,
    user: User = Depends(_onboarding_roles),
    db: AsyncSession = Depends(get_db),
):
    """Create the checklist's tasks for one employee."""
    tasks = await OnboardingService.apply_template(db, employee_id, body.template_code, user)
    return {
        "data": [TaskResponse.model_validate(t).model_dump(mode="json") for t in tasks],
        "message": f"Created {len(tasks)} onboarding tasks.",
    }
