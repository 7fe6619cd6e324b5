"""Reports router."""


import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import require_role
from hrms.auth.models import User
from hrms.common.constants import UserRole
from hrms.database import get_db
from hrms.reports.service import ReportService

router = APIRouter(prefix="", tags=["reports"])


@router.get("/department/{department_id}")
async def department_report(
    department_id: uuid.UUID,
    user: User = Depends(require_role(UserRole.department_head)),
    db: AsyncSession = Depends(get_db),
):
    """Headcount, 30-day attendance rate and pending leave for one department."""
    report = await ReportService.department_report(db, department_id, user)
    return {"data": report.model_dump(mode="json"), "message": "Department report generated successfully."}
