"""Cron router: admin-triggered maintenance jobs."""


import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import require_role
from hrms.auth.models import User
from hrms.common.constants import UserRole
from hrms.compliance.expiration import check_compliance_expirations
from hrms.database import get_db
from hrms.leave.balance import run_monthly_leave_accrual

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["cron"])

_admin_dep = require_role(UserRole.admin)


@router.post("/trigger-leave-accrual")
async def trigger_leave_accrual(
    user: User = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    logger.info("Leave accrual triggered by %s", user.username)
    results = await run_monthly_leave_accrual(db)
    return {"message": "Leave accrual process triggered and completed successfully.", "results": results}


@router.post("/trigger-compliance-check")
async def trigger_compliance_check(
    user: User = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    logger.info("Compliance expiration check triggered by %s", user.username)
    results = await check_compliance_expirations(db)
    return {
        "message": "Compliance expiration check triggered and completed successfully.",
        "results": results,
    }
