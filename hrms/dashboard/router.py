"""Dashboard router: KPI cards and the recent activity feed."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user, require_role
from hrms.auth.models import User
from hrms.common.constants import UserRole
from hrms.dashboard.service import DashboardService
from hrms.database import get_db

router = APIRouter(prefix="", tags=["dashboard"])


# ── GET /metrics ────────────────────────────────────────────────────

@router.get("/metrics")
async def dashboard_metrics(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Headcount, today's attendance rate, pending leave and compliance health."""
    metrics = await DashboardService.get_metrics(db)
    return {"data": metrics.model_dump(), "message": "Dashboard metrics retrieved successfully."}


# ── GET /activity ───────────────────────────────────────────────────

@router.get("/activity")
async def recent_activity(
    limit: int = Query(10, ge=1, le=50, description="Number of entries (max 50)"),
    user: User = Depends(require_role(UserRole.hr, UserRole.department_head)),
    db: AsyncSession = Depends(get_db),
):
    items = await DashboardService.get_activity(db, limit=limit)
    return {
        "data": [i.model_dump(mode="json") for i in items],
        "message": "Recent activity retrieved successfully.",
    }
