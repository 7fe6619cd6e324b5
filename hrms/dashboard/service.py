"""Dashboard service: read-only aggregate counts across HR modules.

All methods are static async. Counts run at the database level.
"""

from __future__ import annotations

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.attendance.models import Attendance
from hrms.common.activity import get_recent_activity
from hrms.common.constants import ComplianceStatus, LeaveStatus
from hrms.common.models import today as utc_today
from hrms.compliance.models import ComplianceItem
from hrms.core_hr.models import Employee
from hrms.dashboard.schemas import (
    ActivityItem,
    AttendanceStats,
    ComplianceStats,
    DashboardMetrics,
    EmployeeStats,
    LeaveStats,
)
from hrms.leave.models import Leave


def percentage(part: int, whole: int, *, empty: float = 0.0) -> float:
    """``part / whole`` as a percent rounded to one decimal; *empty* when whole is 0."""
    if not whole:
        return empty
    return round(part / whole * 100, 1)


class DashboardService:

    @staticmethod
    async def get_metrics(db: AsyncSession) -> DashboardMetrics:
        today = utc_today()

        total_employees, present_today, pending_leaves = await _multi_scalar(
            db,
            select(func.count(Employee.id)),
            select(func.count(distinct(Attendance.employee_id))).where(Attendance.date == today),
            select(func.count(Leave.id)).where(Leave.status == LeaveStatus.pending),
        )

        rows = await db.execute(
            select(ComplianceItem.status, func.count(ComplianceItem.id)).group_by(ComplianceItem.status)
        )
        by_status = {status: count for status, count in rows.all()}
        total_items = sum(by_status.values())

        return DashboardMetrics(
            employee_stats=EmployeeStats(total=total_employees),
            attendance_stats=AttendanceStats(rate=percentage(present_today, total_employees)),
            leave_stats=LeaveStats(pending_requests=pending_leaves),
            compliance_stats=ComplianceStats(
                rate=percentage(
                    by_status.get(ComplianceStatus.active, 0), total_items, empty=100.0,
                ),
                expiring_soon=by_status.get(ComplianceStatus.expiring_soon, 0),
                expired=by_status.get(ComplianceStatus.expired, 0),
            ),
        )

    @staticmethod
    async def get_activity(db: AsyncSession, limit: int = 10) -> list[ActivityItem]:
        entries = await get_recent_activity(db, limit=limit)
        return [
            ActivityItem(
                id=entry.id,
                action_type=entry.action_type,
                description=entry.description,
                entity_type=entry.entity_type,
                entity_id=entry.entity_id,
                user_id=entry.user_id,
                username=entry.user.username if entry.user else None,
                created_at=entry.created_at,
            )
            for entry in entries
        ]


async def _multi_scalar(db: AsyncSession, *stmts) -> list:
    """Execute multiple scalar queries and return their results in order."""
    results = []
    for stmt in stmts:
        result = await db.execute(stmt)
        results.append(result.scalar() or 0)
    return results
