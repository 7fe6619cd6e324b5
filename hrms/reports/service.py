"""Department reports."""

from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import date, timedelta
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.attendance.models import Attendance
from hrms.auth.models import User
from hrms.common.constants import LeaveStatus, UserRole
from hrms.common.exceptions import ForbiddenException, NotFoundException
from hrms.common.models import today as utc_today
from hrms.core_hr.models import Department, Employee
from hrms.leave.models import Leave

REPORT_WINDOW_DAYS = 30


class DepartmentReport(BaseModel):
    department_id: uuid.UUID
    department_name: str
    employee_count: int
    average_attendance_rate: float
    pending_leave_requests: int


def working_days(start: date, end: date) -> list[date]:
    """Monday to Friday dates in ``[start, end]``."""
    days = []
    current = start
    while current <= end:
        if current.weekday() < 5:
            days.append(current)
        current += timedelta(days=1)
    return days


class ReportService:

    @staticmethod
    async def department_report(
        db: AsyncSession,
        department_id: uuid.UUID,
        user: User,
        *,
        today: Optional[date] = None,
    ) -> DepartmentReport:
        if user.role != UserRole.admin and not (
            user.role == UserRole.department_head and user.department_id == department_id
        ):
            raise ForbiddenException(
                detail="You do not have permission to view this department report.",
            )

        department = await db.get(Department, department_id)
        if department is None:
            raise NotFoundException("Department", str(department_id))

        employee_ids = list(
            (await db.execute(select(Employee.id).where(Employee.department_id == department_id)))
            .scalars()
            .all()
        )

        today = today or utc_today()
        window = working_days(today - timedelta(days=REPORT_WINDOW_DAYS - 1), today)
        rate = 0.0
        if employee_ids and window:
            rows = await db.execute(
                select(Attendance.employee_id, Attendance.date).distinct().where(
                    Attendance.employee_id.in_(employee_ids),
                    Attendance.date >= window[0],
                    Attendance.date <= window[-1],
                )
            )
            attended: dict[uuid.UUID, set[date]] = defaultdict(set)
            workdays = set(window)
            for employee_id, day in rows.all():
                if day in workdays:
                    attended[employee_id].add(day)
            per_employee = [len(attended[e]) / len(window) * 100 for e in employee_ids]
            rate = round(sum(per_employee) / len(per_employee), 1)

        pending = (
            await db.execute(
                select(func.count(Leave.id))
                .join(Employee, Leave.employee_id == Employee.id)
                .where(Employee.department_id == department_id, Leave.status == LeaveStatus.pending)
            )
        ).scalar_one()

        return DepartmentReport(
            department_id=department.id,
            department_name=department.name,
            employee_count=len(employee_ids),
            average_attendance_rate=rate,
            pending_leave_requests=pending,
        )
