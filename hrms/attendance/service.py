"""Attendance service layer — role-scoped reads and manual time entry.

Business logic:
  - Time strings are ``HH:MM`` or ``HH:MM:SS``; time_out may not precede time_in
  - One record per employee per day
  - Visibility follows the shared employee scope (own / department / all)
"""

from __future__ import annotations

import re
import uuid
from datetime import date, datetime, time
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.attendance.models import Attendance
from hrms.attendance.schemas import AttendanceCreate, AttendanceResponse
from hrms.auth.dependencies import (
    apply_employee_scope,
    ensure_employee_access,
    require_department,
)
from hrms.auth.models import User
from hrms.common.activity import log_activity
from hrms.common.constants import ActivityAction, UserRole
from hrms.common.exceptions import (
    BadRequestException,
    ConflictError,
    ForbiddenException,
    NotFoundException,
)
from hrms.common.pagination import PaginatedResponse, PaginationParams, empty_page, paginate
from hrms.core_hr.models import Employee

_TIME_RE = re.compile(r"^\d{2}:\d{2}(:\d{2})?$")


def parse_time(value: Optional[str], field: str) -> Optional[time]:
    """Parse ``HH:MM`` / ``HH:MM:SS``; anything else is a 400."""
    if value is None or value == "":
        return None
    if not _TIME_RE.match(value):
        raise BadRequestException(
            f"Invalid {field} format. Use HH:MM or HH:MM:SS.",
            errors={field: ["Expected HH:MM or HH:MM:SS."]},
        )
    fmt = "%H:%M:%S" if value.count(":") == 2 else "%H:%M"
    try:
        return datetime.strptime(value, fmt).time()
    except ValueError:
        raise BadRequestException(
            f"Invalid {field} value.",
            errors={field: [f"'{value}' is not a valid time of day."]},
        )


# ═════════════════════════════════════════════════════════════════════
# AttendanceService
# ═════════════════════════════════════════════════════════════════════


class AttendanceService:
    """Async attendance operations: list, record, read, delete."""

    # ── List ────────────────────────────────────────────────────────

    @staticmethod
    async def list_attendance(
        db: AsyncSession,
        pagination: PaginationParams,
        user: User,
        *,
        employee_id: Optional[uuid.UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> PaginatedResponse:
        query = select(Attendance).order_by(Attendance.date.desc(), Attendance.time_in.desc())
        query = await apply_employee_scope(
            db, user, query, Attendance.employee_id, employee_id,
        )
        if query is None:
            return empty_page(pagination)

        if start_date is not None:
            query = query.where(Attendance.date >= start_date)
        if end_date is not None:
            query = query.where(Attendance.date <= end_date)

        return await paginate(
            db, query, pagination,
            model=Attendance,
            transform=AttendanceResponse.model_validate,
        )

    # ── Record ──────────────────────────────────────────────────────

    @staticmethod
    async def record_attendance(
        db: AsyncSession,
        data: AttendanceCreate,
        actor: User,
    ) -> Attendance:
        """Create an attendance row after role checks and time validation."""
        time_in = parse_time(data.time_in, "time_in")
        time_out = parse_time(data.time_out, "time_out")
        if time_in is None:
            raise BadRequestException("time_in is required.")
        if time_out is not None and time_out < time_in:
            raise BadRequestException("time_out cannot be earlier than time_in.")

        employee = await db.get(Employee, data.employee_id)
        if employee is None:
            raise NotFoundException("Employee", str(data.employee_id))
        _check_can_record(actor, employee)

        existing = await db.execute(
            select(Attendance.id).where(
                Attendance.employee_id == employee.id,
                Attendance.date == data.date,
            )
        )
        if existing.first() is not None:
            raise ConflictError("date", data.date.isoformat())

        record = Attendance(
            employee_id=employee.id,
            date=data.date,
            time_in=time_in,
            time_out=time_out,
        )
        db.add(record)
        await db.flush()

        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.create,
            description=f"Recorded attendance for {employee.full_name} on {data.date.isoformat()}",
            entity_type="Attendance",
            entity_id=record.id,
        )
        return record

    # ── Get / delete ────────────────────────────────────────────────

    @staticmethod
    async def get_attendance(
        db: AsyncSession,
        attendance_id: uuid.UUID,
        user: User,
    ) -> Attendance:
        record = await db.get(Attendance, attendance_id)
        if record is None:
            raise NotFoundException("Attendance", str(attendance_id))
        await ensure_employee_access(db, user, record.employee_id)
        return record

    @staticmethod
    async def delete_attendance(
        db: AsyncSession,
        attendance_id: uuid.UUID,
        actor: User,
    ) -> None:
        record = await db.get(Attendance, attendance_id)
        if record is None:
            raise NotFoundException("Attendance", str(attendance_id))
        await db.delete(record)
        await db.flush()

        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.delete,
            description=f"Deleted attendance record from {record.date.isoformat()}",
            entity_type="Attendance",
            entity_id=attendance_id,
        )


def _check_can_record(actor: User, employee: Employee) -> None:
    if actor.role == UserRole.admin:
        return
    if actor.role == UserRole.department_head:
        if employee.department_id != require_department(actor):
            raise ForbiddenException(
                detail="You can only manage attendance for your department.",
            )
        return
    if actor.role == UserRole.employee:
        if employee.user_id != actor.id:
            raise ForbiddenException(detail="You can only log your own attendance.")
        return
    raise ForbiddenException(detail="Your role cannot record attendance.")
