"""Attendance router — daily time records.

All endpoints require authentication. Visibility and write access are
role-scoped in the service layer.
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.attendance.schemas import AttendanceCreate, AttendanceResponse
from hrms.attendance.service import AttendanceService
from hrms.auth.dependencies import get_current_user, require_role
from hrms.auth.models import User
from hrms.common.constants import UserRole
from hrms.common.pagination import PaginationParams
from hrms.database import get_db

router = APIRouter(prefix="", tags=["attendance"])


# ── GET /: List attendance ─────────────────────────────────────────

@router.get("")
async def list_attendance(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    pagination: PaginationParams = Depends(),
    employee_id: Optional[uuid.UUID] = Query(None),
    start_date: Optional[date] = Query(None, description="Inclusive lower bound"),
    end_date: Optional[date] = Query(None, description="Inclusive upper bound"),
):
    """Paginated attendance, newest first.

    - **employee**: own records
    - **department_head / manager**: their department
    - **hr / admin**: everything
    """
    result = await AttendanceService.list_attendance(
        db,
        pagination,
        user,
        employee_id=employee_id,
        start_date=start_date,
        end_date=end_date,
    )
    return result.to_envelope()


# ── POST /: Record attendance ──────────────────────────────────────

@router.post("", status_code=201)
async def record_attendance(
    body: AttendanceCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    record = await AttendanceService.record_attendance(db, body, user)
    return {
        "data": AttendanceResponse.model_validate(record).model_dump(mode="json"),
        "message": "Attendance recorded successfully.",
    }


# ── GET /{id} ───────────────────────────────────────────────────────

@router.get("/{attendance_id}")
async def get_attendance(
    attendance_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    record = await AttendanceService.get_attendance(db, attendance_id, user)
    return {
        "data": AttendanceResponse.model_validate(record).model_dump(mode="json"),
        "message": "Attendance record retrieved successfully.",
    }


# ── DELETE /{id} ────────────────────────────────────────────────────

@router.delete("/{attendance_id}", status_code=204)
async def delete_attendance(
    attendance_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_role(UserRole.admin)),
):
    await AttendanceService.delete_attendance(db, attendance_id, user)
    return Response(status_code=204)
