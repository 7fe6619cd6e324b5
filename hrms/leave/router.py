"""Leave router — request, list, update, cancel, approve/reject.

All endpoints require authentication. Approve/reject are limited to admins
and department heads; ownership and department checks live in the service.
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user, require_role
from hrms.auth.models import User
from hrms.common.constants import LeaveStatus, UserRole
from hrms.common.pagination import PaginationParams
from hrms.database import get_db
from hrms.leave.schemas import LeaveCreate, LeaveDecisionRequest, LeaveResponse, LeaveUpdate
from hrms.leave.service import LeaveService

router = APIRouter(prefix="", tags=["leave"])


def _payload(leave) -> dict:
    return LeaveResponse.model_validate(leave).model_dump(mode="json")


# ── POST /: Request leave ──────────────────────────────────────────

@router.post("", status_code=201)
async def create_leave(
    body: LeaveCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Request leave. Validates dates, balance and overlap."""
    leave = await LeaveService.create_leave(db, body, user)
    return {"data": _payload(leave), "message": "Leave request submitted successfully."}


# ── GET /: List leave requests ─────────────────────────────────────

@router.get("")
async def list_leaves(
    pagination: PaginationParams = Depends(),
    employee_id: Optional[uuid.UUID] = Query(None),
    status: Optional[LeaveStatus] = Query(None),
    start_date_from: Optional[date] = Query(None),
    start_date_to: Optional[date] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await LeaveService.list_leaves(
        db,
        pagination,
        user,
        employee_id=employee_id,
        status=status,
        start_date_from=start_date_from,
        start_date_to=start_date_to,
    )
    return result.to_envelope()


# ── GET /{id} ───────────────────────────────────────────────────────

@router.get("/{leave_id}")
async def get_leave(
    leave_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    leave = await LeaveService.get_leave(db, leave_id, user)
    return {"data": _payload(leave), "message": "Leave request retrieved successfully."}


# ── PUT /{id}: Edit a pending request ──────────────────────────────

@router.put("/{leave_id}")
async def update_leave(
    leave_id: uuid.UUID,
    body: LeaveUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    leave = await LeaveService.update_leave(db, leave_id, body, user)
    return {"data": _payload(leave), "message": "Leave request updated successfully."}


# ── DELETE /{id} ────────────────────────────────────────────────────

@router.delete("/{leave_id}", status_code=204)
async def delete_leave(
    leave_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await LeaveService.delete_leave(db, leave_id, user)
    return Response(status_code=204)


# ── POST /{id}/cancel ───────────────────────────────────────────────

@router.post("/{leave_id}/cancel")
async def cancel_leave(
    leave_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    leave = await LeaveService.cancel_leave(db, leave_id, user)
    return {"data": _payload(leave), "message": "Leave request cancelled."}


# ── POST /{id}/approve ──────────────────────────────────────────────

@router.post("/{leave_id}/approve")
async def approve_leave(
    leave_id: uuid.UUID,
    body: Optional[LeaveDecisionRequest] = None,
    user: User = Depends(require_role(UserRole.department_head)),
    db: AsyncSession = Depends(get_db),
):
    """Approve a pending request and deduct the leave balance atomically."""
    leave = await LeaveService.approve_leave(
        db, leave_id, user, comments=body.comments if body else None,
    )
    return {"data": _payload(leave), "message": "Leave request approved."}


# ── POST /{id}/reject ───────────────────────────────────────────────

@router.post("/{leave_id}/reject")
async def reject_leave(
    leave_id: uuid.UUID,
    body: Optional[LeaveDecisionRequest] = None,
    user: User = Depends(require_role(UserRole.department_head)),
    db: AsyncSession = Depends(get_db),
):
    leave = await LeaveService.reject_leave(
        db, leave_id, user, comments=body.comments if body else None,
    )
    return {"data": _payload(leave), "message": "Leave request rejected."}
