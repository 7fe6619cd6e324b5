"""Leave service layer — requests, approvals, cancellation.

Business logic:
  - Duration is inclusive calendar days (``calculate_leave_duration``)
  - Balance is checked on request and deducted on approval
  - Approval flips status and deducts the balance in one transaction;
    the request-scoped session rolls both back if the deduction fails
  - Overlapping Pending/Approved requests for one employee are rejected
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hrms.auth.dependencies import (
    apply_employee_scope,
    require_department,
    require_employee_for_user,
)
from hrms.auth.models import User
from hrms.common.activity import log_activity
from hrms.common.constants import ActivityAction, LeaveStatus, UserRole
from hrms.common.exceptions import (
    BadRequestException,
    ConflictError,
    ForbiddenException,
    NotFoundException,
)
from hrms.common.models import utcnow
from hrms.common.pagination import PaginatedResponse, PaginationParams, empty_page, paginate
from hrms.core_hr.models import Employee
from hrms.leave.balance import check_leave_balance, deduct_leave_balance
from hrms.leave.duration import calculate_leave_duration
from hrms.leave.models import Leave
from hrms.leave.schemas import LeaveCreate, LeaveResponse, LeaveUpdate

logger = logging.getLogger(__name__)

_ACTIVE_STATUSES = (LeaveStatus.pending, LeaveStatus.approved)


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Async leave request operations."""

    # ─────────────────────────────────────────────────────────────────
    # Read
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_leaves(
        db: AsyncSession,
        pagination: PaginationParams,
        user: User,
        *,
        employee_id: Optional[uuid.UUID] = None,
        status: Optional[LeaveStatus] = None,
        start_date_from: Optional[date] = None,
        start_date_to: Optional[date] = None,
    ) -> PaginatedResponse:
        query = select(Leave).order_by(Leave.start_date.desc(), Leave.created_at.desc())
        query = await apply_employee_scope(db, user, query, Leave.employee_id, employee_id)
        if query is None:
            return empty_page(pagination)

        if status is not None:
            query = query.where(Leave.status == status)
        if start_date_from is not None:
            query = query.where(Leave.start_date >= start_date_from)
        if start_date_to is not None:
            query = query.where(Leave.start_date <= start_date_to)

        return await paginate(
            db, query, pagination,
            model=Leave,
            transform=LeaveResponse.model_validate,
        )

    @staticmethod
    async def get_leave(db: AsyncSession, leave_id: uuid.UUID, user: User) -> Leave:
        """Visible to admin, hr, the owner, and department heads / managers
        of the owner's department."""
        leave = await _load_leave(db, leave_id)
        role = user.role
        if role in (UserRole.admin, UserRole.hr) or _is_owner(leave, user):
            return leave
        if role in (UserRole.department_head, UserRole.manager):
            if leave.employee.department_id == require_department(user):
                return leave
        raise ForbiddenException(detail="You do not have access to this leave request.")

    # ─────────────────────────────────────────────────────────────────
    # Create / update / delete
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def create_leave(db: AsyncSession, data: LeaveCreate, user: User) -> Leave:
        """Create a Pending request after scope, date, balance and overlap checks."""
        employee = await _resolve_requesting_employee(db, data.employee_id, user)

        duration = _validated_duration(data.start_date, data.end_date)
        await _ensure_balance(db, employee.id, data.leave_type, duration)
        await _ensure_no_overlap(db, employee.id, data.start_date, data.end_date)

        leave = Leave(
            employee_id=employee.id,
            start_date=data.start_date,
            end_date=data.end_date,
            leave_type=data.leave_type,
            reason=data.reason,
            status=LeaveStatus.pending,
        )
        db.add(leave)
        await db.flush()

        await log_activity(
            db,
            user_id=user.id,
            action_type=ActivityAction.create,
            description=(
                f"Requested {duration} day(s) of {data.leave_type.value} leave "
                f"for {employee.full_name}"
            ),
            entity_type="Leave",
            entity_id=leave.id,
        )
        return leave

    @staticmethod
    async def update_leave(
        db: AsyncSession,
        leave_id: uuid.UUID,
        data: LeaveUpdate,
        user: User,
    ) -> Leave:
        leave = await _load_leave(db, leave_id)
        _ensure_owner_or_admin(leave, user)
        _ensure_pending(leave, "updated")

        changes = data.model_dump(exclude_unset=True)
        start = changes.get("start_date") or leave.start_date
        end = changes.get("end_date") or leave.end_date
        leave_type = changes.get("leave_type") or leave.leave_type

        duration = _validated_duration(start, end)
        await _ensure_balance(db, leave.employee_id, leave_type, duration)
        await _ensure_no_overlap(db, leave.employee_id, start, end, exclude_id=leave.id)

        leave.start_date = start
        leave.end_date = end
        leave.leave_type = leave_type
        if "reason" in changes:
            leave.reason = changes["reason"]
        await db.flush()

        await log_activity(
            db,
            user_id=user.id,
            action_type=ActivityAction.update,
            description=f"Updated leave request {leave.id}",
            entity_type="Leave",
            entity_id=leave.id,
            details={"fields": sorted(changes)},
        )
        return leave

    @staticmethod
    async def delete_leave(db: AsyncSession, leave_id: uuid.UUID, user: User) -> None:
        leave = await _load_leave(db, leave_id)
        _ensure_owner_or_admin(leave, user)
        _ensure_pending(leave, "deleted")

        await db.delete(leave)
        await db.flush()

        await log_activity(
            db,
            user_id=user.id,
            action_type=ActivityAction.delete,
            description=f"Deleted leave request {leave_id}",
            entity_type="Leave",
            entity_id=leave_id,
        )

    @staticmethod
    async def cancel_leave(db: AsyncSession, leave_id: uuid.UUID, user: User) -> Leave:
        leave = await _load_leave(db, leave_id)
        _ensure_owner_or_admin(leave, user)
        _ensure_pending(leave, "cancelled")

        leave.status = LeaveStatus.cancelled
        await db.flush()

        await log_activity(
            db,
            user_id=user.id,
            action_type=ActivityAction.cancel,
            description=f"Cancelled leave request {leave.id}",
            entity_type="Leave",
            entity_id=leave.id,
        )
        return leave

    # ─────────────────────────────────────────────────────────────────
    # Approve / reject
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def approve_leave(
        db: AsyncSession,
        leave_id: uuid.UUID,
        approver: User,
        *,
        comments: Optional[str] = None,
    ) -> Leave:
        """Approve a Pending request and deduct its duration from the balance.

        Both writes share the request transaction: an insufficient balance
        raises 400 and the status change is rolled back with it.
        """
        leave = await _load_leave(db, leave_id)
        _ensure_can_decide(leave, approver)
        _ensure_pending(leave, "approved")

        leave.status = LeaveStatus.approved
        leave.approver_id = approver.id
        leave.approved_at = utcnow()
        leave.comments = comments

        duration = calculate_leave_duration(leave.start_date, leave.end_date)
        await deduct_leave_balance(db, leave.employee_id, leave.leave_type, duration)

        await log_activity(
            db,
            user_id=approver.id,
            action_type=ActivityAction.approve,
            description=f"Approved {duration} day(s) of leave for {leave.employee.full_name}",
            entity_type="Leave",
            entity_id=leave.id,
            details={"comments": comments} if comments else None,
        )
        return leave

    @staticmethod
    async def reject_leave(
        db: AsyncSession,
        leave_id: uuid.UUID,
        approver: User,
        *,
        comments: Optional[str] = None,
    ) -> Leave:
        leave = await _load_leave(db, leave_id)
        _ensure_can_decide(leave, approver)
        _ensure_pending(leave, "rejected")

        leave.status = LeaveStatus.rejected
        leave.approver_id = approver.id
        leave.approved_at = utcnow()
        leave.comments = comments
        await db.flush()

        await log_activity(
            db,
            user_id=approver.id,
            action_type=ActivityAction.reject,
            description=f"Rejected leave request for {leave.employee.full_name}",
            entity_type="Leave",
            entity_id=leave.id,
            details={"comments": comments} if comments else None,
        )
        return leave


# ── Internal helpers ────────────────────────────────────────────────

async def _load_leave(db: AsyncSession, leave_id: uuid.UUID) -> Leave:
    result = await db.execute(
        select(Leave).where(Leave.id == leave_id).options(selectinload(Leave.employee))
    )
    leave = result.scalars().first()
    if leave is None:
        raise NotFoundException("Leave", str(leave_id))
    return leave


def _is_owner(leave: Leave, user: User) -> bool:
    return leave.employee is not None and leave.employee.user_id == user.id


def _ensure_owner_or_admin(leave: Leave, user: User) -> None:
    if user.role != UserRole.admin and not _is_owner(leave, user):
        raise ForbiddenException(detail="Only the requester or an admin can change this request.")


def _ensure_pending(leave: Leave, action: str) -> None:
    if leave.status != LeaveStatus.pending:
        raise BadRequestException(
            f"Only pending requests can be {action}; this one is {leave.status.value}.",
        )


def _ensure_can_decide(leave: Leave, user: User) -> None:
    if user.role == UserRole.admin:
        return
    if user.role == UserRole.department_head:
        if leave.employee.department_id == require_department(user):
            return
    raise ForbiddenException(detail="You are not authorized to decide this leave request.")


def _validated_duration(start: date, end: date) -> int:
    if end < start:
        raise BadRequestException(
            "End date cannot be before start date.",
            errors={"end_date": ["Must be on or after start_date."]},
        )
    return calculate_leave_duration(start, end)


async def _ensure_balance(db: AsyncSession, employee_id, leave_type, duration: int) -> None:
    if not await check_leave_balance(db, employee_id, leave_type, duration):
        raise BadRequestException(
            "Insufficient leave balance",
            errors={"leave_type": [f"Not enough {leave_type.value} balance for {duration} day(s)."]},
        )


async def _ensure_no_overlap(
    db: AsyncSession,
    employee_id: uuid.UUID,
    start: date,
    end: date,
    *,
    exclude_id: Optional[uuid.UUID] = None,
) -> None:
    query = select(Leave.id).where(
        Leave.employee_id == employee_id,
        Leave.status.in_(_ACTIVE_STATUSES),
        Leave.start_date <= end,
        Leave.end_date >= start,
    )
    if exclude_id is not None:
        query = query.where(Leave.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise ConflictError(
            "dates",
            f"{start.isoformat()}..{end.isoformat()}",
            detail="The requested dates overlap an existing pending or approved leave.",
        )


async def _resolve_requesting_employee(
    db: AsyncSession,
    employee_id: Optional[uuid.UUID],
    user: User,
) -> Employee:
    """Whose leave is being requested, enforcing who may request for whom."""
    if employee_id is None:
        return await require_employee_for_user(db, user)

    employee = await db.get(Employee, employee_id)
    if employee is None:
        raise NotFoundException("Employee", str(employee_id))

    if user.role in (UserRole.admin, UserRole.hr):
        return employee
    if user.role == UserRole.department_head:
        if employee.department_id == require_department(user):
            return employee
        raise ForbiddenException(
            detail="Department heads can only request leave within their department.",
        )
    if employee.user_id != user.id:
        raise ForbiddenException(detail="You can only request leave for yourself.")
    return employee
