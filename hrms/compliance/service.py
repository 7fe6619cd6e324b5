"""Compliance service layer: role-scoped CRUD for expiring credentials.

Business logic:
  - Employees see their own items; department heads and managers see their
    department; admin and hr see everything
  - Only admins and department heads (within their department) write
  - A new item without an explicit status derives one from its expiration date
"""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import (
    apply_employee_scope,
    ensure_employee_access,
    require_department,
)
from hrms.auth.models import User
from hrms.common.activity import log_activity
from hrms.common.constants import ActivityAction, ComplianceStatus, UserRole
from hrms.common.exceptions import BadRequestException, ForbiddenException, NotFoundException
from hrms.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrms.compliance.expiration import derive_status
from hrms.compliance.models import ComplianceItem
from hrms.compliance.schemas import (
    ComplianceItemCreate,
    ComplianceItemResponse,
    ComplianceItemUpdate,
    dates_in_order,
)
from hrms.core_hr.models import Employee


class ComplianceService:

    @staticmethod
    async def list_items(
        db: AsyncSession,
        pagination: PaginationParams,
        user: User,
        *,
        employee_id: Optional[uuid.UUID] = None,
        status: Optional[ComplianceStatus] = None,
        item_type: Optional[str] = None,
    ) -> PaginatedResponse:
        query = select(ComplianceItem).order_by(
            ComplianceItem.expiration_date.asc(), ComplianceItem.item_name.asc(),
        )
        query = await apply_employee_scope(
            db, user, query, ComplianceItem.employee_id, employee_id,
            outside_is_not_found=True,
        )
        if status is not None:
            query = query.where(ComplianceItem.status == status)
        if item_type:
            query = query.where(ComplianceItem.item_type == item_type)

        return await paginate(
            db, query, pagination,
            model=ComplianceItem,
            transform=ComplianceItemResponse.model_validate,
        )

    @staticmethod
    async def get_item(db: AsyncSession, item_id: uuid.UUID, user: User) -> ComplianceItem:
        item = await db.get(ComplianceItem, item_id)
        if item is None:
            raise NotFoundException("ComplianceItem", str(item_id))
        await ensure_employee_access(db, user, item.employee_id)
        return item

    @staticmethod
    async def create_item(
        db: AsyncSession,
        data: ComplianceItemCreate,
        actor: User,
    ) -> ComplianceItem:
        employee = await db.get(Employee, data.employee_id)
        if employee is None:
            raise NotFoundException("Employee", str(data.employee_id))
        _ensure_can_manage(actor, employee)

        status = data.status or derive_status(data.expiration_date)
        item = ComplianceItem(
            **data.model_dump(exclude={"status"}),
            status=status,
        )
        db.add(item)
        await db.flush()

        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.create,
            description=f"Added compliance item '{item.item_name}' for {employee.full_name}",
            entity_type="ComplianceItem",
            entity_id=item.id,
        )
        return item

    @staticmethod
    async def update_item(
        db: AsyncSession,
        item_id: uuid.UUID,
        data: ComplianceItemUpdate,
        actor: User,
    ) -> ComplianceItem:
        item = await _load_managed_item(db, item_id, actor)

        changes = data.model_dump(exclude_unset=True)
        issue_date = changes.get("issue_date", item.issue_date)
        expiration_date = changes.get("expiration_date", item.expiration_date)
        if not dates_in_order(issue_date, expiration_date):
            raise BadRequestException(
                "Expiration date cannot be before the issue date.",
                errors={"expiration_date": ["must be on or after issue_date"]},
            )
        for field, value in changes.items():
            setattr(item, field, value)
        # A new expiration date without an explicit status re-derives it
        if "expiration_date" in changes and "status" not in changes:
            item.status = derive_status(item.expiration_date)
        await db.flush()

        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.update,
            description=f"Updated compliance item '{item.item_name}'",
            entity_type="ComplianceItem",
            entity_id=item.id,
            details={"fields": sorted(changes)},
        )
        return item

    @staticmethod
    async def delete_item(db: AsyncSession, item_id: uuid.UUID, actor: User) -> None:
        item = await _load_managed_item(db, item_id, actor)
        name = item.item_name
        await db.delete(item)
        await db.flush()

        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.delete,
            description=f"Deleted compliance item '{name}'",
            entity_type="ComplianceItem",
            entity_id=item_id,
        )


async def _load_managed_item(
    db: AsyncSession, item_id: uuid.UUID, actor: User,
) -> ComplianceItem:
    item = await db.get(ComplianceItem, item_id)
    if item is None:
        raise NotFoundException("ComplianceItem", str(item_id))
    employee = await db.get(Employee, item.employee_id)
    _ensure_can_manage(actor, employee)
    return item


def _ensure_can_manage(actor: User, employee: Employee) -> None:
    if actor.role == UserRole.admin:
        return
    if actor.role == UserRole.department_head:
        if employee.department_id == require_department(actor):
            return
        raise ForbiddenException(
            detail="You can only manage compliance items in your department.",
        )
    raise ForbiddenException(detail="Your role cannot manage compliance items.")
