"""Core HR service layer — async CRUD + business logic.

Uses:
  - ``paginate()`` from hrms.common.pagination
  - ``apply_filters / apply_search`` from hrms.common.filters
  - ``log_activity`` from hrms.common.activity
  - ``NotFoundException / ConflictError`` from hrms.common.exceptions
"""

from __future__ import annotations

import csv
import io
import uuid
from datetime import date
from typing import Any, Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import require_department
from hrms.auth.models import User
from hrms.common.activity import log_activity
from hrms.common.constants import ActivityAction, EmployeeStatus, UserRole
from hrms.common.exceptions import (
    BadRequestException,
    ConflictError,
    ForbiddenException,
    NotFoundException,
)
from hrms.common.filters import apply_filters, apply_search
from hrms.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrms.common.security import encrypt_value
from hrms.core_hr.models import Department, Employee, Position
from hrms.core_hr.schemas import (
    DepartmentCreate,
    DepartmentResponse,
    DepartmentUpdate,
    EmployeeCreate,
    EmployeeResponse,
    EmployeeUpdate,
    PositionCreate,
)
from hrms.leave.models import LeaveBalance

# Columns written by the CSV export; ssn_encrypted and user_id are never exported
EXPORT_COLUMNS: tuple[str, ...] = (
    "id",
    "first_name",
    "last_name",
    "department_id",
    "position",
    "hire_date",
    "status",
    "created_at",
    "updated_at",
)


def _export_value(value: Any) -> Any:
    if value is None:
        return ""
    if hasattr(value, "value"):
        return value.value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


# ═════════════════════════════════════════════════════════════════════
# EmployeeService
# ═════════════════════════════════════════════════════════════════════


class EmployeeService:
    """Async CRUD operations for employees."""

    # ── List (paginated, searchable, filterable) ────────────────────

    @staticmethod
    async def list_employees(
        db: AsyncSession,
        pagination: PaginationParams,
        user: User,
        *,
        search: Optional[str] = None,
        department_id: Optional[uuid.UUID] = None,
        status: Optional[EmployeeStatus] = None,
        position: Optional[str] = None,
        hired_from: Optional[date] = None,
        hired_to: Optional[date] = None,
    ) -> PaginatedResponse:
        """Return a paginated, filtered, searchable employee list.

        Department heads are pinned to their own department regardless of
        the ``department_id`` they pass.
        """
        if user.role == UserRole.department_head:
            department_id = require_department(user)

        query = select(Employee).order_by(Employee.last_name, Employee.first_name)
        query = apply_filters(
            query,
            Employee,
            {
                "department_id": department_id,
                "status": status,
                "position__ilike": position,
                "hire_date__from": hired_from,
                "hire_date__to": hired_to,
            },
        )
        query = apply_search(query, Employee, search, ["first_name", "last_name"])

        return await paginate(
            db, query, pagination,
            model=Employee,
            transform=EmployeeResponse.model_validate,
        )

    # ── Get single ──────────────────────────────────────────────────

    @staticmethod
    async def get_employee(db: AsyncSession, employee_id: uuid.UUID) -> Employee:
        employee = await db.get(Employee, employee_id)
        if employee is None:
            raise NotFoundException("Employee", str(employee_id))
        return employee

    # ── Create ──────────────────────────────────────────────────────

    @staticmethod
    async def create_employee(
        db: AsyncSession,
        data: EmployeeCreate,
        actor: User,
    ) -> Employee:
        """Create a new employee record, encrypting the SSN."""
        if actor.role == UserRole.department_head:
            own_department = require_department(actor)
            if data.department_id is None:
                data.department_id = own_department
            elif data.department_id != own_department:
                raise ForbiddenException(
                    detail="Department heads can only add employees to their own department.",
                )

        await _validate_department(db, data.department_id)
        await _validate_user_link(db, data.user_id)

        payload = data.model_dump(exclude={"ssn"})
        employee = Employee(**payload, ssn_encrypted=encrypt_value(data.ssn))
        db.add(employee)
        await db.flush()

        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.create,
            description=f"Created employee {employee.full_name}",
            entity_type="Employee",
            entity_id=employee.id,
        )
        return employee

    # ── Update ──────────────────────────────────────────────────────

    @staticmethod
    async def update_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
        data: EmployeeUpdate,
        actor: User,
    ) -> Employee:
        """Partial-update an existing employee."""
        employee = await EmployeeService.get_employee(db, employee_id)

        if actor.role == UserRole.department_head:
            own_department = require_department(actor)
            if employee.department_id != own_department:
                raise ForbiddenException(
                    detail="Department heads can only update employees in their own department.",
                )
        elif actor.role != UserRole.admin:
            raise ForbiddenException()

        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return employee

        if "department_id" in changes:
            if (
                actor.role == UserRole.department_head
                and changes["department_id"] != employee.department_id
            ):
                raise ForbiddenException(
                    detail="Department heads cannot move employees to another department.",
                )
            await _validate_department(db, changes["department_id"])
        if changes.get("user_id") and changes["user_id"] != employee.user_id:
            await _validate_user_link(db, changes["user_id"])

        if "ssn" in changes:
            employee.ssn_encrypted = encrypt_value(changes.pop("ssn"))
        for field in ("first_name", "last_name"):
            if field in changes and not (changes[field] or "").strip():
                raise BadRequestException(f"{field} must not be blank.")

        for field, value in changes.items():
            setattr(employee, field, value)
        await db.flush()

        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.update,
            description=f"Updated employee {employee.full_name}",
            entity_type="Employee",
            entity_id=employee.id,
            details={"fields": sorted(data.model_dump(exclude_unset=True))},
        )
        return employee

    # ── Delete ──────────────────────────────────────────────────────

    @staticmethod
    async def delete_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
        actor: User,
    ) -> None:
        employee = await EmployeeService.get_employee(db, employee_id)
        name = employee.full_name
        await db.delete(employee)
        await db.flush()

        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.delete,
            description=f"Deleted employee {name}",
            entity_type="Employee",
            entity_id=employee_id,
        )

    # ── Leave balances ──────────────────────────────────────────────

    @staticmethod
    async def list_leave_balances(
        db: AsyncSession,
        employee_id: uuid.UUID,
    ) -> Sequence[LeaveBalance]:
        result = await db.execute(
            select(LeaveBalance)
            .where(LeaveBalance.employee_id == employee_id)
            .order_by(LeaveBalance.leave_type)
        )
        return result.scalars().all()

    # ── CSV export ──────────────────────────────────────────────────

    @staticmethod
    async def export_csv(db: AsyncSession, user: User) -> str:
        """Render employees as CSV text, ordered by last then first name.

        Returns an empty string when there is nothing to export.
        """
        query = select(Employee).order_by(Employee.last_name, Employee.first_name)
        if user.role == UserRole.department_head:
            query = query.where(Employee.department_id == require_department(user))

        employees = (await db.execute(query)).scalars().all()
        if not employees:
            return ""

        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(EXPORT_COLUMNS)
        for emp in employees:
            writer.writerow([_export_value(getattr(emp, col)) for col in EXPORT_COLUMNS])
        return buffer.getvalue()


# ═════════════════════════════════════════════════════════════════════
# DepartmentService
# ═════════════════════════════════════════════════════════════════════


class DepartmentService:
    """Async CRUD operations for departments."""

    @staticmethod
    async def list_departments(db: AsyncSession) -> list[DepartmentResponse]:
        """Return all departments, sorted by name, with employee counts."""
        result = await db.execute(select(Department).order_by(Department.name))
        departments = result.scalars().all()

        # Batch-fetch employee counts
        count_result = await db.execute(
            select(Employee.department_id, func.count(Employee.id))
            .where(Employee.department_id.is_not(None))
            .group_by(Employee.department_id)
        )
        emp_counts = {row[0]: row[1] for row in count_result.all()}

        responses: list[DepartmentResponse] = []
        for dept in departments:
            resp = DepartmentResponse.model_validate(dept)
            resp.employee_count = emp_counts.get(dept.id, 0)
            responses.append(resp)
        return responses

    @staticmethod
    async def get_department(db: AsyncSession, department_id: uuid.UUID) -> Department:
        dept = await db.get(Department, department_id)
        if dept is None:
            raise NotFoundException("Department", str(department_id))
        return dept

    @staticmethod
    async def department_response(db: AsyncSession, dept: Department) -> DepartmentResponse:
        count = (
            await db.execute(
                select(func.count())
                .select_from(Employee)
                .where(Employee.department_id == dept.id)
            )
        ).scalar() or 0
        resp = DepartmentResponse.model_validate(dept)
        resp.employee_count = count
        return resp

    @staticmethod
    async def create_department(
        db: AsyncSession,
        data: DepartmentCreate,
        actor: User,
    ) -> Department:
        await _ensure_unique_name(db, Department, data.name)
        await _validate_manager(db, data.manager_id)

        dept = Department(name=data.name, manager_id=data.manager_id)
        db.add(dept)
        await db.flush()

        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.create,
            description=f"Created department {dept.name}",
            entity_type="Department",
            entity_id=dept.id,
        )
        return dept

    @staticmethod
    async def update_department(
        db: AsyncSession,
        department_id: uuid.UUID,
        data: DepartmentUpdate,
        actor: User,
    ) -> Department:
        dept = await DepartmentService.get_department(db, department_id)
        if data.name != dept.name:
            await _ensure_unique_name(db, Department, data.name, exclude_id=dept.id)
        await _validate_manager(db, data.manager_id)

        dept.name = data.name
        dept.manager_id = data.manager_id
        await db.flush()

        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.update,
            description=f"Updated department {dept.name}",
            entity_type="Department",
            entity_id=dept.id,
        )
        return dept

    @staticmethod
    async def delete_department(
        db: AsyncSession,
        department_id: uuid.UUID,
        actor: User,
    ) -> None:
        dept = await DepartmentService.get_department(db, department_id)
        name = dept.name
        # Members stay, unassigned
        await db.execute(
            update(Employee).where(Employee.department_id == department_id).values(department_id=None)
        )
        await db.execute(
            update(User).where(User.department_id == department_id).values(department_id=None)
        )
        await db.delete(dept)
        await db.flush()

        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.delete,
            description=f"Deleted department {name}",
            entity_type="Department",
            entity_id=department_id,
        )


# ═════════════════════════════════════════════════════════════════════
# PositionService
# ═════════════════════════════════════════════════════════════════════


class PositionService:
    @staticmethod
    async def list_positions(db: AsyncSession) -> Sequence[Position]:
        result = await db.execute(select(Position).order_by(Position.name))
        return result.scalars().all()

    @staticmethod
    async def create_position(
        db: AsyncSession,
        data: PositionCreate,
        actor: User,
    ) -> Position:
        await _ensure_unique_name(db, Position, data.name)
        position = Position(name=data.name)
        db.add(position)
        await db.flush()

        await log_activity(
            db,
            user_id=actor.id,
            action_type=ActivityAction.create,
            description=f"Created position {position.name}",
            entity_type="Position",
            entity_id=position.id,
        )
        return position


# ── Internal helpers ────────────────────────────────────────────────

async def _ensure_unique_name(
    db: AsyncSession,
    model: Any,
    name: str,
    *,
    exclude_id: Optional[uuid.UUID] = None,
) -> None:
    query = select(model.id).where(model.name == name)
    if exclude_id is not None:
        query = query.where(model.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise ConflictError("name", name)


async def _validate_department(db: AsyncSession, department_id: Optional[uuid.UUID]) -> None:
    if department_id is not None and await db.get(Department, department_id) is None:
        raise BadRequestException("Department not found.")


async def _validate_manager(db: AsyncSession, manager_id: Optional[uuid.UUID]) -> None:
    if manager_id is not None and await db.get(User, manager_id) is None:
        raise BadRequestException("Manager user not found.")


async def _validate_user_link(db: AsyncSession, user_id: Optional[uuid.UUID]) -> None:
    """The user must exist and must not already be linked to another employee."""
    if user_id is None:
        return
    if await db.get(User, user_id) is None:
        raise BadRequestException("Linked user not found.")
    linked = await db.execute(select(Employee.id).where(Employee.user_id == user_id))
    if linked.first() is not None:
        raise ConflictError("user_id", user_id)
