"""Core HR router — Employee, Department, Position API endpoints.

Routes:
    /employees                    — List, create employees
    /employees/export             — CSV export
    /employees/{id}               — Get, update, delete employee
    /employees/{id}/leave-balance — Leave balances of one employee
    /departments                  — List, create departments
    /departments/{id}             — Get, update, delete department
    /positions                    — List, create positions
"""


import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import ensure_employee_access, get_current_user, require_role
from hrms.auth.models import User
from hrms.common.constants import EmployeeStatus, UserRole
from hrms.common.pagination import PaginationParams
from hrms.core_hr.schemas import (
    DepartmentCreate,
    DepartmentResponse,
    DepartmentUpdate,
    EmployeeCreate,
    EmployeeResponse,
    EmployeeUpdate,
    LeaveBalanceResponse,
    PositionCreate,
    PositionResponse,
)
from hrms.core_hr.service import DepartmentService, EmployeeService, PositionService
from hrms.database import get_db


# ═════════════════════════════════════════════════════════════════════
# Routers
# ═════════════════════════════════════════════════════════════════════

employees_router = APIRouter(prefix="", tags=["employees"])
departments_router = APIRouter(prefix="", tags=["departments"])
positions_router = APIRouter(prefix="", tags=["positions"])


def _employee_payload(employee) -> dict:
    return EmployeeResponse.model_validate(employee).model_dump(mode="json")


# ═════════════════════════════════════════════════════════════════════
# Employee Endpoints
# ═════════════════════════════════════════════════════════════════════


# ── GET /employees: List employees ─────────────────────────────────

@employees_router.get("")
async def list_employees(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.hr, UserRole.department_head)),
    pagination: PaginationParams = Depends(),
    search: Optional[str] = Query(None, description="Search by first / last name"),
    department_id: Optional[uuid.UUID] = Query(None, description="Filter by department"),
    status: Optional[EmployeeStatus] = Query(None, description="Active, Terminating, Terminated"),
    position: Optional[str] = Query(None, description="Position contains (case-insensitive)"),
    hired_from: Optional[date] = Query(None, description="Hired on or after (YYYY-MM-DD)"),
    hired_to: Optional[date] = Query(None, description="Hired on or before (YYYY-MM-DD)"),
):
    """List employees with pagination, search, and filtering.

    - **department_head**: own department only
    - **hr / admin**: all employees
    """
    result = await EmployeeService.list_employees(
        db,
        pagination,
        current_user,
        search=search,
        department_id=department_id,
        status=status,
        position=position,
        hired_from=hired_from,
        hired_to=hired_to,
    )
    return result.to_envelope()


# ── GET /employees/export: CSV download ───────────────────────────
# NOTE: defined before /employees/{employee_id} to avoid the path clash.

@employees_router.get("/export")
async def export_employees(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.department_head)),
):
    content = await EmployeeService.export_csv(db, current_user)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="employees.csv"'},
    )


# ── POST /employees: Create employee ──────────────────────────────

@employees_router.post("", status_code=201)
async def create_employee(
    body: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.department_head)),
):
    """Create a new employee record. Requires **department_head** or **admin**."""
    employee = await EmployeeService.create_employee(db, body, current_user)
    return {
        "data": _employee_payload(employee),
        "message": "Employee created successfully.",
    }


# ── GET /employees/{id} ────────────────────────────────────────────

@employees_router.get("/{employee_id}")
async def get_employee(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    employee = await ensure_employee_access(db, current_user, employee_id)
    return {
        "data": _employee_payload(employee),
        "message": "Employee retrieved successfully.",
    }


# ── PUT /employees/{id}: Partial update ───────────────────────────

@employees_router.put("/{employee_id}")
async def update_employee(
    employee_id: uuid.UUID,
    body: EmployeeUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.department_head)),
):
    employee = await EmployeeService.update_employee(db, employee_id, body, current_user)
    return {
        "data": _employee_payload(employee),
        "message": "Employee updated successfully.",
    }


# ── DELETE /employees/{id} ─────────────────────────────────────────

@employees_router.delete("/{employee_id}", status_code=204)
async def delete_employee(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.admin)),
):
    await EmployeeService.delete_employee(db, employee_id, current_user)
    return Response(status_code=204)


# ── GET /employees/{id}/leave-balance ──────────────────────────────

@employees_router.get("/{employee_id}/leave-balance")
async def get_leave_balance(
    employee_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await ensure_employee_access(db, current_user, employee_id)
    balances = await EmployeeService.list_leave_balances(db, employee_id)
    return {
        "data": [
            LeaveBalanceResponse.model_validate(b).model_dump(mode="json")
            for b in balances
        ],
        "message": "Leave balances retrieved successfully.",
    }


# ═════════════════════════════════════════════════════════════════════
# Department Endpoints
# ═════════════════════════════════════════════════════════════════════


@departments_router.get("")
async def list_departments(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    departments = await DepartmentService.list_departments(db)
    return {
        "data": [d.model_dump(mode="json") for d in departments],
        "message": "Departments retrieved successfully.",
    }


@departments_router.post("", status_code=201)
async def create_department(
    body: DepartmentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.admin)),
):
    dept = await DepartmentService.create_department(db, body, current_user)
    return {
        "data": DepartmentResponse.model_validate(dept).model_dump(mode="json"),
        "message": "Department created successfully.",
    }


@departments_router.get("/{department_id}")
async def get_department(
    department_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    dept = await DepartmentService.get_department(db, department_id)
    resp = await DepartmentService.department_response(db, dept)
    return {
        "data": resp.model_dump(mode="json"),
        "message": "Department retrieved successfully.",
    }


@departments_router.put("/{department_id}")
async def update_department(
    department_id: uuid.UUID,
    body: DepartmentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.admin)),
):
    dept = await DepartmentService.update_department(db, department_id, body, current_user)
    resp = await DepartmentService.department_response(db, dept)
    return {
        "data": resp.model_dump(mode="json"),
        "message": "Department updated successfully.",
    }


@departments_router.delete("/{department_id}", status_code=204)
async def delete_department(
    department_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.admin)),
):
    await DepartmentService.delete_department(db, department_id, current_user)
    return Response(status_code=204)


# ═════════════════════════════════════════════════════════════════════
# Position Endpoints
# ═════════════════════════════════════════════════════════════════════


@positions_router.get("")
async def list_positions(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    positions = await PositionService.list_positions(db)
    return {
        "data": [PositionResponse.model_validate(p).model_dump(mode="json") for p in positions],
        "message": "Positions retrieved successfully.",
    }


@positions_router.post("", status_code=201)
async def create_position(
    body: PositionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.admin)),
):
    position = await PositionService.create_position(db, body, current_user)
    return {
        "data": PositionResponse.model_validate(position).model_dump(mode="json"),
        "message": "Position created successfully.",
    }
