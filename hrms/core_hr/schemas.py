"""Core HR Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update  → request bodies (write)
  - *Response          → response bodies (read)
  - *Brief             → compact embedded representations
"""


import uuid
from datetime import date, datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from hrms.common.constants import EmployeeStatus


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


# Non-blank after trimming whitespace
NameStr = Annotated[str, AfterValidator(_strip_required)]


# ═════════════════════════════════════════════════════════════════════
# Department
# ═════════════════════════════════════════════════════════════════════


class DepartmentCreate(BaseModel):
    name: NameStr = Field(..., min_length=1, max_length=100)
    manager_id: Optional[uuid.UUID] = None


class DepartmentUpdate(DepartmentCreate):
    """Full replacement: name is required on update as well."""


class DepartmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    manager_id: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Enriched by the service layer
    employee_count: int = 0


# ═════════════════════════════════════════════════════════════════════
# Position
# ═════════════════════════════════════════════════════════════════════


class PositionCreate(BaseModel):
    name: NameStr = Field(..., min_length=1, max_length=100)


class PositionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str


# ═════════════════════════════════════════════════════════════════════
# Employee: write schemas
# ═════════════════════════════════════════════════════════════════════


class EmployeeCreate(BaseModel):
    """Payload for creating a new employee. ``ssn`` is encrypted before storage."""

    first_name: NameStr = Field(..., min_length=1, max_length=100)
    last_name: NameStr = Field(..., min_length=1, max_length=100)
    ssn: Optional[str] = Field(None, max_length=11)
    department_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    position: Optional[str] = Field(None, max_length=100)
    hire_date: Optional[date] = None
    status: EmployeeStatus = EmployeeStatus.active


class EmployeeUpdate(BaseModel):
    """Partial update — only explicitly-sent fields are applied."""

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    ssn: Optional[str] = Field(None, max_length=11)
    department_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    position: Optional[str] = Field(None, max_length=100)
    hire_date: Optional[date] = None
    status: Optional[EmployeeStatus] = None


# ═════════════════════════════════════════════════════════════════════
# Employee: read schemas
# ═════════════════════════════════════════════════════════════════════


class EmployeeResponse(BaseModel):
    """Employee as returned by the API. The SSN itself is never exposed."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    first_name: str
    last_name: str
    department_id: Optional[uuid.UUID] = None
    user_id: Optional[uuid.UUID] = None
    position: Optional[str] = None
    hire_date: Optional[date] = None
    status: EmployeeStatus
    has_ssn: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LeaveBalanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type: str
    balance: float
    accrued_ytd: float
    used_ytd: float
    last_updated: Optional[datetime] = None
