"""Leave Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update / *Request → request bodies (write)
  - *Response                    → response bodies (read)
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from hrms.common.constants import LeaveStatus, LeaveType
from hrms.leave.duration import calculate_leave_duration


# ═════════════════════════════════════════════════════════════════════
# Requests
# ═════════════════════════════════════════════════════════════════════


class LeaveCreate(BaseModel):
    """Date ordering and balance are checked by the service (400, not 422)."""

    employee_id: Optional[uuid.UUID] = Field(
        None, description="Defaults to the caller's own employee profile",
    )
    start_date: date
    end_date: date
    leave_type: LeaveType
    reason: Optional[str] = Field(None, max_length=2000)


class LeaveUpdate(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    leave_type: Optional[LeaveType] = None
    reason: Optional[str] = Field(None, max_length=2000)


class LeaveDecisionRequest(BaseModel):
    """Body of approve / reject."""

    comments: Optional[str] = Field(None, max_length=2000)


# ═════════════════════════════════════════════════════════════════════
# Responses
# ═════════════════════════════════════════════════════════════════════


class LeaveResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    start_date: date
    end_date: date
    leave_type: LeaveType
    reason: Optional[str] = None
    status: LeaveStatus
    approver_id: Optional[uuid.UUID] = None
    approved_at: Optional[datetime] = None
    comments: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration_days(self) -> int:
        return calculate_leave_duration(self.start_date, self.end_date)
