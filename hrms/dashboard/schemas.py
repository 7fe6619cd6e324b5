"""Dashboard Pydantic v2 schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# ═════════════════════════════════════════════════════════════════════
# GET /metrics
# ═════════════════════════════════════════════════════════════════════


class EmployeeStats(BaseModel):
    total: int = 0


class AttendanceStats(BaseModel):
    rate: float = Field(0.0, description="Percent of employees with an attendance row today")


class LeaveStats(BaseModel):
    pending_requests: int = 0


class ComplianceStats(BaseModel):
    rate: float = Field(100.0, description="Percent of compliance items that are Active")
    expiring_soon: int = 0
    expired: int = 0


class DashboardMetrics(BaseModel):
    employee_stats: EmployeeStats
    attendance_stats: AttendanceStats
    leave_stats: LeaveStats
    compliance_stats: ComplianceStats


# ═════════════════════════════════════════════════════════════════════
# GET /activity
# ═════════════════════════════════════════════════════════════════════


class ActivityItem(BaseModel):
    id: uuid.UUID
    action_type: str
    description: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    user_id: Optional[uuid.UUID] = None
    username: Optional[str] = None
    created_at: datetime
