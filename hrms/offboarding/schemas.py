"""Offboarding schemas."""


import datetime as dt
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from hrms.common.constants import OffboardingStatus, OffboardingTaskStatus


class OffboardingCreate(BaseModel):
    employee_id: uuid.UUID
    exit_date: dt.date
    reason: Optional[str] = None


class OffboardingUpdate(BaseModel):
    status: Optional[OffboardingStatus] = None
    exit_date: Optional[dt.date] = None
    reason: Optional[str] = None


class OffboardingTaskUpdate(BaseModel):
    status: OffboardingTaskStatus
    notes: Optional[str] = None


class OffboardingTaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    offboarding_id: uuid.UUID
    description: str
    status: OffboardingTaskStatus
    assigned_to_user_id: Optional[uuid.UUID] = None
    assigned_role: Optional[str] = None
    notes: Optional[str] = None
    completed_at: Optional[dt.datetime] = None


class OffboardingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    exit_date: dt.date
    reason: Optional[str] = None
    status: OffboardingStatus
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class OffboardingDetail(OffboardingResponse):
    tasks: list[OffboardingTaskResponse] = []


class OffboardingListItem(BaseModel):
    id: uuid.UUID
    employee_id: uuid.UUID
    name: str
    exit_date: dt.date
    reason: Optional[str] = None
    status: OffboardingStatus
    progress: int


class TaskTemplateCreate(BaseModel):
    description: str = Field(..., min_length=1)
    default_assigned_role: Optional[str] = Field(None, max_length=50)


class TaskTemplateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    description: str
    default_assigned_role: Optional[str] = None
