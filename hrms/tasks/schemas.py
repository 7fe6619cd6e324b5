"""Task schemas."""


import datetime as dt
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from hrms.common.constants import RelatedEntityType, TaskStatus


class TaskCreate(BaseModel):
    """Blank titles are rejected by the service with a 400, not here."""

    title: str = Field(..., max_length=255)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.pending
    due_date: Optional[dt.date] = None
    assigned_to_id: Optional[uuid.UUID] = None
    related_entity_type: Optional[RelatedEntityType] = None
    related_entity_id: Optional[uuid.UUID] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[dt.date] = None
    assigned_to_id: Optional[uuid.UUID] = None


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: Optional[str] = None
    status: TaskStatus
    due_date: Optional[dt.date] = None
    assigned_to_id: Optional[uuid.UUID] = None
    created_by_id: Optional[uuid.UUID] = None
    related_entity_type: Optional[RelatedEntityType] = None
    related_entity_id: Optional[uuid.UUID] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
