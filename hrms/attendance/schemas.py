"""Attendance Pydantic v2 schemas — request / response validation."""


import datetime as dt
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AttendanceCreate(BaseModel):
    """Times arrive as ``HH:MM`` or ``HH:MM:SS`` strings and are parsed by the service."""

    employee_id: uuid.UUID
    date: dt.date
    time_in: str = Field(..., max_length=8, examples=["09:00"])
    time_out: Optional[str] = Field(None, max_length=8, examples=["17:30"])


class AttendanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    date: dt.date
    time_in: dt.time
    time_out: Optional[dt.time] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
