"""Document schemas. Uploads arrive as multipart form fields, not JSON."""


import datetime as dt
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DocumentMetadataUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    employee_id: Optional[uuid.UUID] = None
    department_id: Optional[uuid.UUID] = None


class DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    file_path: str
    file_type: str
    file_size: int
    owner_id: Optional[uuid.UUID] = None
    employee_id: Optional[uuid.UUID] = None
    department_id: Optional[uuid.UUID] = None
    version: int
    description: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
