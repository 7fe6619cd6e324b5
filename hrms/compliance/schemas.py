"""Compliance item schemas."""


import datetime as dt
import uuid
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from hrms.common.constants import ComplianceStatus


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


RequiredStr = Annotated[str, AfterValidator(_strip_required)]


def dates_in_order(issue_date: Optional[dt.date], expiration_date: Optional[dt.date]) -> bool:
    return not (issue_date and expiration_date and expiration_date < issue_date)


class ComplianceItemCreate(BaseModel):
    employee_id: uuid.UUID
    item_type: RequiredStr = Field(..., max_length=100, examples=["License"])
    item_name: RequiredStr = Field(..., max_length=255, examples=["RN License"])
    authority: Optional[str] = Field(None, max_length=255)
    license_number: Optional[str] = Field(None, max_length=100)
    issue_date: Optional[dt.date] = None
    expiration_date: Optional[dt.date] = None
    status: Optional[ComplianceStatus] = None

    @model_validator(mode="after")
    def _dates_in_order(self):
        if not dates_in_order(self.issue_date, self.expiration_date):
            raise ValueError("expiration_date cannot be before issue_date")
        return self


class ComplianceItemUpdate(BaseModel):
    item_type: Optional[RequiredStr] = Field(None, max_length=100)
    item_name: Optional[RequiredStr] = Field(None, max_length=255)
    authority: Optional[str] = Field(None, max_length=255)
    license_number: Optional[str] = Field(None, max_length=100)
    issue_date: Optional[dt.date] = None
    expiration_date: Optional[dt.date] = None
    status: Optional[ComplianceStatus] = None

    @model_validator(mode="after")
    def _dates_in_order(self):
        if not dates_in_order(self.issue_date, self.expiration_date):
            raise ValueError("expiration_date cannot be before issue_date")
        return self


class ComplianceItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    item_type: str
    item_name: str
    authority: Optional[str] = None
    license_number: Optional[str] = None
    issue_date: Optional[dt.date] = None
    expiration_date: Optional[dt.date] = None
    status: ComplianceStatus
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
