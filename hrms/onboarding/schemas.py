"""Onboarding schemas."""


import uuid

from pydantic import BaseModel, Field

from hrms.onboarding.templates import ChecklistTemplate


class ApplyTemplateRequest(BaseModel):
    template_code: str = Field(..., min_length=1, examples=["standard-employee-v1"])


class TemplateResponse(ChecklistTemplate):
    """A checklist plus whether it is stored in the database."""

    persisted: bool = False


class OnboardingListItem(BaseModel):
    id: uuid.UUID
    name: str
    start_date: str
    progress: int


class OnboardingStats(BaseModel):
    active: int
    completed_this_month: int
    overdue_tasks: int
