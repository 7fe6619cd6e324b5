"""Built-in onboarding checklists.

``due_days`` counts from the employee's start date; negative values fall
before the first day. Items without ``due_days`` are due on the start date.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from hrms.common.constants import ResponsibleRole


class ChecklistItem(BaseModel):
    id: str
    task: str
    responsible_role: ResponsibleRole
    due_days: Optional[int] = None
    notes: Optional[str] = None


class ChecklistTemplate(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    items: list[ChecklistItem]


def _item(item_id: str, task: str, role: ResponsibleRole, due_days: Optional[int] = None) -> ChecklistItem:
    return ChecklistItem(id=item_id, task=task, responsible_role=role, due_days=due_days)


_HR = ResponsibleRole.hr
_IT = ResponsibleRole.it
_MGR = ResponsibleRole.manager
_EMP = ResponsibleRole.employee

_PRE_BOARDING = [
    _item("pre-01", "Send Welcome Email & First Day Info", _HR, -7),
    _item("pre-02", "Prepare Workstation (Hardware/Software)", _IT, -2),
    _item("pre-03", "Set up necessary system accounts (Email, HRIS, etc.)", _IT, -2),
]

_DAY_ONE = [
    _item("day1-01", "Welcome & Team Introductions", _MGR),
    _item("day1-02", "Complete I-9 Verification", _HR),
    _item("day1-03", "Review Employee Handbook & Policies", _HR),
    _item("day1-04", "Provide Overview of Role & Responsibilities", _MGR),
    _item("day1-05", "Workstation Setup & Login Assistance", _IT),
]

STANDARD_EMPLOYEE = ChecklistTemplate(
    id="standard-employee-v1",
    name="Standard Employee Onboarding",
    description="Default checklist for all new hires.",
    items=[
        *_PRE_BOARDING,
        *_DAY_ONE,
        _item("week1-01", "Complete New Hire Paperwork (W4, Direct Deposit, etc.)", _EMP, 3),
        _item("week1-02", "Enroll in Benefits (if applicable)", _EMP, 5),
        _item("week1-03", "Initial Project/Task Assignment", _MGR, 5),
        _item("week1-04", "Schedule 1:1 Check-in Meeting", _MGR, 5),
        _item("month1-01", "30-Day Performance Check-in", _MGR, 30),
        _item("month1-02", "Complete Required Compliance Training", _EMP, 30),
    ],
)

COMPOUNDING_TECH = ChecklistTemplate(
    id="compounding-tech-v1",
    name="Compounding Technician Onboarding",
    description="Specific checklist for new Compounding Technicians.",
    items=[
        *_PRE_BOARDING,
        *_DAY_ONE,
        _item("day1-06", "Review Lab Safety Procedures & PPE Requirements", _MGR),
        _item("week1-01", "Complete New Hire Paperwork (W4, Direct Deposit, etc.)", _EMP, 3),
        _item("week1-02", "Enroll in Benefits (if applicable)", _EMP, 5),
        _item("week1-03", "Initial Compounding Training/Observation", _MGR, 5),
        _item("week1-04", "Schedule 1:1 Check-in Meeting", _MGR, 5),
        _item("month1-01", "30-Day Performance Check-in", _MGR, 30),
        _item("month1-02", "Complete Required Compliance Training (including HIPAA)", _EMP, 30),
        _item("month1-03", "Complete Initial Compounding Competency Assessment", _MGR, 30),
    ],
)

ONBOARDING_TEMPLATES: dict[str, ChecklistTemplate] = {
    t.id: t for t in (STANDARD_EMPLOYEE, COMPOUNDING_TECH)
}


def get_static_template(code: str) -> Optional[ChecklistTemplate]:
    return ONBOARDING_TEMPLATES.get(code)
