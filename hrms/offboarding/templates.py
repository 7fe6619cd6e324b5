"""Built-in offboarding process and the default HR task list."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from hrms.common.constants import ResponsibleRole, StepTiming


class ProcessStep(BaseModel):
    id: str
    task: str
    responsible_role: ResponsibleRole
    timing: StepTiming
    notes: Optional[str] = None


class ProcessTemplate(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    steps: list[ProcessStep]


def _step(step_id: str, task: str, role: ResponsibleRole, timing: StepTiming, notes: Optional[str] = None) -> ProcessStep:
    return ProcessStep(id=step_id, task=task, responsible_role=role, timing=timing, notes=notes)


_BEFORE = StepTiming.before_last_day
_ON = StepTiming.on_last_day
_AFTER = StepTiming.after_last_day

STANDARD_EXIT = ProcessTemplate(
    id="standard-exit-v1",
    name="Standard Employee Offboarding",
    description="Default process for all departing employees.",
    steps=[
        _step("pre-01", "Receive and Acknowledge Resignation", ResponsibleRole.manager, _BEFORE),
        _step("pre-02", "Notify HR and IT of Departure Date", ResponsibleRole.manager, _BEFORE),
        _step("pre-03", "Plan Knowledge Transfer / Handover", ResponsibleRole.manager, _BEFORE),
        _step("pre-04", "Calculate Final Pay & Accrued Leave", ResponsibleRole.hr, _BEFORE),
        _step("pre-05", "Prepare COBRA & Benefits Information", ResponsibleRole.hr, _BEFORE),
        _step("lastday-01", "Conduct Exit Interview (Optional)", ResponsibleRole.hr, _ON),
        _step("lastday-02", "Collect Company Property (Laptop, Badge, Keys, etc.)", ResponsibleRole.manager, _ON),
        _step("lastday-03", "Review Final Paycheck Details", ResponsibleRole.hr, _ON),
        _step(
            "lastday-04", "Disable System Access (Email, HRIS, etc.)", ResponsibleRole.it, _ON,
            notes="Coordinate timing with Manager/HR",
        ),
        _step("lastday-05", "Remove from Building Access Systems", ResponsibleRole.it, _ON),
        _step("post-01", "Process Final Paycheck", ResponsibleRole.finance, _AFTER),
        _step("post-02", "Send COBRA Notification", ResponsibleRole.hr, _AFTER),
        _step("post-03", "Update Employee Records to Terminated Status", ResponsibleRole.hr, _AFTER),
        _step("post-04", "Archive User Data (as per policy)", ResponsibleRole.it, _AFTER),
    ],
)

OFFBOARDING_TEMPLATES: dict[str, ProcessTemplate] = {STANDARD_EXIT.id: STANDARD_EXIT}

# (description, default_assigned_role) rows seeded into task_templates
DEFAULT_TASK_TEMPLATES: list[tuple[str, str]] = [
    ("Update HR system to reflect status change (Offboarding)", "HR"),
    ("Provide offboarding packet (exit process overview)", "HR"),
    ("Collect resignation letter or issue termination letter", "HR"),
    ("Conduct exit interview", "HR"),
    ("Determine rehire eligibility", "HR"),
    ("Provide benefits continuation info (if applicable)", "HR"),
    ("Discuss final paycheck, unused PTO payout, bonuses, etc.", "HR"),
    ("Send employment verification letter (if requested)", "HR"),
]
