"""Enums and constants for Mountain Care HR — matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    admin = "admin"
    hr = "hr"
    department_head = "department_head"
    manager = "manager"
    employee = "employee"


# ── Employees ───────────────────────────────────────────────────────

class EmployeeStatus(str, enum.Enum):
    active = "Active"
    terminating = "Terminating"
    terminated = "Terminated"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveType(str, enum.Enum):
    vacation = "Vacation"
    sick = "Sick"
    personal = "Personal"
    bereavement = "Bereavement"
    other = "Other"


class LeaveStatus(str, enum.Enum):
    pending = "Pending"
    approved = "Approved"
    rejected = "Rejected"
    cancelled = "Cancelled"


# ── Compliance ──────────────────────────────────────────────────────

class ComplianceStatus(str, enum.Enum):
    active = "Active"
    expiring_soon = "ExpiringSoon"
    expired = "Expired"
    pending_review = "PendingReview"


# ── Tasks ───────────────────────────────────────────────────────────

class TaskStatus(str, enum.Enum):
    pending = "Pending"
    in_progress = "InProgress"
    completed = "Completed"
    blocked = "Blocked"


class RelatedEntityType(str, enum.Enum):
    onboarding = "Onboarding"
    offboarding = "Offboarding"
    compliance = "Compliance"
    general = "General"


# ── On/Offboarding ──────────────────────────────────────────────────

class OffboardingStatus(str, enum.Enum):
    pending = "Pending"
    in_progress = "InProgress"
    completed = "Completed"
    cancelled = "Cancelled"


class OffboardingTaskStatus(str, enum.Enum):
    pending = "Pending"
    completed = "Completed"


class ResponsibleRole(str, enum.Enum):
    employee = "Employee"
    manager = "Manager"
    hr = "HR"
    it = "IT"
    finance = "Finance"


class StepTiming(str, enum.Enum):
    before_last_day = "Before Last Day"
    on_last_day = "On Last Day"
    after_last_day = "After Last Day"


# ── Activity log action types ───────────────────────────────────────

class ActivityAction(str, enum.Enum):
    login = "LOGIN"
    logout = "LOGOUT"
    create = "CREATE"
    update = "UPDATE"
    delete = "DELETE"
    approve = "APPROVE"
    reject = "REJECT"
    cancel = "CANCEL"
    upload = "UPLOAD"
    accrue = "ACCRUE"


# ── Role-based permissions ──────────────────────────────────────────

PERMISSIONS: dict[UserRole, list[str]] = {
    UserRole.employee: [
        "profile:read_own",
        "leave:request",
        "leave:read_own",
        "attendance:read_own",
        "attendance:record_own",
        "compliance:read_own",
        "document:upload",
    ],
    UserRole.manager: [
        "profile:read_own",
        "profile:read_department",
        "leave:request",
        "leave:read_department",
        "attendance:read_department",
        "task:create",
        "onboarding:read",
        "offboarding:read",
    ],
    UserRole.department_head: [
        "profile:read_department",
        "profile:create",
        "profile:update",
        "profile:export",
        "leave:request",
        "leave:read_department",
        "leave:approve",
        "leave:reject",
        "attendance:read_department",
        "attendance:record_department",
        "compliance:read_department",
        "compliance:manage",
        "document:upload",
        "task:create",
        "onboarding:read",
        "offboarding:read",
        "report:department",
        "dashboard:activity",
    ],
    UserRole.hr: [
        "profile:read_all",
        "leave:request",
        "leave:read_all",
        "attendance:read_all",
        "compliance:read_all",
        "offboarding:manage",
        "dashboard:activity",
    ],
    UserRole.admin: [
        "profile:read_all",
        "profile:create",
        "profile:update",
        "profile:delete",
        "profile:export",
        "leave:read_all",
        "leave:approve",
        "leave:reject",
        "attendance:read_all",
        "attendance:record_all",
        "compliance:read_all",
        "compliance:manage",
        "document:manage",
        "task:create",
        "onboarding:manage",
        "offboarding:manage",
        "report:department",
        "dashboard:activity",
        "system:manage_users",
        "system:run_jobs",
    ],
}

# ── Misc constants ──────────────────────────────────────────────────

DATE_FORMAT = "%m/%d/%Y"          # US format: 03/05/2026
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20
ONBOARDING_WINDOW_DAYS = 90
ACCRUAL_LEAVE_TYPE = LeaveType.vacation
