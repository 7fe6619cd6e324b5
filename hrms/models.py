"""Import every ORM module so ``Base.metadata`` and the mapper registry are complete.

Used by alembic, the job runner and the test suite; the API gets the same
effect through its routers.
"""

from hrms.auth.models import User, UserSession  # noqa: F401
from hrms.core_hr.models import Department, Employee, Position  # noqa: F401
from hrms.attendance.models import Attendance  # noqa: F401
from hrms.leave.models import Leave, LeaveBalance  # noqa: F401
from hrms.compliance.models import ComplianceItem  # noqa: F401
from hrms.common.activity import ActivityLog  # noqa: F401
from hrms.documents.models import Document  # noqa: F401
from hrms.tasks.models import Task  # noqa: F401
from hrms.onboarding.models import OnboardingTemplate, OnboardingTemplateItem  # noqa: F401
from hrms.offboarding.models import Offboarding, OffboardingTask, TaskTemplate  # noqa: F401
from hrms.database import Base  # noqa: F401
