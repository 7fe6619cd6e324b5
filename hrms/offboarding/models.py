"""Offboarding ORM models: the exit record, its tasks, and task templates."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.common.constants import OffboardingStatus, OffboardingTaskStatus
from hrms.common.models import TimestampMixin, enum_column, uuid_pk
from hrms.database import Base

if TYPE_CHECKING:
    from hrms.core_hr.models import Employee


class TaskTemplate(TimestampMixin, Base):
    """A task copied into every new offboarding."""

    __tablename__ = "task_templates"

    id: Mapped[uuid.UUID] = uuid_pk()
    description: Mapped[str] = mapped_column(sa.Text, nullable=False)
    default_assigned_role: Mapped[Optional[str]] = mapped_column(sa.String(50))


class Offboarding(TimestampMixin, Base):
    __tablename__ = "offboardings"

    id: Mapped[uuid.UUID] = uuid_pk()
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    exit_date: Mapped[dt.date] = mapped_column(sa.Date, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    status: Mapped[OffboardingStatus] = mapped_column(
        enum_column(OffboardingStatus, "offboarding_status"),
        nullable=False,
        default=OffboardingStatus.pending,
        server_default=OffboardingStatus.pending.value,
    )

    # Relationships
    employee: Mapped[Employee] = relationship()
    tasks: Mapped[list["OffboardingTask"]] = relationship(
        back_populates="offboarding",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OffboardingTask.created_at",
    )

    def __repr__(self) -> str:
        return f"<Offboarding employee={self.employee_id} {self.status}>"


class OffboardingTask(TimestampMixin, Base):
    __tablename__ = "offboarding_tasks"

    id: Mapped[uuid.UUID] = uuid_pk()
    offboarding_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("offboardings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    description: Mapped[str] = mapped_column(sa.Text, nullable=False)
    status: Mapped[OffboardingTaskStatus] = mapped_column(
        enum_column(OffboardingTaskStatus, "offboarding_task_status"),
        nullable=False,
        default=OffboardingTaskStatus.pending,
        server_default=OffboardingTaskStatus.pending.value,
    )
    assigned_to_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    assigned_role: Mapped[Optional[str]] = mapped_column(sa.String(50))
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)
    completed_at: Mapped[Optional[dt.datetime]] = mapped_column(sa.DateTime(timezone=True))

    offboarding: Mapped[Offboarding] = relationship(back_populates="tasks")
