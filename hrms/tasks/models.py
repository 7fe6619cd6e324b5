"""Task ORM model: work items, optionally tied to an onboarding or other process."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.common.constants import RelatedEntityType, TaskStatus
from hrms.common.models import TimestampMixin, enum_column, uuid_pk
from hrms.database import Base

if TYPE_CHECKING:
    from hrms.auth.models import User
    from hrms.core_hr.models import Employee


class Task(TimestampMixin, Base):
    __tablename__ = "tasks"
    __table_args__ = (
        sa.Index("ix_tasks_related_entity", "related_entity_type", "related_entity_id"),
    )

    id: Mapped[uuid.UUID] = uuid_pk()
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    status: Mapped[TaskStatus] = mapped_column(
        enum_column(TaskStatus, "task_status"),
        nullable=False,
        default=TaskStatus.pending,
        server_default=TaskStatus.pending.value,
    )
    due_date: Mapped[Optional[dt.date]] = mapped_column(sa.Date)
    assigned_to_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id", ondelete="SET NULL"), index=True,
    )
    created_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    related_entity_type: Mapped[Optional[RelatedEntityType]] = mapped_column(
        enum_column(RelatedEntityType, "related_entity_type"),
    )
    related_entity_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True))

    # Relationships
    assigned_to: Mapped[Optional[Employee]] = relationship()
    created_by: Mapped[Optional[User]] = relationship()

    def __repr__(self) -> str:
        return f"<Task {self.title!r} {self.status}>"
