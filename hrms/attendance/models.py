"""Attendance ORM model: one row per employee per recorded day."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.common.models import TimestampMixin, uuid_pk
from hrms.database import Base

if TYPE_CHECKING:
    from hrms.core_hr.models import Employee


class Attendance(TimestampMixin, Base):
    __tablename__ = "attendance"
    __table_args__ = (
        sa.Index("ix_attendance_employee_date", "employee_id", "date"),
    )

    id: Mapped[uuid.UUID] = uuid_pk()
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    date: Mapped[dt.date] = mapped_column(sa.Date, nullable=False)
    time_in: Mapped[dt.time] = mapped_column(sa.Time, nullable=False)
    time_out: Mapped[Optional[dt.time]] = mapped_column(sa.Time)

    # Relationships
    employee: Mapped[Employee] = relationship()
