"""Leave ORM models: Leave (requests), LeaveBalance."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.common.constants import LeaveStatus, LeaveType
from hrms.common.models import TimestampMixin, enum_column, utcnow, uuid_pk
from hrms.database import Base

if TYPE_CHECKING:
    from hrms.auth.models import User
    from hrms.core_hr.models import Employee


class Leave(TimestampMixin, Base):
    """A leave request. Balance is only touched on approval."""

    __tablename__ = "leaves"

    id: Mapped[uuid.UUID] = uuid_pk()
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    leave_type: Mapped[LeaveType] = mapped_column(
        enum_column(LeaveType, "leave_type"), nullable=False,
    )
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    status: Mapped[LeaveStatus] = mapped_column(
        enum_column(LeaveStatus, "leave_status"),
        nullable=False,
        default=LeaveStatus.pending,
        server_default=LeaveStatus.pending.value,
    )
    approver_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="SET NULL"),
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    comments: Mapped[Optional[str]] = mapped_column(sa.Text)

    # Relationships
    employee: Mapped[Employee] = relationship()
    approver: Mapped[Optional[User]] = relationship(foreign_keys=[approver_id])

    def __repr__(self) -> str:
        return (
            f"<Leave {self.leave_type.value if self.leave_type else None} "
            f"{self.start_date}..{self.end_date} {self.status}>"
        )


class LeaveBalance(Base):
    """Per-employee, per-leave-type ledger row."""

    __tablename__ = "leave_balances"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "leave_type", name="uq_leave_balance"),
    )

    id: Mapped[uuid.UUID] = uuid_pk()
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    leave_type: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    balance: Mapped[float] = mapped_column(
        sa.Float, nullable=False, default=0.0, server_default=sa.text("0")
    )
    accrued_ytd: Mapped[float] = mapped_column(
        sa.Float, nullable=False, default=0.0, server_default=sa.text("0")
    )
    used_ytd: Mapped[float] = mapped_column(
        sa.Float, nullable=False, default=0.0, server_default=sa.text("0")
    )
    last_updated: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=utcnow,
        server_default=sa.func.now(),
    )

    # Relationships
    employee: Mapped[Employee] = relationship()
