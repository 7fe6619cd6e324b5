"""Compliance ORM model: licenses, certifications and similar expiring items."""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.common.constants import ComplianceStatus
from hrms.common.models import TimestampMixin, enum_column, uuid_pk
from hrms.database import Base

if TYPE_CHECKING:
    from hrms.core_hr.models import Employee


class ComplianceItem(TimestampMixin, Base):
    __tablename__ = "compliance_items"
    __table_args__ = (
        sa.Index("ix_compliance_items_expiration_date", "expiration_date"),
    )

    id: Mapped[uuid.UUID] = uuid_pk()
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_type: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    item_name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    authority: Mapped[Optional[str]] = mapped_column(sa.String(255))
    license_number: Mapped[Optional[str]] = mapped_column(sa.String(100))
    issue_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    expiration_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    status: Mapped[ComplianceStatus] = mapped_column(
        enum_column(ComplianceStatus, "compliance_status"),
        nullable=False,
        default=ComplianceStatus.pending_review,
        server_default=ComplianceStatus.pending_review.value,
    )

    # Relationships
    employee: Mapped[Employee] = relationship()

    def __repr__(self) -> str:
        return f"<ComplianceItem {self.item_name!r} {self.status} exp={self.expiration_date}>"
