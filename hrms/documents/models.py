"""Document metadata. The file itself lives under ``UPLOAD_DIR``."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.common.models import TimestampMixin, uuid_pk
from hrms.database import Base

if TYPE_CHECKING:
    from hrms.auth.models import User
    from hrms.core_hr.models import Department, Employee


class Document(TimestampMixin, Base):
    __tablename__ = "documents"

    id: Mapped[uuid.UUID] = uuid_pk()
    title: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    # Stored file name (``{uuid hex}{ext}``), relative to UPLOAD_DIR
    file_path: Mapped[str] = mapped_column(sa.String(255), nullable=False, unique=True)
    file_type: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    file_size: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    owner_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), index=True,
    )
    employee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id", ondelete="SET NULL"), index=True,
    )
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("departments.id", ondelete="SET NULL"), index=True,
    )
    version: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=1, server_default="1")
    description: Mapped[Optional[str]] = mapped_column(sa.Text)

    # Relationships
    owner: Mapped[Optional[User]] = relationship()
    employee: Mapped[Optional[Employee]] = relationship()
    department: Mapped[Optional[Department]] = relationship()

    @property
    def is_general(self) -> bool:
        """Not tied to any employee or department."""
        return self.employee_id is None and self.department_id is None

    def __repr__(self) -> str:
        return f"<Document {self.title!r} {self.file_path}>"
