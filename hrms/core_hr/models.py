"""Core HR ORM models: Department, Position, Employee."""

from __future__ import annotations

import uuid
from datetime import date
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.common.constants import EmployeeStatus
from hrms.common.models import TimestampMixin, enum_column, uuid_pk
from hrms.database import Base

if TYPE_CHECKING:
    from hrms.auth.models import User


class Department(TimestampMixin, Base):
    __tablename__ = "departments"

    id: Mapped[uuid.UUID] = uuid_pk()
    name: Mapped[str] = mapped_column(sa.String(100), unique=True, nullable=False)
    manager_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="SET NULL"),
    )

    # Relationships
    manager: Mapped[Optional[User]] = relationship(foreign_keys=[manager_id])
    employees: Mapped[list[Employee]] = relationship(back_populates="department", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Department {self.name!r}>"


class Position(TimestampMixin, Base):
    __tablename__ = "positions"

    id: Mapped[uuid.UUID] = uuid_pk()
    name: Mapped[str] = mapped_column(sa.String(100), unique=True, nullable=False)


class Employee(TimestampMixin, Base):
    """Personnel record. ``ssn_encrypted`` holds a Fernet token, never plaintext."""

    __tablename__ = "employees"

    id: Mapped[uuid.UUID] = uuid_pk()
    first_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    ssn_encrypted: Mapped[Optional[str]] = mapped_column(sa.String(255))
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("departments.id", ondelete="SET NULL"),
        index=True,
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="SET NULL"),
        unique=True,
    )
    position: Mapped[Optional[str]] = mapped_column(sa.String(100))
    hire_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    status: Mapped[EmployeeStatus] = mapped_column(
        enum_column(EmployeeStatus, "employee_status"),
        nullable=False,
        default=EmployeeStatus.active,
        server_default=EmployeeStatus.active.value,
    )

    # Relationships
    department: Mapped[Optional[Department]] = relationship(back_populates="employees")
    user: Mapped[Optional[User]] = relationship(back_populates="employee")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def sort_name(self) -> str:
        """``Last, First`` — the format used by on/offboarding lists."""
        return f"{self.last_name}, {self.first_name}"

    @property
    def has_ssn(self) -> bool:
        return bool(self.ssn_encrypted)

    def __repr__(self) -> str:
        return f"<Employee {self.full_name!r}>"
