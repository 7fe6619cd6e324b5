"""Persisted onboarding templates, synced from the built-in checklists."""

from __future__ import annotations

import uuid
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrms.common.models import TimestampMixin, uuid_pk
from hrms.database import Base


class OnboardingTemplate(TimestampMixin, Base):
    __tablename__ = "onboarding_templates"

    id: Mapped[uuid.UUID] = uuid_pk()
    template_code: Mapped[str] = mapped_column(sa.String(100), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)

    items: Mapped[list["OnboardingTemplateItem"]] = relationship(
        back_populates="template",
        cascade="all, delete-orphan",
        order_by="OnboardingTemplateItem.position",
    )

    def __repr__(self) -> str:
        return f"<OnboardingTemplate {self.template_code}>"


class OnboardingTemplateItem(TimestampMixin, Base):
    __tablename__ = "onboarding_template_items"

    id: Mapped[uuid.UUID] = uuid_pk()
    template_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("onboarding_templates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_code: Mapped[Optional[str]] = mapped_column(sa.String(50))
    position: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0, server_default="0")
    task_description: Mapped[str] = mapped_column(sa.Text, nullable=False)
    responsible_role: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    due_days: Mapped[Optional[int]] = mapped_column(sa.Integer)
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)

    template: Mapped[OnboardingTemplate] = relationship(back_populates="items")
