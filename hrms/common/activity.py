"""Activity log model and async helpers for recording who did what."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column, relationship, selectinload

from hrms.common.constants import ActivityAction
from hrms.database import Base

if TYPE_CHECKING:
    from hrms.auth.models import User

logger = logging.getLogger(__name__)


# ── Append-only activity table ──────────────────────────────────────

class ActivityLog(Base):
    """One row per user-visible action (login, approval, upload, ...)."""

    __tablename__ = "activity_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    action_type: Mapped[str] = mapped_column(sa.String(50), nullable=False)
    entity_type: Mapped[Optional[str]] = mapped_column(sa.String(50))
    entity_id: Mapped[Optional[str]] = mapped_column(sa.String(64))
    description: Mapped[str] = mapped_column(sa.Text, nullable=False)
    details: Mapped[Optional[dict]] = mapped_column(JSONB)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=sa.func.now(),
    )

    __table_args__ = (
        sa.Index("ix_activity_logs_user_id", "user_id"),
        sa.Index("ix_activity_logs_entity", "entity_type", "entity_id"),
        sa.Index("ix_activity_logs_created_at", "created_at"),
    )

    user: Mapped[Optional[User]] = relationship()

    def __repr__(self) -> str:
        return (
            f"<ActivityLog {self.action_type} {self.entity_type}"
            f"/{self.entity_id} by {self.user_id}>"
        )


# ── Helpers ─────────────────────────────────────────────────────────

async def log_activity(
    session: AsyncSession,
    *,
    user_id: Optional[uuid.UUID],
    action_type: ActivityAction | str,
    description: str,
    entity_type: Optional[str] = None,
    entity_id: Any = None,
    details: Optional[dict[str, Any]] = None,
) -> Optional[ActivityLog]:
    """
    Record an activity entry inside a SAVEPOINT.

    A failed write is logged and rolled back to the savepoint; it never
    propagates into the caller's unit of work.

    Args:
        session: Async SQLAlchemy session of the current request / job.
        user_id: Acting user, or None for system jobs.
        action_type: LOGIN | CREATE | APPROVE | UPLOAD | ...
        description: Human-readable summary shown in the dashboard feed.
        entity_type: e.g. "Leave", "Document".
        entity_id: Identifier of the affected entity (stored as text).
        details: Extra JSON payload.
    """
    entry = ActivityLog(
        user_id=user_id,
        action_type=ActivityAction(action_type).value,
        description=description,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        details=details,
    )
    try:
        async with session.begin_nested():
            session.add(entry)
    except SQLAlchemyError:
        logger.exception(
            "Failed to record activity %s for user %s", entry.action_type, user_id,
        )
        return None
    return entry


async def get_recent_activity(
    session: AsyncSession,
    *,
    limit: int = 10,
) -> list[ActivityLog]:
    """Newest activity entries first, with the acting user eager-loaded."""
    result = await session.execute(
        sa.select(ActivityLog)
        .options(selectinload(ActivityLog.user))
        .order_by(ActivityLog.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
