"""Compliance expiration sweep and status derivation.

Status rules, relative to *today* and the expiring-soon window:

* expiration < today                      → Expired
* today <= expiration < today + window    → ExpiringSoon
* expiration >= today + window            → Active
* no expiration date                      → untouched (PendingReview for new items)
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.common.constants import ComplianceStatus
from hrms.common.models import today as utc_today
from hrms.compliance.models import ComplianceItem
from hrms.config import settings
from hrms.notifications.email import EmailSender
from hrms.notifications.reminders import send_compliance_expiration_reminders

logger = logging.getLogger(__name__)

EXPIRING_SOON_DAYS = settings.COMPLIANCE_EXPIRING_SOON_DAYS


def derive_status(
    expiration_date: Optional[date],
    today: Optional[date] = None,
    *,
    window_days: int = EXPIRING_SOON_DAYS,
) -> ComplianceStatus:
    """Status a new item should start with, given its expiration date."""
    if expiration_date is None:
        return ComplianceStatus.pending_review
    today = today or utc_today()
    if expiration_date < today:
        return ComplianceStatus.expired
    if expiration_date < today + timedelta(days=window_days):
        return ComplianceStatus.expiring_soon
    return ComplianceStatus.active


async def check_compliance_expirations(
    db: AsyncSession,
    today: Optional[date] = None,
    *,
    sender: Optional[EmailSender] = None,
) -> dict[str, int]:
    """Recompute statuses in one transaction, then send reminder emails.

    A database failure rolls the whole sweep back and is re-raised.
    Reminder failures are logged only; they never undo the status updates.
    """
    today = today or utc_today()
    soon = today + timedelta(days=EXPIRING_SOON_DAYS)
    logger.info("Starting compliance expiration check for %s", today.isoformat())

    try:
        expired = await db.execute(
            update(ComplianceItem)
            .where(
                ComplianceItem.expiration_date < today,
                ComplianceItem.status != ComplianceStatus.expired,
            )
            .values(status=ComplianceStatus.expired)
        )
        expiring = await db.execute(
            update(ComplianceItem)
            .where(
                ComplianceItem.expiration_date >= today,
                ComplianceItem.expiration_date < soon,
                ComplianceItem.status.not_in(
                    [ComplianceStatus.expiring_soon, ComplianceStatus.expired]
                ),
            )
            .values(status=ComplianceStatus.expiring_soon)
        )
        reverted = await db.execute(
            update(ComplianceItem)
            .where(
                ComplianceItem.expiration_date >= soon,
                ComplianceItem.status == ComplianceStatus.expiring_soon,
            )
            .values(status=ComplianceStatus.active)
        )
        results = {
            "updated_to_expired": expired.rowcount,
            "updated_to_expiring_soon": expiring.rowcount,
            "reverted_to_active": reverted.rowcount,
        }
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Compliance expiration check failed; transaction rolled back")
        raise

    logger.info("Compliance expiration check completed: %s", results)

    # Reminders run after the commit so slow SMTP never holds the transaction
    for days in settings.reminder_days_list:
        try:
            await send_compliance_expiration_reminders(db, days, sender=sender, today=today)
        except Exception:
            logger.exception("Compliance reminders for %d days out failed", days)

    return results
