"""Compliance expiration reminder emails."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hrms.common.models import today as utc_today
from hrms.compliance.models import ComplianceItem
from hrms.config import settings
from hrms.core_hr.models import Employee
from hrms.notifications.email import EmailDeliveryError, EmailSender

logger = logging.getLogger(__name__)


def format_long_date(value: date) -> str:
    """``March 5, 2026`` style, without platform-specific strftime flags."""
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def build_reminder(item_name: str, recipient_name: Optional[str], expires: date) -> tuple[str, str, str]:
    """Return ``(subject, text, html)`` for one reminder."""
    name = recipient_name or "Employee"
    when = format_long_date(expires)
    org = settings.ORGANIZATION_NAME

    subject = f"Compliance Reminder: {item_name} Expires Soon"
    text = (
        f"Dear {name},\n\n"
        f'This is a reminder that your compliance item "{item_name}" is set to expire on {when}.\n\n'
        "Please take the necessary steps to renew it before the expiration date.\n\n"
        f"Thank you,\n{org}"
    )
    html = (
        f"<p>Dear {name},</p>"
        f"<p>This is a reminder that your compliance item <strong>{item_name}</strong> "
        f"is set to expire on <strong>{when}</strong>.</p>"
        "<p>Please take the necessary steps to renew it before the expiration date.</p>"
        f"<p>Thank you,<br>{org}</p>"
    )
    return subject, text, html


async def send_compliance_expiration_reminders(
    db: AsyncSession,
    days: int,
    *,
    sender: Optional[EmailSender] = None,
    today: Optional[date] = None,
) -> int:
    """Email the owner of every item expiring exactly *days* from today.

    Returns the number of reminders sent. One failed delivery is logged and
    the rest still go out.
    """
    sender = sender or EmailSender()
    target = (today or utc_today()) + timedelta(days=days)

    result = await db.execute(
        select(ComplianceItem)
        .where(ComplianceItem.expiration_date == target)
        .options(selectinload(ComplianceItem.employee).selectinload(Employee.user))
    )
    items = result.scalars().all()

    sent = 0
    for item in items:
        employee = item.employee
        user = employee.user if employee is not None else None
        address = user.notification_email if user is not None else None
        if not address:
            logger.warning(
                "Skipping reminder for compliance item %s: no email address for its employee",
                item.id,
            )
            continue

        subject, text, html = build_reminder(item.item_name, employee.full_name, target)
        try:
            await sender.send(address, subject, text, html)
        except EmailDeliveryError:
            logger.exception("Reminder for compliance item %s could not be delivered", item.id)
            continue
        sent += 1

    logger.info("Sent %d compliance reminder(s) for items expiring in %d days", sent, days)
    return sent
