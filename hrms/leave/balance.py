"""Leave balance ledger — lookup, check, deduct, accrue, monthly accrual run.

All helpers work inside the caller's transaction and only ``flush``; the
monthly accrual run owns its transaction and commits or rolls back as a whole.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.common.activity import log_activity
from hrms.common.constants import ACCRUAL_LEAVE_TYPE, ActivityAction, LeaveType
from hrms.common.exceptions import BadRequestException
from hrms.common.models import utcnow
from hrms.config import settings
from hrms.core_hr.models import Employee
from hrms.leave.models import LeaveBalance

logger = logging.getLogger(__name__)


def _type_key(leave_type: LeaveType | str) -> str:
    return leave_type.value if isinstance(leave_type, LeaveType) else str(leave_type)


async def get_leave_balance(
    db: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: LeaveType | str,
) -> LeaveBalance:
    """Find the balance row, creating it with a zero balance if missing."""
    key = _type_key(leave_type)
    result = await db.execute(
        select(LeaveBalance).where(
            LeaveBalance.employee_id == employee_id,
            LeaveBalance.leave_type == key,
        )
    )
    record = result.scalars().first()
    if record is None:
        record = LeaveBalance(
            employee_id=employee_id,
            leave_type=key,
            balance=0.0,
            accrued_ytd=0.0,
            used_ytd=0.0,
            last_updated=utcnow(),
        )
        db.add(record)
        await db.flush()
        logger.info("Created leave balance row for employee %s, type %s", employee_id, key)
    return record


async def check_leave_balance(
    db: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: LeaveType | str,
    requested: float,
) -> bool:
    record = await get_leave_balance(db, employee_id, leave_type)
    return record.balance >= requested


async def deduct_leave_balance(
    db: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: LeaveType | str,
    amount: float,
) -> LeaveBalance:
    """Subtract *amount*. Raises 400 for non-positive amounts or insufficient balance."""
    if amount <= 0:
        raise BadRequestException("Amount to deduct must be positive.")

    record = await get_leave_balance(db, employee_id, leave_type)
    if record.balance < amount:
        raise BadRequestException(
            "Insufficient leave balance",
            errors={"balance": [f"Available: {record.balance:g}, requested: {amount:g}."]},
        )

    record.balance -= amount
    record.used_ytd = (record.used_ytd or 0.0) + amount
    record.last_updated = utcnow()
    await db.flush()

    logger.info(
        "Deducted %s from %s balance for employee %s (now %s)",
        amount, record.leave_type, employee_id, record.balance,
    )
    return record


async def accrue_leave_balance(
    db: AsyncSession,
    employee_id: uuid.UUID,
    leave_type: LeaveType | str,
    amount: float,
) -> LeaveBalance:
    if amount <= 0:
        raise BadRequestException("Amount to accrue must be positive.")

    record = await get_leave_balance(db, employee_id, leave_type)
    record.balance += amount
    record.accrued_ytd = (record.accrued_ytd or 0.0) + amount
    record.last_updated = utcnow()
    await db.flush()
    return record


async def run_monthly_leave_accrual(db: AsyncSession) -> dict[str, Any]:
    """Accrue ``MONTHLY_ACCRUAL_AMOUNT`` of Vacation for every employee.

    Runs as one transaction: a failure for any employee rolls back the
    whole run and is re-raised.
    """
    amount = settings.MONTHLY_ACCRUAL_AMOUNT
    leave_type = ACCRUAL_LEAVE_TYPE.value
    logger.info("Starting monthly leave accrual (%s of %s)", amount, leave_type)

    try:
        employees = (await db.execute(select(Employee.id))).scalars().all()
        for employee_id in employees:
            await accrue_leave_balance(db, employee_id, leave_type, amount)

        await log_activity(
            db,
            user_id=None,
            action_type=ActivityAction.accrue,
            description=f"Monthly accrual of {amount:g} {leave_type} for {len(employees)} employees",
            entity_type="LeaveBalance",
            details={"employees_processed": len(employees), "amount": amount},
        )
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Monthly leave accrual failed; all changes rolled back")
        raise

    logger.info("Monthly leave accrual finished for %d employees", len(employees))
    return {
        "employees_processed": len(employees),
        "amount": amount,
        "leave_type": leave_type,
    }
