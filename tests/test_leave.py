"""Leave tests — duration, balance ledger, request lifecycle, approvals, accrual."""

from __future__ import annotations

import uuid
from datetime import date

import pytest
from sqlalchemy import select

from hrms.common.constants import LeaveStatus, LeaveType, UserRole
from hrms.common.exceptions import BadRequestException
from hrms.leave.balance import (
    accrue_leave_balance,
    check_leave_balance,
    deduct_leave_balance,
    get_leave_balance,
    run_monthly_leave_accrual,
)
from hrms.leave.duration import calculate_leave_duration
from hrms.leave.models import Leave, LeaveBalance
from tests.conftest import TestSessionFactory, auth_headers_for, make_employee, make_user


async def _set_balance(db, employee_id, amount, leave_type="Vacation") -> None:
    db.add(LeaveBalance(employee_id=employee_id, leave_type=leave_type, balance=amount))
    await db.commit()


async def _balance(employee_id, leave_type="Vacation") -> float:
    async with TestSessionFactory() as session:
        row = (
            await session.execute(
                select(LeaveBalance).where(
                    LeaveBalance.employee_id == employee_id,
                    LeaveBalance.leave_type == leave_type,
                )
            )
        ).scalars().first()
    return row.balance if row else None


async def _pending(db, employee_id, start, end, leave_type=LeaveType.vacation) -> Leave:
    leave = Leave(
        employee_id=employee_id,
        start_date=start,
        end_date=end,
        leave_type=leave_type,
        status=LeaveStatus.pending,
    )
    db.add(leave)
    await db.commit()
    return leave


# ═════════════════════════════════════════════════════════════════════
# Duration and balance ledger
# ═════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    "start, end, expected",
    [
        (date(2026, 3, 2), date(2026, 3, 2), 1),
        (date(2026, 3, 2), date(2026, 3, 6), 5),
        (date(2026, 2, 27), date(2026, 3, 2), 4),
        (date(2026, 3, 6), date(2026, 3, 2), 0),
        (None, date(2026, 3, 2), 0),
    ],
)
def test_calculate_leave_duration(start, end, expected):
    assert calculate_leave_duration(start, end) == expected


class TestBalanceLedger:

    async def test_missing_row_created_with_zero(self, db, employee):
        record = await get_leave_balance(db, employee.id, LeaveType.sick)
        assert record.balance == 0.0
        assert record.leave_type == "Sick"
        assert await check_leave_balance(db, employee.id, LeaveType.sick, 1) is False

    async def test_accrue_then_deduct(self, db, employee):
        await accrue_leave_balance(db, employee.id, LeaveType.vacation, 8.0)
        record = await deduct_leave_balance(db, employee.id, LeaveType.vacation, 3)
        assert record.balance == 5.0
        assert record.accrued_ytd == 8.0
        assert record.used_ytd == 3.0

    async def test_deduct_more_than_available(self, db, employee):
        await accrue_leave_balance(db, employee.id, "Vacation", 2.0)
        with pytest.raises(BadRequestException):
            await deduct_leave_balance(db, employee.id, "Vacation", 3)

    @pytest.mark.parametrize("amount", [0, -1])
    async def test_non_positive_amounts_rejected(self, db, employee, amount):
        with pytest.raises(BadRequestException):
            await deduct_leave_balance(db, employee.id, "Vacation", amount)
        with pytest.raises(BadRequestException):
            await accrue_leave_balance(db, employee.id, "Vacation", amount)

    async def test_monthly_accrual_credits_every_employee(self, db, employee, department):
        other = await make_employee(db, department_id=department.id)
        await _set_balance(db, employee.id, 4.0)

        result = await run_monthly_leave_accrual(db)
        assert result == {"employees_processed": 2, "amount": 8.0, "leave_type": "Vacation"}
        assert await _balance(employee.id) == 12.0
        assert await _balance(other.id) == 8.0


# ═════════════════════════════════════════════════════════════════════
# Requests
# ═════════════════════════════════════════════════════════════════════


class TestCreateLeave:

    async def test_employee_requests_own_leave(self, client, db, employee, employee_headers):
        await _set_balance(db, employee.id, 10.0)
        resp = await client.post(
            "/api/v1/leave",
            json={
                "start_date": "2026-04-06",
                "end_date": "2026-04-08",
                "leave_type": "Vacation",
                "reason": "Family trip",
            },
            headers=employee_headers,
        )
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["status"] == "Pending"
        assert data["employee_id"] == str(employee.id)
        assert data["duration_days"] == 3
        # Balance is only checked on request
        assert await _balance(employee.id) == 10.0

    async def test_end_before_start(self, client, db, employee, employee_headers):
        await _set_balance(db, employee.id, 10.0)
        resp = await client.post(
            "/api/v1/leave",
            json={"start_date": "2026-04-08", "end_date": "2026-04-06", "leave_type": "Vacation"},
            headers=employee_headers,
        )
        assert resp.status_code == 400
        assert "end_date" in resp.json()["errors"]

    async def test_insufficient_balance(self, client, db, employee, employee_headers):
        await _set_balance(db, employee.id, 1.0)
        resp = await client.post(
            "/api/v1/leave",
            json={"start_date": "2026-04-06", "end_date": "2026-04-07", "leave_type": "Vacation"},
            headers=employee_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Insufficient leave balance"

    async def test_overlap_conflict(self, client, db, employee, employee_headers):
        await _set_balance(db, employee.id, 10.0)
        await _pending(db, employee.id, date(2026, 4, 6), date(2026, 4, 8))
        resp = await client.post(
            "/api/v1/leave",
            json={"start_date": "2026-04-08", "end_date": "2026-04-09", "leave_type": "Vacation"},
            headers=employee_headers,
        )
        assert resp.status_code == 409

    async def test_cancelled_leave_does_not_block(self, client, db, employee, employee_headers):
        await _set_balance(db, employee.id, 10.0)
        leave = await _pending(db, employee.id, date(2026, 4, 6), date(2026, 4, 8))
        leave.status = LeaveStatus.cancelled
        await db.commit()

        resp = await client.post(
            "/api/v1/leave",
            json={"start_date": "2026-04-06", "end_date": "2026-04-08", "leave_type": "Vacation"},
            headers=employee_headers,
        )
        assert resp.status_code == 201

    async def test_employee_cannot_request_for_colleague(
        self, client, db, employee, employee_headers, department,
    ):
        colleague = await make_employee(db, department_id=department.id)
        resp = await client.post(
            "/api/v1/leave",
            json={
                "employee_id": str(colleague.id),
                "start_date": "2026-04-06",
                "end_date": "2026-04-06",
                "leave_type": "Sick",
            },
            headers=employee_headers,
        )
        assert resp.status_code == 403

    async def test_user_without_profile(self, client, manager_headers):
        resp = await client.post(
            "/api/v1/leave",
            json={"start_date": "2026-04-06", "end_date": "2026-04-06", "leave_type": "Sick"},
            headers=manager_headers,
        )
        assert resp.status_code == 403


class TestModifyLeave:

    async def test_owner_updates_pending(self, client, db, employee, employee_headers):
        await _set_balance(db, employee.id, 10.0)
        leave = await _pending(db, employee.id, date(2026, 4, 6), date(2026, 4, 6))
        resp = await client.put(
            f"/api/v1/leave/{leave.id}",
            json={"end_date": "2026-04-07", "reason": "Longer"},
            headers=employee_headers,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["end_date"] == "2026-04-07"
        assert data["duration_days"] == 2

    async def test_owner_cancels_pending(self, client, db, employee, employee_headers):
        leave = await _pending(db, employee.id, date(2026, 4, 6), date(2026, 4, 6))
        resp = await client.post(f"/api/v1/leave/{leave.id}/cancel", headers=employee_headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "Cancelled"

        again = await client.post(f"/api/v1/leave/{leave.id}/cancel", headers=employee_headers)
        assert again.status_code == 400

    async def test_owner_deletes_pending(self, client, db, employee, employee_headers):
        leave = await _pending(db, employee.id, date(2026, 4, 6), date(2026, 4, 6))
        resp = await client.delete(f"/api/v1/leave/{leave.id}", headers=employee_headers)
        assert resp.status_code == 204
        assert (await client.get(f"/api/v1/leave/{leave.id}", headers=employee_headers)).status_code == 404

    async def test_non_owner_cannot_modify(self, client, db, employee, dept_head_headers):
        leave = await _pending(db, employee.id, date(2026, 4, 6), date(2026, 4, 6))
        resp = await client.post(f"/api/v1/leave/{leave.id}/cancel", headers=dept_head_headers)
        assert resp.status_code == 403


# ═════════════════════════════════════════════════════════════════════
# Approve / reject
# ═════════════════════════════════════════════════════════════════════


class TestDecisions:

    async def test_department_head_approves_and_balance_is_deducted(
        self, client, db, employee, dept_head, dept_head_headers,
    ):
        await _set_balance(db, employee.id, 10.0)
        leave = await _pending(db, employee.id, date(2026, 4, 6), date(2026, 4, 8))

        resp = await client.post(
            f"/api/v1/leave/{leave.id}/approve",
            json={"comments": "Enjoy"},
            headers=dept_head_headers,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["status"] == "Approved"
        assert data["approver_id"] == str(dept_head.id)
        assert data["approved_at"] is not None
        assert data["comments"] == "Enjoy"
        assert await _balance(employee.id) == 7.0

    async def test_approve_without_balance_leaves_request_pending(
        self, client, db, employee, admin_headers,
    ):
        await _set_balance(db, employee.id, 1.0)
        leave = await _pending(db, employee.id, date(2026, 4, 6), date(2026, 4, 8))

        resp = await client.post(f"/api/v1/leave/{leave.id}/approve", headers=admin_headers)
        assert resp.status_code == 400

        async with TestSessionFactory() as session:
            stored = await session.get(Leave, leave.id)
        assert stored.status == LeaveStatus.pending
        assert stored.approver_id is None
        assert await _balance(employee.id) == 1.0

    async def test_reject(self, client, db, employee, dept_head_headers):
        leave = await _pending(db, employee.id, date(2026, 4, 6), date(2026, 4, 6))
        resp = await client.post(
            f"/api/v1/leave/{leave.id}/reject",
            json={"comments": "Short-staffed"},
            headers=dept_head_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "Rejected"

    async def test_decided_request_cannot_be_decided_again(self, client, db, employee, admin_headers):
        leave = await _pending(db, employee.id, date(2026, 4, 6), date(2026, 4, 6))
        await client.post(f"/api/v1/leave/{leave.id}/reject", headers=admin_headers)
        resp = await client.post(f"/api/v1/leave/{leave.id}/approve", headers=admin_headers)
        assert resp.status_code == 400

    async def test_department_head_of_other_department_cannot_decide(self, client, db, employee, other_department):
        outsider = await make_user(
            db, role=UserRole.department_head, department_id=other_department.id,
        )
        headers = await auth_headers_for(db, outsider)
        leave = await _pending(db, employee.id, date(2026, 4, 6), date(2026, 4, 6))

        resp = await client.post(f"/api/v1/leave/{leave.id}/approve", headers=headers)
        assert resp.status_code == 403

    @pytest.mark.parametrize("headers_fixture", ["manager_headers", "hr_headers", "employee_headers"], indirect=True)
    async def test_lower_roles_cannot_decide(self, client, db, request, employee, headers_fixture):
        headers = request.getfixturevalue(headers_fixture)
        leave = await _pending(db, employee.id, date(2026, 4, 6), date(2026, 4, 6))
        resp = await client.post(f"/api/v1/leave/{leave.id}/approve", headers=headers)
        assert resp.status_code == 403


# ═════════════════════════════════════════════════════════════════════
# Listing
# ═════════════════════════════════════════════════════════════════════


async def test_list_scoped_and_filtered(client, db, employee, employee_headers, hr_headers, other_department):
    stranger = await make_employee(db, department_id=other_department.id)
    await _pending(db, employee.id, date(2026, 4, 6), date(2026, 4, 6))
    theirs = await _pending(db, stranger.id, date(2026, 5, 1), date(2026, 5, 1))
    theirs.status = LeaveStatus.approved
    await db.commit()

    mine = await client.get("/api/v1/leave", headers=employee_headers)
    assert [l["employee_id"] for l in mine.json()["data"]] == [str(employee.id)]

    everyone = await client.get("/api/v1/leave", headers=hr_headers)
    assert everyone.json()["meta"]["total"] == 2

    approved = await client.get("/api/v1/leave?status=Approved", headers=hr_headers)
    assert [l["id"] for l in approved.json()["data"]] == [str(theirs.id)]


async def test_get_unknown_leave(client, admin_headers):
    resp = await client.get(f"/api/v1/leave/{uuid.uuid4()}", headers=admin_headers)
    assert resp.status_code == 404
