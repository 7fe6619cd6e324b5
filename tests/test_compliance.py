"""Compliance tests — status derivation, expiration sweep, reminders, CRUD scope."""

from __future__ import annotations

import logging
import uuid
from datetime import date, timedelta

import pytest

from hrms.common.constants import ComplianceStatus, UserRole
from hrms.compliance.expiration import check_compliance_expirations, derive_status
from hrms.compliance.models import ComplianceItem
from hrms.notifications.email import EmailSender
from hrms.notifications.reminders import (
    build_reminder,
    format_long_date,
    send_compliance_expiration_reminders,
)
from tests.conftest import (
    StubEmailSender,
    TestSessionFactory,
    make_employee,
    make_user,
)

TODAY = date(2026, 3, 1)


async def _item(db, employee_id, expires, status=ComplianceStatus.active, name="RN License"):
    item = ComplianceItem(
        employee_id=employee_id,
        item_type="License",
        item_name=name,
        expiration_date=expires,
        status=status,
    )
    db.add(item)
    await db.commit()
    return item


async def _status(item_id) -> ComplianceStatus:
    async with TestSessionFactory() as session:
        return (await session.get(ComplianceItem, item_id)).status


# ═════════════════════════════════════════════════════════════════════
# Status derivation
# ═════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    "expires, expected",
    [
        (None, ComplianceStatus.pending_review),
        (TODAY - timedelta(days=1), ComplianceStatus.expired),
        (TODAY, ComplianceStatus.expiring_soon),
        (TODAY + timedelta(days=29), ComplianceStatus.expiring_soon),
        (TODAY + timedelta(days=30), ComplianceStatus.active),
    ],
)
def test_derive_status(expires, expected):
    assert derive_status(expires, TODAY) == expected


# ═════════════════════════════════════════════════════════════════════
# Expiration sweep
# ═════════════════════════════════════════════════════════════════════


class TestExpirationSweep:

    async def test_sweep_moves_items_between_states(self, db, employee, email_sender):
        lapsed = await _item(db, employee.id, TODAY - timedelta(days=3))
        soon = await _item(db, employee.id, TODAY + timedelta(days=10))
        renewed = await _item(
            db, employee.id, TODAY + timedelta(days=200), status=ComplianceStatus.expiring_soon,
        )
        steady = await _item(db, employee.id, TODAY + timedelta(days=90))

        results = await check_compliance_expirations(db, TODAY, sender=email_sender)

        assert results == {
            "updated_to_expired": 1,
            "updated_to_expiring_soon": 1,
            "reverted_to_active": 1,
        }
        assert await _status(lapsed.id) == ComplianceStatus.expired
        assert await _status(soon.id) == ComplianceStatus.expiring_soon
        assert await _status(renewed.id) == ComplianceStatus.active
        assert await _status(steady.id) == ComplianceStatus.active

    async def test_sweep_is_idempotent(self, db, employee, email_sender):
        await _item(db, employee.id, TODAY - timedelta(days=3))
        await check_compliance_expirations(db, TODAY, sender=email_sender)
        results = await check_compliance_expirations(db, TODAY, sender=email_sender)
        assert results == {
            "updated_to_expired": 0,
            "updated_to_expiring_soon": 0,
            "reverted_to_active": 0,
        }

    async def test_items_without_expiration_untouched(self, db, employee, email_sender):
        item = await _item(db, employee.id, None, status=ComplianceStatus.pending_review)
        await check_compliance_expirations(db, TODAY, sender=email_sender)
        assert await _status(item.id) == ComplianceStatus.pending_review

    async def test_sweep_sends_reminders_for_configured_days(self, db, employee, email_sender):
        for days in (30, 14, 7, 5):
            await _item(db, employee.id, TODAY + timedelta(days=days), name=f"Cert {days}")

        await check_compliance_expirations(db, TODAY, sender=email_sender)

        subjects = sorted(m["subject"] for m in email_sender.sent)
        assert subjects == [
            "Compliance Reminder: Cert 14 Expires Soon",
            "Compliance Reminder: Cert 30 Expires Soon",
            "Compliance Reminder: Cert 7 Expires Soon",
        ]
        assert {m["to"] for m in email_sender.sent} == {"jane.doe@mountaincare.example"}


# ═════════════════════════════════════════════════════════════════════
# Reminders
# ═════════════════════════════════════════════════════════════════════


class TestReminders:

    def test_format_long_date(self):
        assert format_long_date(date(2026, 3, 5)) == "March 5, 2026"

    def test_build_reminder(self):
        subject, text, html = build_reminder("CPR Card", "Jane Doe", date(2026, 3, 31))
        assert subject == "Compliance Reminder: CPR Card Expires Soon"
        assert text.startswith("Dear Jane Doe,")
        assert "March 31, 2026" in text
        assert "<strong>CPR Card</strong>" in html

    def test_build_reminder_without_name(self):
        _, text, _ = build_reminder("CPR Card", None, date(2026, 3, 31))
        assert text.startswith("Dear Employee,")

    async def test_skips_employees_without_address(self, db, department, caplog):
        no_mail = await make_user(db, role=UserRole.employee, username="no-mail")
        emp = await make_employee(db, department_id=department.id, user_id=no_mail.id)
        unlinked = await make_employee(db, department_id=department.id)
        expires = TODAY + timedelta(days=7)
        await _item(db, emp.id, expires)
        await _item(db, unlinked.id, expires)

        sender = StubEmailSender()
        with caplog.at_level(logging.WARNING):
            sent = await send_compliance_expiration_reminders(db, 7, sender=sender, today=TODAY)
        assert sent == 0
        assert sender.sent == []
        assert "no email address" in caplog.text

    async def test_username_that_looks_like_email_is_used(self, db, department):
        user = await make_user(db, role=UserRole.employee, username="kim@mountaincare.example")
        emp = await make_employee(db, department_id=department.id, user_id=user.id)
        await _item(db, emp.id, TODAY + timedelta(days=14))

        sender = StubEmailSender()
        sent = await send_compliance_expiration_reminders(db, 14, sender=sender, today=TODAY)
        assert sent == 1
        assert sender.sent[0]["to"] == "kim@mountaincare.example"

    async def test_delivery_failure_does_not_stop_others(self, db, department, employee):
        other_user = await make_user(
            db, role=UserRole.employee, username="lou", email="lou@mountaincare.example",
        )
        other = await make_employee(db, department_id=department.id, user_id=other_user.id)
        expires = TODAY + timedelta(days=30)
        await _item(db, employee.id, expires)
        await _item(db, other.id, expires)

        sender = StubEmailSender(fail_for=("jane.doe@mountaincare.example",))
        sent = await send_compliance_expiration_reminders(db, 30, sender=sender, today=TODAY)
        assert sent == 1
        assert [m["to"] for m in sender.sent] == ["lou@mountaincare.example"]

    async def test_disabled_sender_only_logs(self, caplog):
        sender = EmailSender(host="")
        assert sender.enabled is False
        with caplog.at_level(logging.INFO, logger="hrms.notifications.email"):
            await sender.send("a@b.example", "Subject", "Body")
        assert "SMTP not configured" in caplog.text

    def test_build_message_is_multipart(self):
        sender = EmailSender(host="smtp.example", from_address="hr@mountaincare.example")
        msg = sender.build_message("a@b.example", "Hello", "plain body", "<p>html</p>")
        assert msg["To"] == "a@b.example"
        assert msg["From"] == "hr@mountaincare.example"
        assert len(msg.get_payload()) == 2


# ═════════════════════════════════════════════════════════════════════
# API
# ═════════════════════════════════════════════════════════════════════


class TestComplianceApi:

    async def test_department_head_creates_item_with_derived_status(
        self, client, employee, dept_head_headers,
    ):
        expires = date.today() + timedelta(days=5)
        resp = await client.post(
            "/api/v1/compliance",
            json={
                "employee_id": str(employee.id),
                "item_type": "Certification",
                "item_name": "BLS",
                "issue_date": (expires - timedelta(days=700)).isoformat(),
                "expiration_date": expires.isoformat(),
            },
            headers=dept_head_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["status"] == "ExpiringSoon"

    async def test_no_expiration_is_pending_review(self, client, employee, admin_headers):
        resp = await client.post(
            "/api/v1/compliance",
            json={"employee_id": str(employee.id), "item_type": "Background", "item_name": "Check"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["status"] == "PendingReview"

    async def test_expiration_before_issue_rejected(self, client, employee, admin_headers):
        resp = await client.post(
            "/api/v1/compliance",
            json={
                "employee_id": str(employee.id),
                "item_type": "License",
                "item_name": "RN",
                "issue_date": "2026-05-01",
                "expiration_date": "2026-04-01",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 422

    async def test_department_head_outside_department(self, client, db, dept_head_headers, other_department):
        stranger = await make_employee(db, department_id=other_department.id)
        resp = await client.post(
            "/api/v1/compliance",
            json={"employee_id": str(stranger.id), "item_type": "License", "item_name": "RN"},
            headers=dept_head_headers,
        )
        assert resp.status_code == 403

    async def test_manager_cannot_write(self, client, employee, manager_headers):
        resp = await client.post(
            "/api/v1/compliance",
            json={"employee_id": str(employee.id), "item_type": "License", "item_name": "RN"},
            headers=manager_headers,
        )
        assert resp.status_code == 403

    async def test_employee_lists_own_items_only(self, client, db, employee, employee_headers, department):
        colleague = await make_employee(db, department_id=department.id)
        await _item(db, employee.id, TODAY + timedelta(days=60), name="Mine")
        await _item(db, colleague.id, TODAY + timedelta(days=60), name="Theirs")

        resp = await client.get("/api/v1/compliance", headers=employee_headers)
        assert [i["item_name"] for i in resp.json()["data"]] == ["Mine"]

    async def test_employee_filter_outside_scope_is_404(self, client, db, employee, employee_headers, department):
        colleague = await make_employee(db, department_id=department.id)
        resp = await client.get(
            f"/api/v1/compliance?employee_id={colleague.id}", headers=employee_headers,
        )
        assert resp.status_code == 404

    async def test_list_ordered_by_expiration(self, client, db, employee, hr_headers):
        await _item(db, employee.id, TODAY + timedelta(days=90), name="Later")
        await _item(db, employee.id, TODAY + timedelta(days=10), name="Sooner")
        resp = await client.get("/api/v1/compliance", headers=hr_headers)
        assert [i["item_name"] for i in resp.json()["data"]] == ["Sooner", "Later"]

    async def test_update_expiration_rederives_status(self, client, db, employee, admin_headers):
        item = await _item(db, employee.id, date.today() - timedelta(days=1), status=ComplianceStatus.expired)
        resp = await client.put(
            f"/api/v1/compliance/{item.id}",
            json={"expiration_date": (date.today() + timedelta(days=365)).isoformat()},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "Active"

    async def test_update_with_inverted_dates_rejected(self, client, db, employee, admin_headers):
        item = await _item(db, employee.id, TODAY + timedelta(days=30))
        resp = await client.put(
            f"/api/v1/compliance/{item.id}",
            json={"issue_date": "2026-05-01", "expiration_date": "2026-04-01"},
            headers=admin_headers,
        )
        assert resp.status_code == 422

    async def test_update_issue_date_past_stored_expiration_rejected(self, client, db, employee, admin_headers):
        expires = TODAY + timedelta(days=30)
        item = await _item(db, employee.id, expires)
        resp = await client.put(
            f"/api/v1/compliance/{item.id}",
            json={"issue_date": (expires + timedelta(days=1)).isoformat()},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert "expiration_date" in resp.json()["errors"]

        async with TestSessionFactory() as session:
            assert (await session.get(ComplianceItem, item.id)).issue_date is None

    async def test_delete(self, client, db, employee, admin_headers):
        item = await _item(db, employee.id, TODAY)
        resp = await client.delete(f"/api/v1/compliance/{item.id}", headers=admin_headers)
        assert resp.status_code == 204
        resp = await client.get(f"/api/v1/compliance/{item.id}", headers=admin_headers)
        assert resp.status_code == 404

    async def test_get_unknown(self, client, admin_headers):
        resp = await client.get(f"/api/v1/compliance/{uuid.uuid4()}", headers=admin_headers)
        assert resp.status_code == 404
