"""Department report tests."""

from __future__ import annotations

import uuid
from datetime import date, time, timedelta

import pytest

from hrms.attendance.models import Attendance
from hrms.common.constants import LeaveStatus, LeaveType
from hrms.common.exceptions import ForbiddenException, NotFoundException
from hrms.leave.models import Leave
from hrms.reports.service import ReportService, working_days
from tests.conftest import make_employee

# Friday; the 30-day window starting Thursday 2026-02-05 holds 22 weekdays.
TODAY = date(2026, 3, 6)


def test_working_days_skip_weekends():
    days = working_days(date(2026, 3, 6), date(2026, 3, 9))
    assert days == [date(2026, 3, 6), date(2026, 3, 9)]


def test_working_days_window_size():
    assert len(working_days(TODAY - timedelta(days=29), TODAY)) == 22
    assert working_days(TODAY, TODAY - timedelta(days=1)) == []


async def _attend(db, employee_id, days):
    db.add_all([Attendance(employee_id=employee_id, date=d, time_in=time(8, 30)) for d in days])
    await db.commit()


class TestDepartmentReport:

    async def test_average_attendance_rate(self, db, admin_user, department):
        present = await make_employee(db, last_name="Present", department_id=department.id)
        await make_employee(db, last_name="Absent", department_id=department.id)

        # 11 of 22 weekdays, plus a Saturday and a day outside the window
        weekdays = working_days(date(2026, 2, 20), TODAY)
        assert len(weekdays) == 11
        await _attend(db, present.id, weekdays + [date(2026, 2, 28), date(2026, 1, 30)])

        report = await ReportService.department_report(db, department.id, admin_user, today=TODAY)
        assert report.department_name == "Hospice"
        assert report.employee_count == 2
        assert report.average_attendance_rate == 25.0

    async def test_empty_department(self, db, admin_user, other_department):
        report = await ReportService.department_report(db, other_department.id, admin_user, today=TODAY)
        assert report.employee_count == 0
        assert report.average_attendance_rate == 0.0
        assert report.pending_leave_requests == 0

    async def test_pending_leave_count(self, db, admin_user, employee, other_department):
        outsider = await make_employee(db, department_id=other_department.id)
        for emp, status in (
            (employee, LeaveStatus.pending),
            (employee, LeaveStatus.approved),
            (outsider, LeaveStatus.pending),
        ):
            db.add(Leave(
                employee_id=emp.id,
                start_date=date(2026, 4, 6),
                end_date=date(2026, 4, 7),
                leave_type=LeaveType.personal,
                status=status,
            ))
        await db.commit()

        report = await ReportService.department_report(db, employee.department_id, admin_user, today=TODAY)
        assert report.pending_leave_requests == 1

    async def test_other_department_head_forbidden(self, db, dept_head, other_department):
        with pytest.raises(ForbiddenException):
            await ReportService.department_report(db, other_department.id, dept_head, today=TODAY)

    async def test_unknown_department(self, db, admin_user):
        with pytest.raises(NotFoundException):
            await ReportService.department_report(db, uuid.uuid4(), admin_user, today=TODAY)


class TestReportApi:

    async def test_department_head_reads_own_department(self, client, employee, dept_head_headers, department):
        resp = await client.get(f"/api/v1/reports/department/{department.id}", headers=dept_head_headers)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["department_id"] == str(department.id)
        assert data["employee_count"] == 1

    async def test_other_department_is_forbidden(self, client, dept_head_headers, other_department):
        resp = await client.get(
            f"/api/v1/reports/department/{other_department.id}", headers=dept_head_headers,
        )
        assert resp.status_code == 403
        assert resp.headers["content-type"].startswith("application/problem+json")

    async def test_lower_roles_forbidden(self, client, department, manager_headers, hr_headers):
        for headers in (manager_headers, hr_headers):
            resp = await client.get(f"/api/v1/reports/department/{department.id}", headers=headers)
            assert resp.status_code == 403

    async def test_unknown_department_as_admin(self, client, admin_headers):
        resp = await client.get(f"/api/v1/reports/department/{uuid.uuid4()}", headers=admin_headers)
        assert resp.status_code == 404
