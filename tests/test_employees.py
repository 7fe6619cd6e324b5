"""Employee endpoint tests — CRUD, scoping, SSN handling, CSV export, balances."""

from __future__ import annotations

import csv
import io
import uuid
from datetime import date

from hrms.common.constants import UserRole
from hrms.common.security import decrypt_value
from hrms.core_hr.models import Employee
from hrms.leave.models import LeaveBalance
from tests.conftest import TestSessionFactory, auth_headers_for, make_employee, make_user


# ═════════════════════════════════════════════════════════════════════
# Create
# ═════════════════════════════════════════════════════════════════════


class TestCreateEmployee:

    async def test_admin_creates_employee_with_encrypted_ssn(self, client, admin_headers, department):
        resp = await client.post(
            "/api/v1/employees",
            json={
                "first_name": "Ada",
                "last_name": "Lovelace",
                "ssn": "123-45-6789",
                "department_id": str(department.id),
                "position": "Registered Nurse",
                "hire_date": "2025-02-01",
            },
            headers=admin_headers,
        )
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["has_ssn"] is True
        assert "ssn" not in data
        assert "ssn_encrypted" not in data
        assert data["status"] == "Active"

        async with TestSessionFactory() as session:
            stored = await session.get(Employee, uuid.UUID(data["id"]))
        assert stored.ssn_encrypted != "123-45-6789"
        assert decrypt_value(stored.ssn_encrypted) == "123-45-6789"

    async def test_department_head_defaults_to_own_department(self, client, dept_head, dept_head_headers):
        resp = await client.post(
            "/api/v1/employees",
            json={"first_name": "Bo", "last_name": "Diaz"},
            headers=dept_head_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["department_id"] == str(dept_head.department_id)

    async def test_department_head_cannot_create_in_other_department(
        self, client, dept_head_headers, other_department,
    ):
        resp = await client.post(
            "/api/v1/employees",
            json={
                "first_name": "Bo",
                "last_name": "Diaz",
                "department_id": str(other_department.id),
            },
            headers=dept_head_headers,
        )
        assert resp.status_code == 403

    async def test_unknown_department(self, client, admin_headers):
        resp = await client.post(
            "/api/v1/employees",
            json={"first_name": "X", "last_name": "Y", "department_id": str(uuid.uuid4())},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    async def test_user_already_linked(self, client, admin_headers, employee, employee_user):
        resp = await client.post(
            "/api/v1/employees",
            json={"first_name": "Dup", "last_name": "Link", "user_id": str(employee_user.id)},
            headers=admin_headers,
        )
        assert resp.status_code == 409

    async def test_blank_name_rejected(self, client, admin_headers):
        resp = await client.post(
            "/api/v1/employees",
            json={"first_name": "  ", "last_name": "Y"},
            headers=admin_headers,
        )
        assert resp.status_code == 422

    async def test_manager_cannot_create(self, client, manager_headers):
        resp = await client.post(
            "/api/v1/employees",
            json={"first_name": "A", "last_name": "B"},
            headers=manager_headers,
        )
        assert resp.status_code == 403


# ═════════════════════════════════════════════════════════════════════
# List / get
# ═════════════════════════════════════════════════════════════════════


class TestListEmployees:

    async def test_hr_sees_everyone_sorted_by_last_name(
        self, client, db, hr_headers, department, other_department,
    ):
        await make_employee(db, first_name="Zed", last_name="Young", department_id=department.id)
        await make_employee(db, first_name="Amy", last_name="Adams", department_id=other_department.id)

        resp = await client.get("/api/v1/employees", headers=hr_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert [e["last_name"] for e in body["data"]] == ["Adams", "Young"]
        assert body["meta"]["total"] == 2

    async def test_department_head_pinned_to_own_department(
        self, client, db, dept_head_headers, department, other_department,
    ):
        await make_employee(db, last_name="Inside", department_id=department.id)
        await make_employee(db, last_name="Outside", department_id=other_department.id)

        resp = await client.get(
            f"/api/v1/employees?department_id={other_department.id}",
            headers=dept_head_headers,
        )
        assert resp.status_code == 200
        assert [e["last_name"] for e in resp.json()["data"]] == ["Inside"]

    async def test_search_by_name(self, client, db, admin_headers):
        await make_employee(db, first_name="Grace", last_name="Hopper")
        await make_employee(db, first_name="Alan", last_name="Turing")

        resp = await client.get("/api/v1/employees?search=hop", headers=admin_headers)
        assert [e["first_name"] for e in resp.json()["data"]] == ["Grace"]

    async def test_filter_by_hire_date_range_and_position(self, client, db, admin_headers):
        early = await make_employee(db, last_name="Early", hire_date=date(2023, 5, 1))
        middle = await make_employee(db, last_name="Middle", hire_date=date(2024, 8, 1))
        await make_employee(db, last_name="Late", hire_date=date(2025, 2, 1))
        early.position = "Registered Nurse"
        middle.position = "Chaplain"
        await db.commit()

        resp = await client.get(
            "/api/v1/employees?hired_from=2024-01-01&hired_to=2024-12-31", headers=admin_headers,
        )
        assert [e["last_name"] for e in resp.json()["data"]] == ["Middle"]

        resp = await client.get("/api/v1/employees?hired_from=2024-08-01", headers=admin_headers)
        assert [e["last_name"] for e in resp.json()["data"]] == ["Late", "Middle"]

        resp = await client.get("/api/v1/employees?position=nurse", headers=admin_headers)
        assert [e["last_name"] for e in resp.json()["data"]] == ["Early"]

    async def test_bad_hire_date_is_validation_error(self, client, admin_headers):
        resp = await client.get("/api/v1/employees?hired_from=yesterday", headers=admin_headers)
        assert resp.status_code == 422

    async def test_pagination_meta(self, client, db, admin_headers):
        for i in range(5):
            await make_employee(db, last_name=f"Emp{i}")
        resp = await client.get("/api/v1/employees?page=2&page_size=2", headers=admin_headers)
        meta = resp.json()["meta"]
        assert meta == {
            "page": 2,
            "page_size": 2,
            "total": 5,
            "total_pages": 3,
            "has_next": True,
            "has_prev": True,
        }

    async def test_employee_cannot_list(self, client, employee_headers):
        resp = await client.get("/api/v1/employees", headers=employee_headers)
        assert resp.status_code == 403

    async def test_employee_reads_own_profile(self, client, employee, employee_headers):
        resp = await client.get(f"/api/v1/employees/{employee.id}", headers=employee_headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["first_name"] == "Jane"

    async def test_employee_cannot_read_colleague(self, client, db, employee, employee_headers, department):
        colleague = await make_employee(db, department_id=department.id)
        resp = await client.get(f"/api/v1/employees/{colleague.id}", headers=employee_headers)
        assert resp.status_code == 403

    async def test_manager_reads_only_own_department(
        self, client, db, manager_headers, department, other_department,
    ):
        inside = await make_employee(db, department_id=department.id)
        outside = await make_employee(db, department_id=other_department.id)
        assert (await client.get(f"/api/v1/employees/{inside.id}", headers=manager_headers)).status_code == 200
        assert (await client.get(f"/api/v1/employees/{outside.id}", headers=manager_headers)).status_code == 403

    async def test_get_unknown(self, client, admin_headers):
        resp = await client.get(f"/api/v1/employees/{uuid.uuid4()}", headers=admin_headers)
        assert resp.status_code == 404


# ═════════════════════════════════════════════════════════════════════
# Update / delete
# ═════════════════════════════════════════════════════════════════════


class TestUpdateEmployee:

    async def test_department_head_updates_own_department(self, client, db, dept_head_headers, department):
        emp = await make_employee(db, department_id=department.id)
        resp = await client.put(
            f"/api/v1/employees/{emp.id}",
            json={"position": "Charge Nurse"},
            headers=dept_head_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["position"] == "Charge Nurse"

    async def test_department_head_cannot_move_employee(
        self, client, db, dept_head_headers, department, other_department,
    ):
        emp = await make_employee(db, department_id=department.id)
        resp = await client.put(
            f"/api/v1/employees/{emp.id}",
            json={"department_id": str(other_department.id)},
            headers=dept_head_headers,
        )
        assert resp.status_code == 403

    async def test_department_head_cannot_touch_other_department(
        self, client, db, dept_head_headers, other_department,
    ):
        emp = await make_employee(db, department_id=other_department.id)
        resp = await client.put(
            f"/api/v1/employees/{emp.id}",
            json={"position": "Nope"},
            headers=dept_head_headers,
        )
        assert resp.status_code == 403

    async def test_manager_cannot_update(self, client, db, manager_headers, department):
        emp = await make_employee(db, department_id=department.id)
        resp = await client.put(
            f"/api/v1/employees/{emp.id}", json={"position": "X"}, headers=manager_headers,
        )
        assert resp.status_code == 403

    async def test_admin_updates_status(self, client, db, admin_headers):
        emp = await make_employee(db)
        resp = await client.put(
            f"/api/v1/employees/{emp.id}",
            json={"status": "Terminating"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "Terminating"

    async def test_delete_is_admin_only(self, client, db, admin_headers, dept_head_headers, department):
        emp = await make_employee(db, department_id=department.id)
        resp = await client.delete(f"/api/v1/employees/{emp.id}", headers=dept_head_headers)
        assert resp.status_code == 403

        resp = await client.delete(f"/api/v1/employees/{emp.id}", headers=admin_headers)
        assert resp.status_code == 204
        async with TestSessionFactory() as session:
            assert await session.get(Employee, emp.id) is None


# ═════════════════════════════════════════════════════════════════════
# CSV export and balances
# ═════════════════════════════════════════════════════════════════════


class TestExportAndBalances:

    async def test_export_csv(self, client, db, admin_headers, department):
        await make_employee(
            db, first_name="Ada", last_name="Lovelace",
            department_id=department.id, hire_date=date(2023, 5, 1),
        )
        resp = await client.get("/api/v1/employees/export", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "employees.csv" in resp.headers["content-disposition"]

        rows = list(csv.DictReader(io.StringIO(resp.text)))
        assert len(rows) == 1
        assert rows[0]["first_name"] == "Ada"
        assert rows[0]["hire_date"] == "2023-05-01"
        assert rows[0]["status"] == "Active"
        assert "ssn_encrypted" not in rows[0]

    async def test_export_empty(self, client, admin_headers):
        resp = await client.get("/api/v1/employees/export", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.text == ""

    async def test_export_forbidden_for_hr(self, client, hr_headers):
        resp = await client.get("/api/v1/employees/export", headers=hr_headers)
        assert resp.status_code == 403

    async def test_leave_balance_visible_to_owner(self, client, db, employee, employee_headers):
        db.add(LeaveBalance(employee_id=employee.id, leave_type="Vacation", balance=16.0))
        await db.commit()

        resp = await client.get(
            f"/api/v1/employees/{employee.id}/leave-balance", headers=employee_headers,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert len(data) == 1
        assert data[0]["leave_type"] == "Vacation"
        assert data[0]["balance"] == 16.0

    async def test_leave_balance_hidden_from_other_employee(self, client, db, employee, department):
        other_user = await make_user(db, role=UserRole.employee, department_id=department.id)
        await make_employee(db, department_id=department.id, user_id=other_user.id)
        headers = await auth_headers_for(db, other_user)

        resp = await client.get(f"/api/v1/employees/{employee.id}/leave-balance", headers=headers)
        assert resp.status_code == 403
