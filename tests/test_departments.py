"""Department and position endpoint tests."""

from __future__ import annotations

import uuid

from hrms.auth.models import User
from hrms.core_hr.models import Employee
from tests.conftest import TestSessionFactory, make_department, make_employee


# ═════════════════════════════════════════════════════════════════════
# Departments
# ═════════════════════════════════════════════════════════════════════


async def test_list_departments_with_employee_counts(client, db, employee_headers, department, other_department):
    await make_employee(db, department_id=department.id)
    await make_employee(db, department_id=department.id)

    resp = await client.get("/api/v1/departments", headers=employee_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    counts = {d["name"]: d["employee_count"] for d in data}
    assert counts == {"Hospice": 2, "Wellness": 0}
    # Sorted by name
    assert [d["name"] for d in data] == ["Hospice", "Wellness"]


async def test_create_department(client, admin_headers, dept_head):
    resp = await client.post(
        "/api/v1/departments",
        json={"name": "Compounding", "manager_id": str(dept_head.id)},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["name"] == "Compounding"
    assert data["manager_id"] == str(dept_head.id)


async def test_create_department_duplicate_name(client, admin_headers, department):
    resp = await client.post(
        "/api/v1/departments", json={"name": "Hospice"}, headers=admin_headers,
    )
    assert resp.status_code == 409
    assert "name" in resp.json()["errors"]


async def test_create_department_unknown_manager(client, admin_headers):
    resp = await client.post(
        "/api/v1/departments",
        json={"name": "Ghost Ward", "manager_id": str(uuid.uuid4())},
        headers=admin_headers,
    )
    assert resp.status_code == 400


async def test_create_department_blank_name(client, admin_headers):
    resp = await client.post(
        "/api/v1/departments", json={"name": "   "}, headers=admin_headers,
    )
    assert resp.status_code == 422


async def test_create_department_requires_admin(client, hr_headers):
    resp = await client.post(
        "/api/v1/departments", json={"name": "Finance"}, headers=hr_headers,
    )
    assert resp.status_code == 403


async def test_update_department(client, admin_headers, department):
    resp = await client.put(
        f"/api/v1/departments/{department.id}",
        json={"name": "Hospice Care"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["name"] == "Hospice Care"


async def test_update_department_to_taken_name(client, db, admin_headers, department, other_department):
    resp = await client.put(
        f"/api/v1/departments/{department.id}",
        json={"name": "Wellness"},
        headers=admin_headers,
    )
    assert resp.status_code == 409


async def test_delete_department_unassigns_members(client, db, admin_headers, dept_head):
    dept_id = dept_head.department_id
    emp = await make_employee(db, department_id=dept_id)

    resp = await client.delete(f"/api/v1/departments/{dept_id}", headers=admin_headers)
    assert resp.status_code == 204

    async with TestSessionFactory() as session:
        assert (await session.get(Employee, emp.id)).department_id is None
        assert (await session.get(User, dept_head.id)).department_id is None


async def test_get_department_not_found(client, admin_headers):
    resp = await client.get(f"/api/v1/departments/{uuid.uuid4()}", headers=admin_headers)
    assert resp.status_code == 404


async def test_get_department_includes_count(client, db, admin_headers):
    dept = await make_department(db, "Operations")
    await make_employee(db, department_id=dept.id)
    resp = await client.get(f"/api/v1/departments/{dept.id}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["employee_count"] == 1


# ═════════════════════════════════════════════════════════════════════
# Positions
# ═════════════════════════════════════════════════════════════════════


async def test_create_and_list_positions(client, admin_headers, employee_headers):
    for name in ("Registered Nurse", "Pharmacist"):
        resp = await client.post(
            "/api/v1/positions", json={"name": name}, headers=admin_headers,
        )
        assert resp.status_code == 201

    resp = await client.get("/api/v1/positions", headers=employee_headers)
    assert resp.status_code == 200
    names = {p["name"] for p in resp.json()["data"]}
    assert names == {"Registered Nurse", "Pharmacist"}


async def test_create_position_duplicate(client, admin_headers):
    await client.post("/api/v1/positions", json={"name": "Pharmacist"}, headers=admin_headers)
    resp = await client.post(
        "/api/v1/positions", json={"name": "Pharmacist"}, headers=admin_headers,
    )
    assert resp.status_code == 409


async def test_create_position_requires_admin(client, dept_head_headers):
    resp = await client.post(
        "/api/v1/positions", json={"name": "Scribe"}, headers=dept_head_headers,
    )
    assert resp.status_code == 403
