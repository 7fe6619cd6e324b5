"""Shared-infrastructure tests — pagination, filters, errors, health, request ids."""

from __future__ import annotations

import uuid
from datetime import date

import pytest
from sqlalchemy import select

from hrms.common.filters import apply_filters, apply_search, apply_sorting
from hrms.common.pagination import PaginationMeta, PaginationParams, empty_page
from hrms.core_hr.models import Employee
from tests.conftest import make_employee


# ═════════════════════════════════════════════════════════════════════
# Pagination
# ═════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    "page, page_size, total, pages, has_next, has_prev",
    [
        (1, 20, 0, 0, False, False),
        (1, 20, 20, 1, False, False),
        (1, 20, 21, 2, True, False),
        (2, 20, 21, 2, False, True),
    ],
)
def test_pagination_meta(page, page_size, total, pages, has_next, has_prev):
    meta = PaginationMeta.build(page, page_size, total)
    assert meta.total_pages == pages
    assert meta.has_next is has_next
    assert meta.has_prev is has_prev


def test_empty_page_envelope():
    params = PaginationParams(page=3, page_size=10, sort=None)
    assert params.offset == 20
    assert empty_page(params).to_envelope() == {
        "data": [],
        "meta": {
            "page": 3,
            "page_size": 10,
            "total": 0,
            "total_pages": 0,
            "has_next": False,
            "has_prev": True,
        },
    }


# ═════════════════════════════════════════════════════════════════════
# Filters, search and sorting
# ═════════════════════════════════════════════════════════════════════


class TestQueryHelpers:

    async def _seed(self, db, department):
        await make_employee(db, first_name="Jane", last_name="Doe", department_id=department.id,
                            hire_date=date(2023, 5, 1))
        await make_employee(db, first_name="John", last_name="Smith", hire_date=date(2024, 8, 1))
        await make_employee(db, first_name="Ana", last_name="Dorsey", hire_date=date(2025, 2, 1))

    async def _names(self, db, query):
        return [f"{e.first_name} {e.last_name}" for e in (await db.execute(query)).scalars().all()]

    async def test_filters_by_operator_suffix(self, db, department):
        await self._seed(db, department)
        base = select(Employee).order_by(Employee.hire_date)

        q = apply_filters(base, Employee, {"department_id": department.id, "last_name": None})
        assert await self._names(db, q) == ["Jane Doe"]

        q = apply_filters(base, Employee, {"hire_date__from": date(2024, 1, 1), "hire_date__to": date(2024, 12, 31)})
        assert await self._names(db, q) == ["John Smith"]

        q = apply_filters(base, Employee, {"last_name__ilike": "do"})
        assert await self._names(db, q) == ["Jane Doe", "Ana Dorsey"]

        q = apply_filters(base, Employee, {"first_name": "Ana", "not_a_column": "x"})
        assert await self._names(db, q) == ["Ana Dorsey"]

    async def test_search_requires_every_term(self, db, department):
        await self._seed(db, department)
        columns = ("first_name", "last_name")
        base = select(Employee).order_by(Employee.hire_date)

        assert await self._names(db, apply_search(base, Employee, "doe jane", columns)) == ["Jane Doe"]
        assert len(await self._names(db, apply_search(base, Employee, "   ", columns))) == 3
        assert await self._names(db, apply_search(base, Employee, "zed", columns)) == []

    async def test_sorting_ignores_unknown_columns(self, db, department):
        await self._seed(db, department)
        base = select(Employee).order_by(Employee.hire_date)

        q = apply_sorting(base, Employee, "-hire_date", replace=True)
        assert await self._names(db, q) == ["Ana Dorsey", "John Smith", "Jane Doe"]

        assert apply_sorting(base, Employee, "password; drop table") is base
        assert apply_sorting(base, Employee, None) is base


# ═════════════════════════════════════════════════════════════════════
# HTTP plumbing
# ═════════════════════════════════════════════════════════════════════


async def test_health_check_needs_no_auth(client):
    resp = await client.get("/api/v1/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["version"] == "1.0.0"


async def test_request_id_is_echoed(client):
    resp = await client.get("/api/v1/health", headers={"X-Request-ID": "abc123"})
    assert resp.headers["X-Request-ID"] == "abc123"

    resp = await client.get("/api/v1/health")
    assert len(resp.headers["X-Request-ID"]) == 32


async def test_not_found_is_problem_json(client, admin_headers):
    missing = uuid.uuid4()
    resp = await client.get(f"/api/v1/employees/{missing}", headers=admin_headers)
    assert resp.status_code == 404
    assert resp.headers["content-type"].startswith("application/problem+json")
    body = resp.json()
    assert body["type"] == "https://hr.mountaincare.example/errors/not-found"
    assert body["status"] == 404
    assert body["instance"] == f"/api/v1/employees/{missing}"
    assert body["title"]
    assert body["detail"]


async def test_validation_error_lists_fields(client, admin_headers):
    resp = await client.post("/api/v1/departments", json={}, headers=admin_headers)
    assert resp.status_code == 422
    body = resp.json()
    assert body["type"].endswith("/validation-error")
    assert "name" in body["errors"]


async def test_missing_token_is_unauthorized_problem(client):
    resp = await client.get("/api/v1/employees")
    assert resp.status_code == 401
    assert resp.json()["type"].endswith("/unauthorized")
