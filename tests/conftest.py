"""Shared test fixtures — async DB, client, auth helpers, factories.

Reusable across all test modules. Uses SQLite + aiosqlite for fast isolated
tests without PostgreSQL. Factories commit, because the app under test reads
through its own session on the same in-memory connection.
"""

from __future__ import annotations

import os

# Set test settings before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import uuid
from datetime import date, datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.dialects.postgresql import INET, JSONB, UUID as PG_UUID
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.pool import StaticPool

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import hrms.models  # noqa: F401
from hrms.auth.models import User, UserSession
from hrms.auth.service import create_access_token, hash_token
from hrms.common.constants import EmployeeStatus, UserRole
from hrms.common.rate_limit import limiter
from hrms.common.security import hash_password
from hrms.config import settings
from hrms.core_hr.models import Department, Employee
from hrms.database import Base, get_db
from hrms.main import create_app

DEFAULT_PASSWORD = "password123"
# bcrypt is slow; hash once and share it across factory users
_DEFAULT_HASH = hash_password(DEFAULT_PASSWORD)


# ── SQLite compat: compile PG-specific types ────────────────────────

@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(INET, "sqlite")
def _inet_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine.sync_engine, "connect")
def _register_sqlite_functions(dbapi_conn, connection_record):
    """Register NOW() and gen_random_uuid() as SQLite custom functions."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
    )
    dbapi_conn.create_function(
        "gen_random_uuid", 0, lambda: str(uuid.uuid4()),
    )


TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Clear slowapi's in-memory counters so login tests don't interfere."""
    limiter.reset()
    yield


@pytest.fixture(autouse=True)
def _upload_dir(tmp_path, monkeypatch):
    """Uploads land in a per-test temporary directory."""
    upload_dir = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(upload_dir))
    return upload_dir


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

async def make_department(db: AsyncSession, name: Optional[str] = None) -> Department:
    dept = Department(name=name or f"Dept {uuid.uuid4().hex[:6]}")
    db.add(dept)
    await db.commit()
    return dept


async def make_user(
    db: AsyncSession,
    *,
    role: UserRole = UserRole.employee,
    username: Optional[str] = None,
    department_id: Optional[uuid.UUID] = None,
    email: Optional[str] = None,
    password: Optional[str] = None,
    is_active: bool = True,
) -> User:
    user = User(
        username=username or f"{role.value}-{uuid.uuid4().hex[:6]}",
        email=email,
        password_hash=hash_password(password) if password else _DEFAULT_HASH,
        role=role,
        department_id=department_id,
        is_active=is_active,
    )
    db.add(user)
    await db.commit()
    return user


async def make_employee(
    db: AsyncSession,
    *,
    first_name: str = "Test",
    last_name: str = "Employee",
    department_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
    hire_date: Optional[date] = None,
    status: EmployeeStatus = EmployeeStatus.active,
) -> Employee:
    employee = Employee(
        first_name=first_name,
        last_name=last_name,
        department_id=department_id,
        user_id=user_id,
        hire_date=hire_date or date(2024, 1, 15),
        status=status,
    )
    db.add(employee)
    await db.commit()
    return employee


# ── Auth helpers ────────────────────────────────────────────────────

async def auth_headers_for(db: AsyncSession, user: User) -> dict[str, str]:
    """Bearer headers backed by a live session row, as login would create."""
    token, expires_in = create_access_token(user.id, user.role)
    db.add(
        UserSession(
            user_id=user.id,
            token_hash=hash_token(token),
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
            is_revoked=False,
        )
    )
    await db.commit()
    return {"Authorization": f"Bearer {token}"}


# ── Common actors ───────────────────────────────────────────────────

@pytest.fixture
async def department(db) -> Department:
    return await make_department(db, "Hospice")


@pytest.fixture
async def other_department(db) -> Department:
    return await make_department(db, "Wellness")


@pytest.fixture
async def admin_user(db) -> User:
    return await make_user(db, role=UserRole.admin, username="admin")


@pytest.fixture
async def hr_user(db) -> User:
    return await make_user(db, role=UserRole.hr, username="hr.generalist")


@pytest.fixture
async def dept_head(db, department) -> User:
    return await make_user(
        db, role=UserRole.department_head, username="hospice.head", department_id=department.id,
    )


@pytest.fixture
async def manager_user(db, department) -> User:
    return await make_user(
        db, role=UserRole.manager, username="hospice.manager", department_id=department.id,
    )


@pytest.fixture
async def employee_user(db, department) -> User:
    return await make_user(
        db,
        role=UserRole.employee,
        username="jane.doe",
        email="jane.doe@mountaincare.example",
        department_id=department.id,
    )


@pytest.fixture
async def employee(db, department, employee_user) -> Employee:
    """The employee profile linked to ``employee_user``."""
    return await make_employee(
        db,
        first_name="Jane",
        last_name="Doe",
        department_id=department.id,
        user_id=employee_user.id,
    )


@pytest.fixture
async def admin_headers(db, admin_user) -> dict[str, str]:
    return await auth_headers_for(db, admin_user)


@pytest.fixture
async def hr_headers(db, hr_user) -> dict[str, str]:
    return await auth_headers_for(db, hr_user)


@pytest.fixture
async def dept_head_headers(db, dept_head) -> dict[str, str]:
    return await auth_headers_for(db, dept_head)


@pytest.fixture
async def manager_headers(db, manager_user) -> dict[str, str]:
    return await auth_headers_for(db, manager_user)


@pytest.fixture
async def employee_headers(db, employee_user) -> dict[str, str]:
    return await auth_headers_for(db, employee_user)


@pytest.fixture
def headers_fixture(request) -> str:
    """Indirect param: set up the named async headers fixture before the test's
    event loop runs, so ``request.getfixturevalue`` inside the test hits the cache."""
    request.getfixturevalue(request.param)
    return request.param


# ── Email ───────────────────────────────────────────────────────────

class StubEmailSender:
    """Collects messages instead of talking to SMTP."""

    enabled = True

    def __init__(self, fail_for: tuple[str, ...] = ()):
        self.sent: list[dict[str, Optional[str]]] = []
        self.fail_for = fail_for

    async def send(self, to: str, subject: str, text: str, html: Optional[str] = None) -> None:
        from hrms.notifications.email import EmailDeliveryError

        if to in self.fail_for:
            raise EmailDeliveryError(f"Failed to send email to {to}: refused")
        self.sent.append({"to": to, "subject": subject, "text": text, "html": html})


@pytest.fixture
def email_sender() -> StubEmailSender:
    return StubEmailSender()
