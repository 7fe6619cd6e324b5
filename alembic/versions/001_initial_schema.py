"""001 – Initial schema: all tables, indexes and enum types.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ENUM_TYPES: list[tuple[str, list[str]]] = [
    ("user_role", ["admin", "hr", "department_head", "manager", "employee"]),
    ("employee_status", ["Active", "Terminating", "Terminated"]),
    ("leave_type", ["Vacation", "Sick", "Personal", "Bereavement", "Other"]),
    ("leave_status", ["Pending", "Approved", "Rejected", "Cancelled"]),
    ("compliance_status", ["Active", "ExpiringSoon", "Expired", "PendingReview"]),
    ("task_status", ["Pending", "InProgress", "Completed", "Blocked"]),
    ("related_entity_type", ["Onboarding", "Offboarding", "Compliance", "General"]),
    ("offboarding_status", ["Pending", "InProgress", "Completed", "Cancelled"]),
    ("offboarding_task_status", ["Pending", "Completed"]),
]

TIMESTAMPS = """
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
"""


def _create_enum(name: str, values: list[str]) -> None:
    vals = ", ".join(f"'{v}'" for v in values)
    op.execute(f"CREATE TYPE {name} AS ENUM ({vals})")


def _drop_enum(name: str) -> None:
    op.execute(f"DROP TYPE IF EXISTS {name}")


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    for name, values in ENUM_TYPES:
        _create_enum(name, values)

    # ── departments / users (circular FKs, users.department_id added after) ──
    op.execute(f"""
        CREATE TABLE departments (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(100) NOT NULL UNIQUE,
            manager_id UUID,
            {TIMESTAMPS}
        )
    """)

    op.execute(f"""
        CREATE TABLE users (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            username VARCHAR(150) NOT NULL UNIQUE,
            email VARCHAR(255),
            password_hash VARCHAR(255) NOT NULL,
            role user_role NOT NULL DEFAULT 'employee',
            department_id UUID REFERENCES departments(id) ON DELETE SET NULL,
            is_active BOOLEAN NOT NULL DEFAULT TRUE,
            {TIMESTAMPS}
        )
    """)

    op.execute("""
        ALTER TABLE departments
        ADD CONSTRAINT fk_departments_manager
        FOREIGN KEY (manager_id) REFERENCES users(id) ON DELETE SET NULL
    """)

    op.execute("""
        CREATE TABLE user_sessions (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            token_hash VARCHAR(128) NOT NULL,
            ip_address INET,
            user_agent TEXT,
            expires_at TIMESTAMPTZ NOT NULL,
            is_revoked BOOLEAN NOT NULL DEFAULT FALSE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_user_sessions_token_hash ON user_sessions (token_hash)")

    op.execute(f"""
        CREATE TABLE positions (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(100) NOT NULL UNIQUE,
            {TIMESTAMPS}
        )
    """)

    # ── employees ─────────────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE employees (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            first_name VARCHAR(100) NOT NULL,
            last_name VARCHAR(100) NOT NULL,
            ssn_encrypted VARCHAR(255),
            department_id UUID REFERENCES departments(id) ON DELETE SET NULL,
            user_id UUID UNIQUE REFERENCES users(id) ON DELETE SET NULL,
            position VARCHAR(100),
            hire_date DATE,
            status employee_status NOT NULL DEFAULT 'Active',
            {TIMESTAMPS}
        )
    """)
    op.execute("CREATE INDEX ix_employees_department_id ON employees (department_id)")
    op.execute("CREATE INDEX ix_employees_name ON employees (last_name, first_name)")

    # ── attendance ────────────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE attendance (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            employee_id UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            date DATE NOT NULL,
            time_in TIME NOT NULL,
            time_out TIME,
            {TIMESTAMPS}
        )
    """)
    op.execute("CREATE INDEX ix_attendance_employee_date ON attendance (employee_id, date)")

    # ── leave ─────────────────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE leaves (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            employee_id UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            start_date DATE NOT NULL,
            end_date DATE NOT NULL,
            leave_type leave_type NOT NULL,
            reason TEXT,
            status leave_status NOT NULL DEFAULT 'Pending',
            approver_id UUID REFERENCES users(id) ON DELETE SET NULL,
            approved_at TIMESTAMPTZ,
            comments TEXT,
            {TIMESTAMPS}
        )
    """)
    op.execute("CREATE INDEX ix_leaves_employee_id ON leaves (employee_id)")
    op.execute("CREATE INDEX ix_leaves_status ON leaves (status)")

    op.execute("""
        CREATE TABLE leave_balances (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            employee_id UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            leave_type VARCHAR(50) NOT NULL,
            balance DOUBLE PRECISION NOT NULL DEFAULT 0,
            accrued_ytd DOUBLE PRECISION NOT NULL DEFAULT 0,
            used_ytd DOUBLE PRECISION NOT NULL DEFAULT 0,
            last_updated TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_leave_balance UNIQUE (employee_id, leave_type)
        )
    """)

    # ── compliance ────────────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE compliance_items (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            employee_id UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            item_type VARCHAR(100) NOT NULL,
            item_name VARCHAR(255) NOT NULL,
            authority VARCHAR(255),
            license_number VARCHAR(100),
            issue_date DATE,
            expiration_date DATE,
            status compliance_status NOT NULL DEFAULT 'PendingReview',
            {TIMESTAMPS}
        )
    """)
    op.execute("CREATE INDEX ix_compliance_items_employee_id ON compliance_items (employee_id)")
    op.execute("CREATE INDEX ix_compliance_items_expiration_date ON compliance_items (expiration_date)")

    # ── documents ─────────────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE documents (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            title VARCHAR(255) NOT NULL,
            file_path VARCHAR(255) NOT NULL UNIQUE,
            file_type VARCHAR(100) NOT NULL,
            file_size INTEGER NOT NULL,
            owner_id UUID REFERENCES users(id) ON DELETE SET NULL,
            employee_id UUID REFERENCES employees(id) ON DELETE SET NULL,
            department_id UUID REFERENCES departments(id) ON DELETE SET NULL,
            version INTEGER NOT NULL DEFAULT 1,
            description TEXT,
            {TIMESTAMPS}
        )
    """)
    for col in ("owner_id", "employee_id", "department_id"):
        op.execute(f"CREATE INDEX ix_documents_{col} ON documents ({col})")

    # ── tasks ─────────────────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE tasks (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            title VARCHAR(255) NOT NULL,
            description TEXT,
            status task_status NOT NULL DEFAULT 'Pending',
            due_date DATE,
            assigned_to_id UUID REFERENCES employees(id) ON DELETE SET NULL,
            created_by_id UUID REFERENCES users(id) ON DELETE SET NULL,
            related_entity_type related_entity_type,
            related_entity_id UUID,
            {TIMESTAMPS}
        )
    """)
    op.execute("CREATE INDEX ix_tasks_assigned_to_id ON tasks (assigned_to_id)")
    op.execute("CREATE INDEX ix_tasks_related_entity ON tasks (related_entity_type, related_entity_id)")

    # ── onboarding templates ──────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE onboarding_templates (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            template_code VARCHAR(100) NOT NULL UNIQUE,
            name VARCHAR(255) NOT NULL,
            description TEXT,
            {TIMESTAMPS}
        )
    """)
    op.execute(f"""
        CREATE TABLE onboarding_template_items (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            template_id UUID NOT NULL REFERENCES onboarding_templates(id) ON DELETE CASCADE,
            item_code VARCHAR(50),
            position INTEGER NOT NULL DEFAULT 0,
            task_description TEXT NOT NULL,
            responsible_role VARCHAR(20) NOT NULL,
            due_days INTEGER,
            notes TEXT,
            {TIMESTAMPS}
        )
    """)
    op.execute(
        "CREATE INDEX ix_onboarding_template_items_template_id "
        "ON onboarding_template_items (template_id)"
    )

    # ── offboarding ───────────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE task_templates (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            description TEXT NOT NULL,
            default_assigned_role VARCHAR(50),
            {TIMESTAMPS}
        )
    """)
    op.execute(f"""
        CREATE TABLE offboardings (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            employee_id UUID NOT NULL UNIQUE REFERENCES employees(id) ON DELETE CASCADE,
            exit_date DATE NOT NULL,
            reason TEXT,
            status offboarding_status NOT NULL DEFAULT 'Pending',
            {TIMESTAMPS}
        )
    """)
    op.execute(f"""
        CREATE TABLE offboarding_tasks (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            offboarding_id UUID NOT NULL REFERENCES offboardings(id) ON DELETE CASCADE,
            description TEXT NOT NULL,
            status offboarding_task_status NOT NULL DEFAULT 'Pending',
            assigned_to_user_id UUID REFERENCES users(id) ON DELETE SET NULL,
            assigned_role VARCHAR(50),
            notes TEXT,
            completed_at TIMESTAMPTZ,
            {TIMESTAMPS}
        )
    """)
    op.execute("CREATE INDEX ix_offboarding_tasks_offboarding_id ON offboarding_tasks (offboarding_id)")

    # ── activity log ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE activity_logs (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID REFERENCES users(id) ON DELETE SET NULL,
            action_type VARCHAR(50) NOT NULL,
            entity_type VARCHAR(50),
            entity_id VARCHAR(64),
            description TEXT NOT NULL,
            details JSONB,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_activity_logs_user_id ON activity_logs (user_id)")
    op.execute("CREATE INDEX ix_activity_logs_entity ON activity_logs (entity_type, entity_id)")
    op.execute("CREATE INDEX ix_activity_logs_created_at ON activity_logs (created_at)")


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "activity_logs",
        "offboarding_tasks",
        "offboardings",
        "task_templates",
        "onboarding_template_items",
        "onboarding_templates",
        "tasks",
        "documents",
        "compliance_items",
        "leave_balances",
        "leaves",
        "attendance",
        "employees",
        "positions",
        "user_sessions",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")

    # Break the departments <-> users cycle before dropping either
    op.execute("ALTER TABLE departments DROP CONSTRAINT IF EXISTS fk_departments_manager")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
    op.execute("DROP TABLE IF EXISTS departments CASCADE")

    for name, _ in reversed(ENUM_TYPES):
        _drop_enum(name)
