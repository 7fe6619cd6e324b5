#!/usr/bin/env python3
"""Seed reference data for a fresh Mountain Care HR database.

Creates (idempotently):
  1. The ``admin`` user
  2. Departments
  3. Positions
  4. Default offboarding task templates
  5. Static onboarding checklist templates

Usage:
    python scripts/seed.py
    python scripts/seed.py --admin-password 's3cret-pass'
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

import hrms.models  # noqa: F401
from hrms.auth.models import User
from hrms.common.constants import UserRole
from hrms.common.logging import setup_logging
from hrms.common.security import hash_password
from hrms.config import settings
from hrms.core_hr.models import Department, Position
from hrms.database import async_session_factory, engine
from hrms.offboarding.service import ensure_default_task_templates
from hrms.onboarding.service import sync_static_templates

logger = logging.getLogger("hrms.seed")

DEPARTMENTS = [
    "Administration",
    "Human Resources",
    "Operations",
    "Hospice",
    "Wellness",
    "Compounding",
]

POSITIONS = [
    "Administrator",
    "HR Generalist",
    "Registered Nurse",
    "Licensed Practical Nurse",
    "Certified Nursing Assistant",
    "Pharmacist",
    "Pharmacy Technician",
    "Wellness Coach",
    "Operations Coordinator",
]


async def _seed_admin(db: AsyncSession, password: str) -> bool:
    existing = await db.execute(select(User).where(User.username == "admin"))
    if existing.scalars().first() is not None:
        return False
    db.add(User(username="admin", password_hash=hash_password(password), role=UserRole.admin))
    return True


async def _seed_named(db: AsyncSession, model, names: list[str]) -> int:
    result = await db.execute(select(model.name))
    present = set(result.scalars().all())
    missing = [n for n in names if n not in present]
    db.add_all([model(name=n) for n in missing])
    return len(missing)


async def seed(admin_password: str) -> dict[str, int]:
    async with async_session_factory() as db:
        try:
            summary = {
                "admin_created": int(await _seed_admin(db, admin_password)),
                "departments": await _seed_named(db, Department, DEPARTMENTS),
                "positions": await _seed_named(db, Position, POSITIONS),
                "task_templates": await ensure_default_task_templates(db),
            }
            synced = await sync_static_templates(db)
            summary["onboarding_templates"] = synced["created"] + synced["updated"]
            await db.commit()
        except Exception:
            await db.rollback()
            raise
    await engine.dispose()
    return summary


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed Mountain Care HR reference data")
    parser.add_argument(
        "--admin-password",
        default=os.environ.get("SEED_ADMIN_PASSWORD", "admin123"),
        help="Password for the admin user (only used when it is created)",
    )
    args = parser.parse_args()

    setup_logging(settings.LOG_LEVEL)
    summary = asyncio.run(seed(args.admin_password))
    for key, count in summary.items():
        logger.info("seeded %s: %d", key, count)
    return 0


if __name__ == "__main__":
    sys.exit(main())
