"""``hrms-jobs``: run the scheduled jobs from the command line.

    hrms-jobs accrue-leave
    hrms-jobs check-compliance
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Awaitable, Callable, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

import hrms.models  # noqa: F401  registers every mapper
from hrms.common.logging import setup_logging
from hrms.compliance.expiration import check_compliance_expirations
from hrms.config import settings
from hrms.database import async_session_factory, engine
from hrms.leave.balance import run_monthly_leave_accrual

logger = logging.getLogger("hrms.jobs")

JOBS: dict[str, Callable[[AsyncSession], Awaitable[dict]]] = {
    "accrue-leave": run_monthly_leave_accrual,
    "check-compliance": check_compliance_expirations,
}


async def run_job(name: str) -> dict:
    job = JOBS[name]
    try:
        async with async_session_factory() as session:
            return await job(session)
    finally:
        await engine.dispose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hrms-jobs", description="Run HR maintenance jobs.")
    parser.add_argument("job", choices=sorted(JOBS), help="job to run")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    logger.info("Running job %s", args.job)
    try:
        results = asyncio.run(run_job(args.job))
    except Exception:
        logger.exception("Job %s failed", args.job)
        return 1
    logger.info("Job %s finished: %s", args.job, results)
    return 0


if __name__ == "__main__":
    sys.exit(main())
