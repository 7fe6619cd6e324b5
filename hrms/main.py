"""Mountain Care HR: FastAPI application factory."""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from hrms.attendance.router import router as attendance_router
from hrms.auth.router import router as auth_router
from hrms.common.exceptions import register_exception_handlers
from hrms.common.logging import RequestIDMiddleware, setup_logging
from hrms.common.rate_limit import limiter
from hrms.compliance.router import router as compliance_router
from hrms.config import settings
from hrms.core_hr.router import (
    departments_router,
    employees_router,
    positions_router,
)
from hrms.cron.router import router as cron_router
from hrms.dashboard.router import router as dashboard_router
from hrms.database import engine
from hrms.documents.router import router as documents_router
from hrms.leave.router import router as leave_router
from hrms.offboarding.router import router as offboarding_router
from hrms.onboarding.router import router as onboarding_router
from hrms.reports.router import router as reports_router
from hrms.tasks.router import router as tasks_router
from hrms.users.router import router as users_router

APP_VERSION = "1.0.0"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("Mountain Care HR starting (environment=%s)", settings.ENVIRONMENT)
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="Mountain Care HR",
        description="HR management: people, time, leave, compliance, documents and on/offboarding",
        version=APP_VERSION,
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": APP_VERSION,
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(auth_router, prefix="/api/v1/auth", tags=["auth"])
    app.include_router(users_router, prefix="/api/v1/users", tags=["users"])
    app.include_router(employees_router, prefix="/api/v1/employees", tags=["employees"])
    app.include_router(departments_router, prefix="/api/v1/departments", tags=["departments"])
    app.include_router(positions_router, prefix="/api/v1/positions", tags=["positions"])
    app.include_router(attendance_router, prefix="/api/v1/attendance", tags=["attendance"])
    app.include_router(leave_router, prefix="/api/v1/leave", tags=["leave"])
    app.include_router(compliance_router, prefix="/api/v1/compliance", tags=["compliance"])
    app.include_router(documents_router, prefix="/api/v1/documents", tags=["documents"])
    app.include_router(tasks_router, prefix="/api/v1/tasks", tags=["tasks"])
    app.include_router(onboarding_router, prefix="/api/v1/onboarding", tags=["onboarding"])
    app.include_router(offboarding_router, prefix="/api/v1/offboarding", tags=["offboarding"])
    app.include_router(dashboard_router, prefix="/api/v1/dashboard", tags=["dashboard"])
    app.include_router(reports_router, prefix="/api/v1/reports", tags=["reports"])
    app.include_router(cron_router, prefix="/api/v1/cron", tags=["cron"])

    return app


app = create_app()
