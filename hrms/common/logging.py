"""Structured JSON logging with a per-request correlation id."""

from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

from pythonjsonlogger import jsonlogger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine")


class RequestJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps every record with timestamp, level and request id."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        req_id = request_id_var.get()
        if req_id:
            log_record["request_id"] = req_id

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).isoformat()

        log_record["level"] = (log_record.get("level") or record.levelname).upper()


def setup_logging(level: str = "info") -> None:
    """Install a single JSON stream handler on the root logger.

    Safe to call more than once (app factory runs per test).
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_hrms_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(RequestJsonFormatter("%(timestamp) %(level) %(name) %(message)"))
    handler._hrms_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Bind ``X-Request-ID`` (or a fresh uuid) to the logging context."""

    async def dispatch(self, request: Request, call_next) -> Response:
        req_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        token = request_id_var.set(req_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[REQUEST_ID_HEADER] = req_id
        return response
