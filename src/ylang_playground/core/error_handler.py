"""Error envelopes and structured logging for the playground.

Log lines carry a correlation id: one per HTTP request, or ``{target}:v{version}``
for a dispatched compile. Source text and credentials are redacted before
anything reaches a handler. Every exception leaving a route is rendered as an
``ErrorResponse``; what the ``error`` block may expose depends on the
environment.
"""

import json
import logging
import sys
import traceback
import uuid
from contextvars import ContextVar
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from ylang_playground.core.config import get_settings
from ylang_playground.core.exceptions import (
    CompilerServiceError,
    DomainError,
    UnknownTargetError,
)
from ylang_playground.core.security_config import (
    get_allowed_error_fields,
    is_sensitive_key,
)
from ylang_playground.schemas.api import ErrorResponse


REDACTED = "[REDACTED]"

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

logger = logging.getLogger(__name__)


def get_correlation_id() -> str:
    """Return the current correlation id, minting one if none is set."""
    correlation_id = _correlation_id_var.get()
    if not correlation_id:
        correlation_id = str(uuid.uuid4())
        _correlation_id_var.set(correlation_id)
    return correlation_id


def set_correlation_id(correlation_id: str | None) -> None:
    _correlation_id_var.set(correlation_id)


def redact(value: Any) -> Any:
    """Recursively mask values stored under sensitive keys."""
    if isinstance(value, dict):
        return {
            key: REDACTED if is_sensitive_key(str(key)) else redact(item)
            for key, item in value.items()
        }
    if isinstance(value, list | tuple):
        return [redact(item) for item in value]
    return value


class StructuredLogger:
    """Logger wrapper that tags records with the correlation id.

    Keyword fields end up in ``record.structured_data`` (merged into the JSON
    output in production) and, outside production, are appended to the
    message as ``key=value`` pairs.
    """

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(logger_name)

    def log(
        self, level: int, message: str, *, exc_info: bool = False, **fields: Any
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return
        correlation_id = get_correlation_id()
        safe_fields = self._sanitize_data(fields)
        payload = {"correlation_id": correlation_id, "message": message, **safe_fields}

        text = message
        if get_settings().ENVIRONMENT != "production":
            pairs = " ".join(f"{key}={val}" for key, val in safe_fields.items())
            text = f"[{correlation_id}] {message}" + (f" {pairs}" if pairs else "")
        self.logger.log(
            level, text, extra={"structured_data": payload}, exc_info=exc_info
        )

    def _sanitize_data(self, data: dict[str, Any]) -> dict[str, Any]:
        if not isinstance(data, dict):
            return {}
        return redact(data)

    def debug(self, message: str, **fields: Any) -> None:
        self.log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self.log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self.log(logging.WARNING, message, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self.log(logging.ERROR, message, **fields)

    def exception(self, message: str, **fields: Any) -> None:
        """Log at ERROR with the active exception's traceback."""
        self.log(logging.ERROR, message, exc_info=True, **fields)


structured_logger = StructuredLogger(__name__)


class ExceptionNormalizationMiddleware(BaseHTTPMiddleware):
    """Render exceptions that escape the router instead of letting them crash."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:  # noqa: BLE001
            return await global_exception_handler(request, exc)


# Domain errors: HTTP status and envelope ``type``
_DOMAIN_ERRORS: dict[type[DomainError], tuple[int, str]] = {
    UnknownTargetError: (400, "domain_error"),
    CompilerServiceError: (502, "compiler_unavailable"),
}


def _error_envelope(
    status_code: int, error_type: str, message: str, **fields: Any
) -> JSONResponse:
    """Build an ``ErrorResponse``, keeping only fields the environment allows."""
    allowed = get_allowed_error_fields(get_settings().ENVIRONMENT)
    error: dict[str, Any] = {"correlation_id": get_correlation_id(), "type": error_type}
    error.update(
        (name, value)
        for name, value in fields.items()
        if name in allowed and value not in (None, "", {})
    )
    body = ErrorResponse(message=message, error=error)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def _domain_error_response(exc: DomainError) -> JSONResponse:
    status_code, error_type = next(
        (spec for cls, spec in _DOMAIN_ERRORS.items() if isinstance(exc, cls)),
        (400, "domain_error"),
    )
    if isinstance(exc, CompilerServiceError):
        structured_logger.warning(
            "Compiler service unavailable",
            upstream_status=exc.status_code,
            error=exc.message,
        )
        message = exc.message
    else:
        structured_logger.warning(
            "Rejected request", exception_type=type(exc).__name__, error=str(exc)
        )
        message = str(exc)
    return _error_envelope(status_code, error_type, message)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map any exception raised while serving a request to an error envelope."""
    if isinstance(exc, StarletteHTTPException):
        return _error_envelope(
            exc.status_code,
            "http_error",
            "An HTTP error occurred",
            details={"detail": exc.detail},
            exception_type=type(exc).__name__,
        )

    if isinstance(exc, ValidationError | RequestValidationError):
        problems = exc.errors()
        structured_logger.warning("Validation error", error_count=len(problems))
        return _error_envelope(
            422,
            "validation_error",
            "Invalid request data provided",
            # Round-trip through JSON so ctx values such as exceptions serialize
            validation_errors=json.loads(json.dumps(problems, default=str)),
        )

    if isinstance(exc, DomainError):
        return _domain_error_response(exc)

    structured_logger.exception(
        "Unhandled exception", exception_type=type(exc).__name__, error=str(exc)
    )
    return _error_envelope(
        500,
        "internal_server_error",
        "An internal error occurred",
        traceback="".join(traceback.format_exception(exc)).strip(),
        exception_type=type(exc).__name__,
    )


def setup_logging() -> None:
    """Install a stdout handler on the root logger once.

    Development logs at DEBUG; production emits JSON lines via python-json-logger.
    """
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    environment = get_settings().ENVIRONMENT
    level = logging.DEBUG if environment == "development" else logging.INFO

    formatter: logging.Formatter
    if environment == "production":
        from pythonjsonlogger.json import JsonFormatter

        formatter = JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    # Each debounced edit replaces a job; that chatter is not useful
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    if environment == "production":
        for noisy in ("uvicorn.access", "httpx"):
            logging.getLogger(noisy).setLevel(logging.WARNING)
