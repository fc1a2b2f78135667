"""
Centralized error handling and structured logging for the user directory API
"""

import json
import logging
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from user_directory.utils.errors import RemoteFailure, ValidationFailure

request_id_var: ContextVar[str] = ContextVar('request_id', default='')

logger = logging.getLogger(__name__)


class ErrorHandlingConfig:
    """Centralized configuration for error handling behavior"""

    SENSITIVE_FIELD_PATTERNS = ['password', 'token', 'secret', 'authorization', 'api_key']
    MAX_VALUE_LOG_SIZE = 2000
    INCLUDE_TRACE_ID = True
    INCLUDE_TIMESTAMP = True

    @classmethod
    def is_sensitive_field(cls, field_name: str) -> bool:
        field_lower = field_name.lower()
        return any(pattern in field_lower for pattern in cls.SENSITIVE_FIELD_PATTERNS)

    @classmethod
    def sanitize_data(cls, data: Any) -> Any:
        """Recursively redact sensitive keys and truncate long strings"""
        if isinstance(data, dict):
            return {
                key: "***REDACTED***" if cls.is_sensitive_field(str(key)) else cls.sanitize_data(value)
                for key, value in data.items()
            }
        if isinstance(data, list):
            return [cls.sanitize_data(item) for item in data]
        if isinstance(data, str) and len(data) > cls.MAX_VALUE_LOG_SIZE:
            return data[:cls.MAX_VALUE_LOG_SIZE] + "...[TRUNCATED]"
        return data


class StructuredLogger:
    """Structured logging with consistent format and context"""

    @staticmethod
    def log_error(
        error_type: str,
        message: str,
        request: Optional[Request] = None,
        exception: Optional[Exception] = None,
        extra_context: Optional[Dict] = None,
        include_traceback: bool = False,
        level: int = logging.ERROR
    ) -> str:
        """Log a structured error entry and return its trace id"""
        trace_id = request_id_var.get('') or str(uuid.uuid4())[:8]

        log_entry = {
            "timestamp": datetime.utcnow().isoformat(),
            "trace_id": trace_id,
            "error_type": error_type,
            "message": message,
            "level": logging.getLevelName(level)
        }

        if request:
            log_entry["request"] = {
                "method": request.method,
                "path": request.url.path,
                "query_params": ErrorHandlingConfig.sanitize_data(dict(request.query_params))
            }

        if exception:
            log_entry["exception"] = {
                "type": type(exception).__name__,
                "details": str(exception)
            }
            if include_traceback:
                log_entry["exception"]["traceback"] = traceback.format_exc()

        if extra_context:
            log_entry["context"] = ErrorHandlingConfig.sanitize_data(extra_context)

        logger.log(level, json.dumps(log_entry, indent=2, default=str))
        return trace_id


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign a trace id to every request and echo it in the response headers"""

    async def dispatch(self, request: Request, call_next):
        trace_id = str(uuid.uuid4())[:8]
        request_id_var.set(trace_id)
        request.state.trace_id = trace_id

        response = await call_next(request)
        response.headers["X-Trace-ID"] = trace_id
        return response


def _error_response(status_code: int, error: str, message: Any, trace_id: Optional[str], **extra) -> JSONResponse:
    content = {"error": error, "message": message, **extra}
    if ErrorHandlingConfig.INCLUDE_TRACE_ID and trace_id:
        content["trace_id"] = trace_id
    if ErrorHandlingConfig.INCLUDE_TIMESTAMP:
        content["timestamp"] = datetime.utcnow().isoformat()
    return JSONResponse(status_code=status_code, content=content)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions, logging server-side failures"""
    trace_id = None
    if exc.status_code >= 500:
        trace_id = StructuredLogger.log_error(
            f"http_{exc.status_code}",
            f"HTTP {exc.status_code}: {exc.detail}",
            request=request,
            exception=exc
        )
    return _error_response(exc.status_code, f"HTTP {exc.status_code}", exc.detail, trace_id)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle malformed request bodies (HTTP 422)"""
    details = [
        {
            "field": " -> ".join(str(loc) for loc in error.get("loc", [])),
            "message": error.get("msg", "Unknown validation error"),
            "type": error.get("type", "unknown")
        }
        for error in exc.errors()
    ]
    trace_id = StructuredLogger.log_error(
        "request_validation_error",
        f"Request validation failed: {len(details)} errors",
        request=request,
        extra_context={"validation_errors": details},
        level=logging.WARNING
    )
    return _error_response(422, "Validation Error", "Request validation failed", trace_id, detail=details)


async def validation_failure_handler(request: Request, exc: ValidationFailure) -> JSONResponse:
    """Handle failed form checks (HTTP 422); these never reach the reconciliation service"""
    trace_id = StructuredLogger.log_error(
        "form_validation_failure",
        exc.message,
        request=request,
        extra_context={"field": exc.field},
        level=logging.WARNING
    )
    return _error_response(422, "Validation Error", exc.message, trace_id, field=exc.field)


async def remote_failure_handler(request: Request, exc: RemoteFailure) -> JSONResponse:
    """Handle remote user API failures that escaped the service layer (HTTP 502)"""
    trace_id = StructuredLogger.log_error(
        "remote_failure",
        str(exc),
        request=request,
        exception=exc,
        extra_context={"operation": exc.operation, "status_code": exc.status_code}
    )
    return _error_response(502, "Bad Gateway", "The user API request failed", trace_id)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other exceptions without exposing internals"""
    trace_id = StructuredLogger.log_error(
        "internal_server_error",
        f"Unhandled exception: {exc}",
        request=request,
        exception=exc,
        include_traceback=True
    )
    return _error_response(500, "Internal Server Error", "An unexpected error occurred", trace_id)


def setup_error_handling(app):
    """Setup error handling for FastAPI app"""
    app.add_middleware(RequestContextMiddleware)

    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationFailure, validation_failure_handler)
    app.add_exception_handler(RemoteFailure, remote_failure_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Centralized error handling initialized")
