"""
Centralized logging configuration for all Matchboard services.

This module provides consistent logging setup across all services including:
- Structured logging with JSON or readable text output
- Request ID tracking for HTTP requests
- Viewer context extraction
- Request timing

Usage:
    from services.common.logging_config import setup_service_logging

    # In your service main.py
    setup_service_logging(
        service_name="meeting-board",
        log_level="INFO",
        log_format="json"
    )
"""

import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any, Callable, Dict, Optional

import structlog
from fastapi import Request, Response

# Context variables for request-specific data
request_id_var: ContextVar[str] = ContextVar("request_id", default="uninitialized")
viewer_id_var: ContextVar[str] = ContextVar("viewer_id", default="anonymous")

# Keys rendered in the line prefix rather than as key=value pairs
_PREFIX_KEYS = ("timestamp", "level", "logger", "event", "service", "request_id", "viewer_id")


class RequestContextFilter(logging.Filter):
    """Copy request context from contextvars onto stdlib log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        record.viewer_id = viewer_id_var.get()
        if not hasattr(record, "service_name"):
            record.service_name = "unknown"
        return True


def add_request_context(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Add request and viewer ID to all log entries."""
    request_id = request_id_var.get()
    viewer_id = viewer_id_var.get()
    if request_id and request_id != "uninitialized":
        event_dict.setdefault("request_id", request_id)
    if viewer_id and viewer_id != "anonymous":
        event_dict.setdefault("viewer_id", viewer_id)
    return event_dict


def add_service_context(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Derive the service name from a logger path like "services.meeting_board.api"."""
    logger_name = event_dict.get("logger", "")
    if "service" not in event_dict and logger_name.startswith("services."):
        parts = logger_name.split(".")
        if len(parts) >= 2:
            event_dict["service"] = parts[1]
    return event_dict


class TextRenderer:
    """Readable single-line renderer for local development."""

    def __init__(self, service_name: str):
        self.service_name = service_name

    def __call__(
        self,
        logger: structlog.types.WrappedLogger,
        method_name: str,
        event_dict: structlog.types.EventDict,
    ) -> str:
        level = str(event_dict.get("level", method_name)).upper()
        logger_name = str(event_dict.get("logger", ""))
        if logger_name.startswith("services."):
            logger_name = logger_name[len("services.") :]

        request_id = str(event_dict.get("request_id", ""))
        request_tag = f"[{request_id[-4:]}]" if request_id else ""

        parts = [
            str(event_dict.get("timestamp", "")),
            f"[{event_dict.get('service', self.service_name)}]",
            f"[{level}]",
            request_tag,
            logger_name,
            f"- {event_dict.get('event', '')}",
        ]
        viewer_id = event_dict.get("viewer_id")
        if viewer_id:
            parts.append(f"| viewer={viewer_id}")

        extras = []
        for key, value in event_dict.items():
            if key in _PREFIX_KEYS:
                continue
            if isinstance(value, (str, int, float, bool)) or value is None:
                extras.append(f"{key}={value}")
            else:
                extras.append(f"{key}={str(value)[:150]}")
        if extras:
            parts.append(f"| {', '.join(extras)}")

        return " ".join(part for part in parts if part)


def setup_service_logging(
    service_name: str,
    log_level: str = "INFO",
    log_format: str = "json",
) -> None:
    """
    Set up logging configuration for a service.

    Args:
        service_name: Name of the service (e.g., "meeting-board")
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Format type ("json" or "text")
    """
    processors: list = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        add_request_context,
        add_service_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(TextRenderer(service_name))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # structlog already rendered the message
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.addFilter(RequestContextFilter())

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        handlers=[handler],
        force=True,
    )

    # Silence verbose third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    get_logger(__name__).info(
        f"Logging configured for {service_name}",
        log_level=log_level,
        log_format=log_format,
    )


def create_request_logging_middleware() -> Callable:
    """
    Create HTTP request logging middleware for FastAPI.

    The request ID comes from ``X-Request-Id`` (generated when absent) and the
    viewer from ``X-Viewer-Id`` or a ``viewer_id`` query parameter.
    """

    async def log_requests(request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        request_id_var.set(request_id)

        viewer_id = (
            request.headers.get("X-Viewer-Id")
            or request.query_params.get("viewer_id")
        )
        viewer_id_var.set(viewer_id or "anonymous")

        logger = get_logger("http.requests")
        started = time.time()
        logger.info(
            f"→ {request.method} {request.url.path}",
            method=request.method,
            query_params=str(request.query_params) if request.query_params else None,
        )

        response = await call_next(request)

        elapsed = time.time() - started
        log = logger.error if response.status_code >= 500 else logger.info
        log(
            f"{request.method} {request.url.path} → {response.status_code} ({elapsed:.3f}s)",
            status_code=response.status_code,
            process_time=elapsed,
        )
        response.headers["X-Request-Id"] = request_id
        return response

    return log_requests


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)
    """
    return structlog.get_logger(name)


def log_service_startup(service_name: str, **kwargs: Any) -> None:
    """Log service startup with configuration details."""
    get_logger("startup").info(f"Starting {service_name}", service=service_name, **kwargs)


def log_service_shutdown(service_name: str) -> None:
    """Log service shutdown event."""
    get_logger(__name__).info(f"Service {service_name} shutting down")


def log_http_error(
    error_type: str,
    message: str,
    status_code: int,
    request_id: Optional[str] = None,
    viewer_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    **kwargs: Any,
) -> None:
    """
    Log an HTTP error at a level matching its status code.

    5xx are logged as errors, 4xx as warnings, anything else as info.
    """
    logger = get_logger(__name__)
    context: Dict[str, Any] = {
        "error_type": error_type,
        "status_code": status_code,
        **kwargs,
    }
    if request_id:
        context["request_id"] = request_id
    if viewer_id:
        context["viewer_id"] = viewer_id
    if details:
        context["details"] = details

    if status_code >= 500:
        log = logger.error
    elif status_code >= 400:
        log = logger.warning
    else:
        log = logger.info
    log(f"HTTP {status_code} {error_type}: {message}", **context)
