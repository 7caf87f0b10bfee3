"""
Shared HTTP error classes and utilities for Matchboard services.

Provides:
- Base exception class for API errors
- Common subclasses (Validation, NotFound, Service, Provider)
- Shared error response model
- Utility to convert exceptions to error responses
- FastAPI exception handler registration

Basic Exception Usage:
>>> from services.common.http_errors import ValidationError, NotFoundError
>>>
>>> # Validation error with field context
>>> error = ValidationError("first_hour must not be after last_hour", field="hour_range")
>>>
>>> # Resource not found
>>> error = NotFoundError("Event", "expo-2024")

Provider Error Handling:
>>> from services.common.http_errors import ProviderError, ErrorCode
>>>
>>> error = ProviderError(
...     message="Matchmaking API is unavailable",
...     provider="matchmaking",
...     code=ErrorCode.PROVIDER_UNAVAILABLE,
... )

FastAPI Integration:
>>> from fastapi import FastAPI
>>> from services.common.http_errors import register_matchboard_exception_handlers
>>>
>>> app = FastAPI()
>>> register_matchboard_exception_handlers(app)

Error Code Taxonomy:
===================
- VALIDATION_* : Input validation errors (422)
- NOT_FOUND : Resource not found (404)
- SERVICE_* : Internal service errors (5xx)
- PROVIDER_* : External provider integration errors (502)
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from services.common.logging_config import get_logger, log_http_error, request_id_var

logger = get_logger(__name__)


def _current_request_id() -> str:
    """Request ID from the logging context, or a fresh one outside a request."""
    request_id = request_id_var.get()
    if request_id and request_id != "uninitialized":
        return request_id
    return str(uuid.uuid4())


class ErrorCode(str, Enum):
    """Standardized error codes for all Matchboard services."""

    # ==========================================
    # GENERAL ERRORS (4xx client errors)
    # ==========================================
    VALIDATION_FAILED = "VALIDATION_FAILED"  # HTTP 422 - Input validation failed
    NOT_FOUND = "NOT_FOUND"  # HTTP 404 - Resource not found
    INTERNAL_ERROR = "INTERNAL_ERROR"  # HTTP 500 - Generic internal error

    # ==========================================
    # SERVICE ERRORS (5xx server errors)
    # ==========================================
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"  # Service temporarily unavailable
    SERVICE_ERROR = "SERVICE_ERROR"  # Generic service error

    # ==========================================
    # PROVIDER ERRORS (502 Bad Gateway)
    # ==========================================
    PROVIDER_ERROR = "PROVIDER_ERROR"  # Generic external provider error
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"  # External provider not available


# Shared error response model (Pydantic)
class ErrorResponse(BaseModel):
    """
    Standardized error response model for all Matchboard services.

    Attributes:
        type: Error type categorization (e.g., "validation_error", "provider_error")
        message: Human-readable error message for end users
        details: Optional dictionary containing additional error context and metadata
        timestamp: ISO 8601 timestamp of when the error occurred
        request_id: Unique identifier for tracing and debugging purposes
    """

    type: str
    message: str
    details: Optional[Dict[str, Any]] = None
    timestamp: str
    request_id: str


class MatchboardAPIException(Exception):
    """
    Base exception class for all Matchboard API errors.

    Args:
        message: The error message to display to users
        details: Optional dictionary with additional error context
        error_type: Error category string (defaults to "internal_error")
        error_code: Specific error code from ErrorCode enum
        status_code: HTTP status code (defaults to 500)
        request_id: Optional request ID (taken from the logging context if not provided)
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_type: str = "internal_error",
        error_code: Optional[ErrorCode] = None,
        status_code: int = 500,
        request_id: Optional[str] = None,
    ):
        self.message = message
        self.details = details or {}
        self.error_type = error_type
        self.error_code = error_code
        self.status_code = status_code
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.request_id = request_id or _current_request_id()
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert exception to ErrorResponse, adding the error code to details."""
        details = {
            **self.details,
            **({"code": self.error_code.value} if self.error_code else {}),
        }
        return ErrorResponse(
            type=self.error_type,
            message=self.message,
            details=details if details else None,
            timestamp=self.timestamp,
            request_id=self.request_id,
        )


# Common subclasses
class ValidationError(MatchboardAPIException):
    """
    Exception for input validation errors (HTTP 422).

    Examples:
        >>> error = ValidationError(
        ...     "Unknown viewer role",
        ...     field="role",
        ...     value="speaker"
        ... )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        validation_details = details or {}
        if field:
            validation_details["field"] = field
        if value is not None:
            validation_details["value"] = str(value)
        super().__init__(
            message=message,
            details=validation_details,
            error_type="validation_error",
            error_code=ErrorCode.VALIDATION_FAILED,
            status_code=422,
        )
        self.field = field
        self.value = value


class NotFoundError(MatchboardAPIException):
    """
    Exception for resource not found errors (HTTP 404).

    Examples:
        >>> error = NotFoundError("Event", "expo-2024")
        >>> print(error.message)
        Event expo-2024 not found
    """

    def __init__(
        self,
        resource: str,
        identifier: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        if identifier:
            message = f"{resource} {identifier} not found"
        else:
            message = f"{resource} not found"
        notfound_details = {
            **(details or {}),
            "resource": resource,
            "identifier": identifier,
        }
        super().__init__(
            message=message,
            details=notfound_details,
            error_type="not_found",
            error_code=ErrorCode.NOT_FOUND,
            status_code=404,
        )
        self.resource = resource
        self.identifier = identifier


class ServiceError(MatchboardAPIException):
    """Exception for internal service errors (HTTP 502 by default)."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.SERVICE_ERROR,
        status_code: int = 502,
    ):
        super().__init__(
            message=message,
            details=details,
            error_type="service_error",
            error_code=code,
            status_code=status_code,
        )


class ProviderError(MatchboardAPIException):
    """
    Exception for external provider integration errors (HTTP 502).

    Attributes:
        provider: Name of the external provider
        response_body: Raw response body from the provider (for debugging)
        retry_after: Seconds to wait before retrying (from rate limit headers)
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.PROVIDER_ERROR,
        status_code: int = 502,
        response_body: Optional[str] = None,
        retry_after: Optional[int] = None,
    ):
        provider_details = details or {}
        if provider:
            provider_details["provider"] = provider
        if response_body:
            provider_details["response_body"] = response_body
        if retry_after is not None:
            provider_details["retry_after"] = retry_after
        super().__init__(
            message=message,
            details=provider_details,
            error_type="provider_error",
            error_code=code,
            status_code=status_code,
        )
        self.provider = provider
        self.response_body = response_body
        self.retry_after = retry_after


# Utility to convert exceptions to error responses
def exception_to_response(exc: Exception) -> ErrorResponse:
    """
    Convert any exception to a standardized ErrorResponse Pydantic model.

    1. MatchboardAPIException: Uses the built-in to_error_response() method
    2. HTTPException: Extracts detail information and normalizes format
    3. Generic Exception: Creates a safe internal error response

    Note:
        Generic exceptions keep only their type name in the details so that
        internals are not exposed to clients.
    """
    if isinstance(exc, MatchboardAPIException):
        return exc.to_error_response()
    elif isinstance(exc, HTTPException):
        # Try to extract detail
        detail = (
            exc.detail if isinstance(exc.detail, dict) else {"message": str(exc.detail)}
        )
        return ErrorResponse(
            type="http_error",
            message=detail.get("message", "HTTP error"),
            details=detail,
            timestamp=datetime.now(timezone.utc).isoformat(),
            request_id=_current_request_id(),
        )
    else:
        return ErrorResponse(
            type="internal_error",
            message="Internal server error",
            details={"error_type": type(exc).__name__},
            timestamp=datetime.now(timezone.utc).isoformat(),
            request_id=_current_request_id(),
        )


def register_matchboard_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers for FastAPI applications.

    Behavior:
        - MatchboardAPIException: Returns exception's status_code with error details
        - HTTPException: Returns exception's status_code with normalized details
        - Generic Exception: Returns 500 status with safe error message
    """
    from fastapi import Request
    from fastapi.responses import JSONResponse

    @app.exception_handler(MatchboardAPIException)
    async def matchboard_api_exception_handler(
        request: Request, exc: MatchboardAPIException
    ) -> JSONResponse:
        error_response = exc.to_error_response()
        log_http_error(
            exc.error_type,
            exc.message,
            exc.status_code,
            request_id=error_response.request_id,
            details=error_response.details,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code, content=error_response.model_dump()
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        error_response = exception_to_response(exc)
        return JSONResponse(
            status_code=exc.status_code, content=error_response.model_dump()
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            f"Unhandled exception: {type(exc).__name__}",
            path=request.url.path,
            exc_info=exc,
        )
        error_response = exception_to_response(exc)
        return JSONResponse(status_code=500, content=error_response.model_dump())
