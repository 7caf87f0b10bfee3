"""
Common utilities and configurations for Matchboard services.
"""

from services.common.http_errors import (
    ErrorCode,
    ErrorResponse,
    MatchboardAPIException,
    NotFoundError,
    ProviderError,
    ServiceError,
    ValidationError,
    exception_to_response,
    register_matchboard_exception_handlers,
)
from services.common.logging_config import get_logger, setup_service_logging

__all__ = [
    "ErrorCode",
    "ErrorResponse",
    "MatchboardAPIException",
    "NotFoundError",
    "ProviderError",
    "ServiceError",
    "ValidationError",
    "exception_to_response",
    "get_logger",
    "register_matchboard_exception_handlers",
    "setup_service_logging",
]
