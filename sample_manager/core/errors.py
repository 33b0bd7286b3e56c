"""
Custom error classes with structured logging and error propagation.

All errors include correlation context and structured data for observability.

Taxonomy:
    DecodeError       - malformed or empty audio input, not retried
    CacheUnavailable  - storage medium failure, caller may retry after backoff
    ValidationError   - out-of-range parameter, rejected immediately
"""

from typing import Optional, Dict, Any
from sample_manager.common.logging import get_logger
from sample_manager.common.logging.correlation import get_correlation_id, get_sample_id

logger = get_logger(__name__)


class SampleManagerError(Exception):
    """
    Base error class for all application errors.

    Automatically logs errors with correlation context when raised.
    """

    log_level = "error"

    def __init__(
        self,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        """
        Initialize error with structured context.

        Args:
            message: Human-readable error message
            data: Structured data for observability
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.data = data or {}
        self.cause = cause

        self.correlation_id = get_correlation_id()
        self.sample_id = get_sample_id()

        self._log_error()

    def _log_error(self):
        """Log error with structured data."""
        log_data = {
            "error_type": self.__class__.__name__,
            "correlation_id": self.correlation_id,
            "sample_id": self.sample_id,
            **self.data,
        }

        if self.cause:
            log_data["cause"] = str(self.cause)

        log = getattr(logger, self.log_level)
        log(self.message, data=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "data": self.data,
            "correlation_id": self.correlation_id,
            "sample_id": self.sample_id,
            "cause": str(self.cause) if self.cause else None,
        }


# Audio processing errors
class AudioProcessingError(SampleManagerError):
    """Error during audio processing."""
    pass


class DecodeError(AudioProcessingError):
    """Input cannot be interpreted as audio (empty, wrong shape, undecodable bytes)."""
    pass


# Cache errors
class CacheError(SampleManagerError):
    """Error accessing cache."""
    pass


class CacheUnavailable(CacheError):
    """Underlying storage medium failed. Never reported as a cache miss."""
    pass


# Configuration errors
class ConfigurationError(SampleManagerError):
    """Error in configuration."""
    pass


# Validation errors
class ValidationError(SampleManagerError, ValueError):
    """Caller passed an out-of-range parameter."""

    log_level = "warning"
