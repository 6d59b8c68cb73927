"""
Exception hierarchy for the module registry store.
Structured errors carry an error code, details and are logged on creation.
"""

import logging
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes"""

    # Configuration errors
    CONFIG_VALIDATION_ERROR = "CONFIG_VALIDATION_ERROR"
    CONFIG_MISSING_REQUIRED = "CONFIG_MISSING_REQUIRED"
    STORE_NOT_INITIALIZED = "STORE_NOT_INITIALIZED"

    # Database errors
    DATABASE_CONNECTION_ERROR = "DATABASE_CONNECTION_ERROR"
    DATABASE_QUERY_ERROR = "DATABASE_QUERY_ERROR"
    DATABASE_CONSTRAINT_VIOLATION = "DATABASE_CONSTRAINT_VIOLATION"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    FIELD_REQUIRED = "FIELD_REQUIRED"


class BaseAppException(Exception):
    """Base application exception with structured error information"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause

        super().__init__(self.message)

        self._log_exception()

    def _log_exception(self):
        """Log the exception with appropriate level"""
        logger = logging.getLogger(self.__class__.__module__)

        log_data = {
            "error_code": self.error_code.value,
            "message": self.message,
            "details": self.details,
        }

        if self.cause:
            log_data["cause"] = str(self.cause)

        if isinstance(self, ValidationError):
            logger.debug("Rejected request: %s", log_data)
        elif isinstance(self, ConfigurationError):
            logger.error("Configuration error: %s", log_data)
        else:
            logger.error("Application error: %s", log_data)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses"""
        return {
            "error_code": self.error_code.value,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(BaseAppException):
    """Configuration-related errors"""

    def __init__(self, message: str, field_name: str | None = None, **kwargs):
        details = kwargs.pop("details", {})
        if field_name:
            details["field_name"] = field_name

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.CONFIG_VALIDATION_ERROR),
            details=details,
            **kwargs
        )


class DatabaseError(BaseAppException):
    """Errors raised by a storage engine"""

    def __init__(self, message: str, operation: str | None = None, **kwargs):
        details = kwargs.pop("details", {})
        if operation:
            details["operation"] = operation

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.DATABASE_QUERY_ERROR),
            details=details,
            **kwargs
        )


class ValidationError(BaseAppException):
    """Input validation errors"""

    def __init__(
        self,
        message: str,
        field_name: str | None = None,
        field_value: Any | None = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        if field_name:
            details["field_name"] = field_name
        if field_value is not None:
            details["field_value"] = str(field_value)

        super().__init__(
            message=message,
            error_code=kwargs.pop("error_code", ErrorCode.VALIDATION_ERROR),
            details=details,
            **kwargs
        )

    @property
    def field_name(self) -> str | None:
        return self.details.get("field_name")


def is_missing(value: Any) -> bool:
    """A value counts as missing when absent, None or an empty string."""
    return value is None or value == ""


def validate_required_fields(data: dict[str, Any], required_fields: list, prefix: str = ""):
    """Validate required fields in data, failing on the first missing one.

    The error message names the field, e.g. ``namespace required.`` or
    ``gpgKeys[0].keyId required.`` when a prefix is given.
    """
    for field in required_fields:
        if is_missing(data.get(field)):
            name = f"{prefix}{field}"
            raise ValidationError(
                message=f"{name} required.",
                field_name=name,
                error_code=ErrorCode.FIELD_REQUIRED,
            )
