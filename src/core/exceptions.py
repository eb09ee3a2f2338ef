"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

Only input validation is allowed to abort an analytics run. Feed failures are
raised inside the event client and turned into a fetch stop reason by the
pagination loop, so they never reach the API boundary.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class MissingInputException(ValidationException):
    """A required analytics input (credentials, account, window) is absent."""

    def __init__(self, field_name: str, details: Optional[dict] = None):
        self.field_name = field_name
        super().__init__(
            f"Missing required parameter: {field_name}",
            details or {"field": field_name}
        )


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class EventFeedException(ExternalServiceException):
    """Exception for CRM event feed failures on a single page."""

    def __init__(
        self,
        message: str,
        page: int,
        status_code: Optional[int] = None,
        details: Optional[dict] = None
    ):
        self.page = page
        self.status_code = status_code
        super().__init__(
            "Event Feed",
            message,
            details or {"page": page, "status_code": status_code}
        )
