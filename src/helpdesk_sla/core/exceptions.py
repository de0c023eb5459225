"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries.
"""

from datetime import datetime
from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationException(ApplicationException):
    """Exception for validation errors."""


class InvalidTimeRangeException(ValidationException):
    """Raised when the end of a measured interval precedes its start."""

    def __init__(
        self,
        start: datetime,
        end: datetime,
        details: Optional[dict] = None
    ):
        self.start = start
        self.end = end
        super().__init__(
            f"end {end.isoformat()} precedes start {start.isoformat()}",
            details or {"start": start.isoformat(), "end": end.isoformat()}
        )


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""

