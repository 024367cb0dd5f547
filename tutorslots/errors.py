# tutorslots/errors.py
"""
Scheduling errors.

Every failure the core can report to a caller is one of these.
Nothing here is retried by the core; retry policy belongs to the caller.
"""

from typing import Any, Optional

from fastapi import status


class SchedulingError(Exception):
    """Base class for all scheduling errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


class ValidationError(SchedulingError):
    """Malformed input: bad date format, non-positive duration, missing field."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthorizationError(SchedulingError):
    """Actor is not allowed to touch this session group or booking."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(SchedulingError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(SchedulingError):
    """Duplicate group, holiday, slot already taken, lock held elsewhere."""

    status_code = status.HTTP_409_CONFLICT


class ConfigurationError(SchedulingError):
    """Caller bug: a required identifier or input was not supplied."""


class LockUnavailableError(SchedulingError):
    """Lock store unreachable; bookings are refused rather than run unguarded."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
