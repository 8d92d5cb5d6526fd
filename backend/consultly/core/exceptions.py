# backend/consultly/core/exceptions.py
"""
Domain-specific exceptions for the Consultly platform.

Services raise these; the API layer turns them into HTTP responses through
``to_http_exception`` (see the handler registered in ``main.py``). Messages
are shown to end users directly, so they must stay human readable.
"""

from __future__ import annotations

from typing import Any, Dict, NoReturn, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "code": self.code, "details": self.details}

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.to_dict())


class ValidationException(DomainException):
    """Raised when request data fails business validation."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class InvalidStateException(DomainException):
    """Raised when a booking transition is attempted from an incompatible status."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        *,
        current_status: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        merged = dict(details or {})
        if current_status is not None:
            merged["current_status"] = current_status
        super().__init__(message=message, code="INVALID_STATE", details=merged)


class UnauthorizedException(DomainException):
    """Raised when the caller is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when the caller lacks ownership or role for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message or "An error occurred processing your request",
            "code": self.code,
            "details": self.details,
        }


# Specific business exceptions


class BookingConflictException(ConflictException):
    """Raised when a booking overlaps a live booking for the same teacher."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot is already booked",
            code="BOOKING_CONFLICT",
            details=details or {},
        )


class CalendarConflictException(ConflictException):
    """Raised when a booking overlaps a busy event on the teacher's external calendar."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "The teacher is busy at this time",
            code="CALENDAR_CONFLICT",
            details=details or {},
        )


class CalendarAuthExpiredException(UnauthorizedException):
    """Raised when the external calendar token could not be refreshed."""

    def __init__(self, teacher_profile_id: str):
        super().__init__(
            message="Google Calendar connection has expired, please reconnect",
            code="CALENDAR_AUTH_EXPIRED",
            details={"teacher_profile_id": teacher_profile_id},
        )


class CalendarSyncException(ServiceException):
    """Raised when fetching busy events from the external calendar fails."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="CALENDAR_SYNC_FAILED", details=details or {})


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    Used when data access operations fail, such as connection issues,
    query failures, or constraint violations.
    """


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    raise exc.to_http_exception()
