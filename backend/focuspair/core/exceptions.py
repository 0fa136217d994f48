# backend/focuspair/core/exceptions.py
"""
Domain-specific exceptions for the FocusPair booking engine.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


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

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException using the class status code."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when a conditional write's precondition no longer holds."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class SessionNotFoundException(NotFoundException):
    """Raised when a referenced session does not exist."""

    def __init__(self, session_id: str):
        super().__init__(
            message="Session not found or no longer available",
            code="SESSION_NOT_FOUND",
            details={"session_id": session_id},
        )


class SessionConflictException(ConflictException):
    """Raised when a session was claimed, changed, or duplicates an existing booking."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This session is no longer available",
            code="SESSION_CONFLICT",
            details=details or {},
        )


class InvalidTimeException(ValidationException):
    """Raised when a requested instant violates a temporal invariant."""

    def __init__(self, message: str, *, requested: Optional[datetime] = None):
        super().__init__(
            message=message,
            code="INVALID_TIME",
            details={"requested": requested.isoformat()} if requested else {},
        )


class IneligibleException(ForbiddenException):
    """Raised when the requester fails the external eligibility check."""

    def __init__(self, reason: str, message: Optional[str] = None):
        super().__init__(
            message=message or "You are not eligible to book sessions",
            code="INELIGIBLE",
            details={"reason": reason},
        )


class NotParticipantException(ForbiddenException):
    """Raised when the caller is not a participant of the session."""

    def __init__(self, session_id: str, action: str = "access"):
        super().__init__(
            message=f"Not authorized to {action} this session",
            code="NOT_PARTICIPANT",
            details={"session_id": session_id},
        )


class CancellationWindowClosedException(BusinessRuleException):
    """Raised when cancelling too close to the session start."""

    def __init__(self, required_minutes: int, remaining_minutes: float):
        super().__init__(
            message=f"Sessions can only be cancelled more than {required_minutes} minutes before start",
            code="TOO_LATE",
            details={
                "required_minutes": required_minutes,
                "remaining_minutes": round(remaining_minutes, 2),
            },
        )


class SessionAlreadyTerminalException(ConflictException):
    """Raised when acting on a session that is cancelled, completed or no-show."""

    def __init__(self, session_id: str, current_status: str):
        super().__init__(
            message=f"Session is already {current_status}",
            code="ALREADY_TERMINAL",
            details={"session_id": session_id, "status": current_status},
        )


class JoinWindowNotOpenException(BusinessRuleException):
    """Raised when joining before the join window opens."""

    def __init__(self, opens_at: datetime):
        super().__init__(
            message="Session has not started yet",
            code="NOT_YET_JOINABLE",
            details={"opens_at": opens_at.isoformat()},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
