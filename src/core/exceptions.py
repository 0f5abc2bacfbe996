"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Validation errors (400)
    INVALID_REQUEST = "INVALID_REQUEST"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_SESSION = "INVALID_SESSION"
    INVITE_REDEMPTION_FAILED = "INVITE_REDEMPTION_FAILED"

    # Authorization errors (403)
    FORBIDDEN = "FORBIDDEN"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    ORIGIN_REJECTED = "ORIGIN_REJECTED"

    # Not found errors (404)
    INVITE_NOT_FOUND = "INVITE_NOT_FOUND"
    WAITLIST_ENTRY_NOT_FOUND = "WAITLIST_ENTRY_NOT_FOUND"

    # Conflict errors (409)
    DUPLICATE_USER = "DUPLICATE_USER"
    DUPLICATE_WAITLIST_ENTRY = "DUPLICATE_WAITLIST_ENTRY"
    INVALID_WAITLIST_TRANSITION = "INVALID_WAITLIST_TRANSITION"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500/503)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    ONBOARDING_TYPE_NOT_FOUND = "ONBOARDING_TYPE_NOT_FOUND"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        self.headers = headers
        super().__init__(self.message)


class InvalidRequestError(AppException):
    """Malformed or missing request fields."""

    def __init__(self, message: str = "Invalid request") -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_REQUEST,
            message=message,
            status_code=400,
        )


class PermissionDeniedError(AppException):
    """Base for RBAC failures.

    Callers distinguish the two subtypes: ``AuthenticationError`` (no user, 401)
    and ``InsufficientPermissionsError`` (user lacks the role, 403).
    """


class AuthenticationError(PermissionDeniedError):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Unauthorized",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


class InsufficientPermissionsError(PermissionDeniedError):
    """User does not have sufficient permissions."""

    def __init__(self, required_role: str = "admin") -> None:
        super().__init__(
            error_code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            message="Forbidden",
            status_code=403,
            details={"required_role": required_role},
        )


class AuthorizationError(AppException):
    """Authorization failed."""

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(
            error_code=ErrorCode.FORBIDDEN,
            message=message,
            status_code=403,
        )


class OriginRejectedError(AppException):
    """Request origin is not on the allow-list."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.ORIGIN_REJECTED,
            message="Request forbidden",
            status_code=403,
        )


class InviteRedemptionError(AppException):
    """Invite could not be redeemed.

    The message is identical for every underlying reason so the response does
    not confirm whether a slug exists. The reason is for server-side logs only.
    """

    def __init__(self, reason: str = "") -> None:
        self.reason = reason
        super().__init__(
            error_code=ErrorCode.INVITE_REDEMPTION_FAILED,
            message="Invalid or expired invite",
            status_code=401,
        )


class InviteNotFoundError(AppException):
    """Invite not found."""

    def __init__(self, invite_id: str = "") -> None:
        super().__init__(
            error_code=ErrorCode.INVITE_NOT_FOUND,
            message="Invite not found",
            status_code=404,
            details={"invite_id": invite_id} if invite_id else None,
        )


class WaitlistEntryNotFoundError(AppException):
    """Waitlist entry not found."""

    def __init__(self, waitlist_id: str = "") -> None:
        super().__init__(
            error_code=ErrorCode.WAITLIST_ENTRY_NOT_FOUND,
            message="Waitlist entry not found",
            status_code=404,
            details={"waitlist_id": waitlist_id} if waitlist_id else None,
        )


class DuplicateWaitlistEntryError(AppException):
    """Email is already registered on the waitlist."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(
            error_code=ErrorCode.DUPLICATE_WAITLIST_ENTRY,
            message="Email already registered",
            status_code=409,
        )


class DuplicateUserError(AppException):
    """A user with this email already exists."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(
            error_code=ErrorCode.DUPLICATE_USER,
            message="User already exists",
            status_code=409,
        )


class InvalidWaitlistTransitionError(AppException):
    """Waitlist entry is not in a state that allows the requested transition."""

    def __init__(self, waitlist_id: str, current_status: str, target_status: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_WAITLIST_TRANSITION,
            message=f"Cannot move waitlist entry from {current_status} to {target_status}",
            status_code=409,
            details={
                "waitlist_id": waitlist_id,
                "current_status": current_status,
                "target_status": target_status,
            },
        )


class RateLimitExceededError(AppException):
    """Too many requests for a rate-limit category."""

    def __init__(self, category: str, headers: dict[str, str]) -> None:
        super().__init__(
            error_code=ErrorCode.RATE_LIMIT_EXCEEDED,
            message="Too many requests. Please try again later.",
            status_code=429,
            details={"category": category},
            headers=headers,
        )


class OnboardingTypeNotFoundError(AppException):
    """Onboarding reference data is missing."""

    def __init__(self, name: str) -> None:
        super().__init__(
            error_code=ErrorCode.ONBOARDING_TYPE_NOT_FOUND,
            message=f"Onboarding type not found: {name}",
            status_code=500,
            details={"name": name},
        )


class ServiceUnavailableError(AppException):
    """Feature is disabled by configuration."""

    def __init__(self, message: str = "Service unavailable") -> None:
        super().__init__(
            error_code=ErrorCode.SERVICE_UNAVAILABLE,
            message=message,
            status_code=503,
        )
