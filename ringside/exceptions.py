"""Custom exception hierarchy for Ringside."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Lookup errors
    USER_NOT_FOUND = "USER_NOT_FOUND"
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"
    CLUB_NOT_FOUND = "CLUB_NOT_FOUND"
    COACH_LINK_NOT_FOUND = "COACH_LINK_NOT_FOUND"
    CONNECTION_REQUEST_NOT_FOUND = "CONNECTION_REQUEST_NOT_FOUND"
    CONNECTION_NOT_FOUND = "CONNECTION_NOT_FOUND"
    MATCH_REQUEST_NOT_FOUND = "MATCH_REQUEST_NOT_FOUND"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    SELF_REQUEST = "SELF_REQUEST"
    INCOMPATIBLE_MATCH = "INCOMPATIBLE_MATCH"

    # State errors
    CONFLICT = "CONFLICT"
    INVALID_STATE = "INVALID_STATE"
    REQUEST_EXPIRED = "REQUEST_EXPIRED"

    # Auth
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    INTERNAL_ERROR = "INTERNAL_ERROR"


class RingsideException(Exception):
    """
    Base exception for all Ringside errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------

class NotFoundError(RingsideException):
    """A referenced entity does not exist."""

    entity = "Resource"
    code = ErrorCode.INTERNAL_ERROR

    def __init__(self, entity_id: str):
        super().__init__(
            f"{self.entity} not found: {entity_id}",
            self.code,
            status_code=404,
            details={"id": entity_id}
        )


class UserNotFoundError(NotFoundError):
    entity = "User"
    code = ErrorCode.USER_NOT_FOUND


class ProfileNotFoundError(NotFoundError):
    entity = "Athlete profile"
    code = ErrorCode.PROFILE_NOT_FOUND


class ClubNotFoundError(NotFoundError):
    entity = "Club"
    code = ErrorCode.CLUB_NOT_FOUND


class CoachLinkNotFoundError(NotFoundError):
    entity = "Coach link"
    code = ErrorCode.COACH_LINK_NOT_FOUND


class ConnectionRequestNotFoundError(NotFoundError):
    entity = "Connection request"
    code = ErrorCode.CONNECTION_REQUEST_NOT_FOUND


class ConnectionNotFoundError(NotFoundError):
    entity = "Connection"
    code = ErrorCode.CONNECTION_NOT_FOUND


class MatchRequestNotFoundError(NotFoundError):
    entity = "Match request"
    code = ErrorCode.MATCH_REQUEST_NOT_FOUND


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class ValidationError(RingsideException):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class SelfRequestError(RingsideException):
    """A request targets the profile that sent it."""

    def __init__(self, kind: str, profile_id: str):
        super().__init__(
            f"Cannot send a {kind} request to yourself",
            ErrorCode.SELF_REQUEST,
            status_code=400,
            details={"profile_id": profile_id}
        )


class IncompatibleMatchError(RingsideException):
    """Two athletes fall outside the matching rules."""

    def __init__(self, reason: str, **details: Any):
        super().__init__(
            reason,
            ErrorCode.INCOMPATIBLE_MATCH,
            status_code=400,
            details=details
        )


# ---------------------------------------------------------------------------
# Conflict
# ---------------------------------------------------------------------------

class ConflictError(RingsideException):
    """The operation conflicts with the current state of the data."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None,
                 error_code: ErrorCode = ErrorCode.CONFLICT):
        super().__init__(
            message,
            error_code,
            status_code=409,
            details=details
        )


class DuplicateRequestError(ConflictError):
    """A PENDING request already exists between the two profiles."""

    def __init__(self, message: str, request_id: str):
        super().__init__(message, details={"request_id": request_id})


class AlreadyConnectedError(ConflictError):
    """The two profiles are already connected."""

    def __init__(self, connection_id: Optional[str] = None):
        super().__init__(
            "You are already connected with this athlete",
            details={"connection_id": connection_id} if connection_id else None,
        )


class InvalidStateTransitionError(ConflictError):
    """A transition was attempted on a request that is no longer pending."""

    def __init__(self, kind: str, action: str, request_id: str, current_status: str):
        super().__init__(
            f"Cannot {action} a {kind} request that is {current_status.lower()}",
            details={"request_id": request_id, "status": current_status},
            error_code=ErrorCode.INVALID_STATE,
        )
        self.current_status = current_status


class RequestExpiredError(ConflictError):
    """A match request passed its deadline before it was answered."""

    def __init__(self, request_id: str):
        super().__init__(
            "This match request has expired",
            details={"request_id": request_id},
            error_code=ErrorCode.REQUEST_EXPIRED,
        )


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

class AuthenticationError(RingsideException):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class ForbiddenError(RingsideException):
    """Authenticated user lacks permission for the requested action."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
        )

