# orderdesk/core/errors.py
"""Domain errors raised inside operations and turned into result envelopes."""

from enum import Enum


class ErrorCode(str, Enum):
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    INVALID_ARGUMENT = "invalid_argument"
    CONFLICT = "conflict"
    INTERNAL = "internal"


# HTTP status for each error kind (used by routers)
ERROR_STATUS_CODES: dict[ErrorCode, int] = {
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INVALID_ARGUMENT: 400,
    ErrorCode.CONFLICT: 409,
    ErrorCode.INTERNAL: 500,
}


class OrderDeskError(Exception):
    """Base exception for all orderdesk domain errors."""

    code: ErrorCode = ErrorCode.INTERNAL
    default_message: str = "Server error."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthorizedError(OrderDeskError):
    """Raised when no caller identity could be resolved."""

    code = ErrorCode.UNAUTHORIZED
    default_message = "You are not signed in."


class ForbiddenError(OrderDeskError):
    """Raised when the caller lacks permission (role, self-action, ownership)."""

    code = ErrorCode.FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(OrderDeskError):
    """Raised when a referenced id does not resolve."""

    code = ErrorCode.NOT_FOUND
    default_message = "Not found."


class InvalidArgumentError(OrderDeskError):
    """Raised on malformed or out-of-range input."""

    code = ErrorCode.INVALID_ARGUMENT
    default_message = "Invalid input."

    def __init__(self, message: str | None = None, allowed: list[str] | None = None):
        self.allowed = allowed
        super().__init__(message)


class ConflictError(OrderDeskError):
    """Raised when a referential guard blocks the mutation."""

    code = ErrorCode.CONFLICT
    default_message = "Conflict."


class InternalError(OrderDeskError):
    """Raised (or synthesized) for unexpected store failures."""

    code = ErrorCode.INTERNAL
