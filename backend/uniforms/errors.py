# Overview: Typed domain errors with a stable code taxonomy.

from __future__ import annotations


class UniformError(Exception):
    """Base class for every error the request engine raises on purpose."""

    code = "INTERNAL_SERVER_ERROR"
    http_status = 500
    default_message = "An unexpected error occurred."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": {"code": self.code, "message": self.message}}


class RequestValidationError(UniformError, ValueError):
    """400-level input problem or a rule that forbids the operation outright."""

    code = "VALIDATION_ERROR"
    http_status = 400
    default_message = "Request validation failed."


class NotFoundError(UniformError):
    code = "NOT_FOUND"
    http_status = 404
    default_message = "Resource not found."


class InsufficientStockError(UniformError):
    code = "INSUFFICIENT_STOCK"
    http_status = 409
    default_message = "Requested quantity exceeds available stock."


class AllowanceExceededError(UniformError):
    code = "ALLOWANCE_EXCEEDED"
    http_status = 409
    default_message = "Request exceeds allowance limit."


class CooldownActiveError(UniformError):
    code = "COOLDOWN_ACTIVE"
    http_status = 409
    default_message = "Cooldown is still active for this item."


class InvalidStatusTransitionError(UniformError):
    code = "INVALID_STATUS_TRANSITION"
    http_status = 409
    default_message = "Invalid status transition."


class IntegrityFaultError(UniformError):
    """Stored rows disagree with what the engine just wrote or expected."""

    code = "INTERNAL_SERVER_ERROR"
    http_status = 500
