"""Error taxonomy shared by the engine, the services and the HTTP layer.

Every error carries a stable machine-readable ``kind`` plus a human message.
The HTTP layer maps ``status_code`` directly onto the response.
"""

from typing import Optional


class CarebookError(Exception):
    """Base class for errors surfaced to API callers."""

    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        error = {"message": self.message, "code": self.kind}
        if self.field:
            error["field"] = self.field
        return error


class ValidationError(CarebookError):
    """Malformed or out-of-range input, raised before any store access."""

    kind = "validation_error"
    status_code = 400


class NotFoundError(CarebookError):
    """Unknown provider, patient or booking id."""

    kind = "not_found"
    status_code = 404

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")
        self.resource = resource


class ConflictReason:
    OVERLAP = "overlap"
    NOTICE_PERIOD = "notice_period"
    BOOKING_HORIZON = "booking_horizon"
    ALREADY_CANCELLED = "already_cancelled"
    INVALID_TRANSITION = "invalid_transition"
    DUPLICATE = "duplicate"


class ConflictError(CarebookError):
    """Overlap, notice-period or horizon violation, double cancel."""

    kind = "conflict"
    status_code = 409

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.reason = reason

    def to_dict(self) -> dict:
        error = super().to_dict()
        if self.reason:
            error["reason"] = self.reason
        return error


def error_body(error: dict) -> dict:
    """Envelope shared by every error response."""
    return {"success": False, "error": error}


INTERNAL_ERROR = {"message": "Internal server error", "code": "internal_error"}
