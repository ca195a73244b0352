"""
Typed failures raised by the scheduling core and its collaborators.

Each error carries a stable ``error`` string that the API layer returns
verbatim to clients. Details are for logs only and never leave the process.

    ValidationError      malformed request, user-correctable
    NotFoundError        unknown service type
    SlotUnavailable      slot taken or stale, caller must re-select
    UpstreamError        collaborator failed or timed out, safe to retry
    UpstreamUnavailable  calendar source could not be reached
    ConflictError        reservation system rejected an overlapping job
    PromoCodeExhausted   redemption lost the race for the last use
"""

from typing import Any, Optional


class SchedulingError(Exception):
    """Base class for all scheduling failures."""

    error: str = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None, **details: Any) -> None:
        if message is not None:
            self.error = message
        self.details = details
        super().__init__(self.error)


class ValidationError(SchedulingError):
    """Missing or malformed request fields."""

    error = "Missing required information"

    def __init__(
        self,
        message: Optional[str] = None,
        fields: Optional[list[str]] = None,
        **details: Any,
    ) -> None:
        self.fields = fields or []
        super().__init__(message, **details)


class NotFoundError(SchedulingError):
    error = "Service type not found"


class SlotUnavailable(SchedulingError):
    error = "This time slot is no longer available. Please choose another time."


class UpstreamError(SchedulingError):
    error = "We couldn't reach our scheduling system. Please try again later."


class UpstreamUnavailable(UpstreamError):
    error = "Technician calendar is temporarily unavailable."


class ConflictError(SchedulingError):
    error = "Technician already has an appointment at this time."


class PromoCodeExhausted(SchedulingError):
    error = "This promo code has reached its usage limit."
