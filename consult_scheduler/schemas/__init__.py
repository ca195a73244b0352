from consult_scheduler.schemas.booking_schema import BookingRequest, Reservation
from consult_scheduler.schemas.promo_schema import (
    PromoCode,
    PromoCodeType,
    PromoCodeValidationResult,
)
from consult_scheduler.schemas.scheduling_schema import (
    DateEntry,
    ServiceTypeMapping,
    Slot,
    TimeWindow,
)

__all__ = [
    "BookingRequest",
    "Reservation",
    "PromoCode",
    "PromoCodeType",
    "PromoCodeValidationResult",
    "DateEntry",
    "ServiceTypeMapping",
    "Slot",
    "TimeWindow",
]
