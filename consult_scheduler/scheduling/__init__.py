from consult_scheduler.scheduling.availability import AvailabilityResolver, slice_window
from consult_scheduler.scheduling.booking import BookingOrchestrator
from consult_scheduler.scheduling.notifications import (
    NotificationMessage,
    NotificationQueue,
    NotificationWorker,
    build_confirmation,
)
from consult_scheduler.scheduling.promo import PromoCodeEngine, compute_discount
from consult_scheduler.scheduling.slot_windows import (
    BusinessHours,
    build_free_windows,
    merge_intervals,
)
from consult_scheduler.scheduling.state_machine import (
    BookingState,
    BookingStateMachine,
    BookingTrigger,
    InvalidTransitionError,
)

__all__ = [
    "AvailabilityResolver",
    "slice_window",
    "BookingOrchestrator",
    "NotificationMessage",
    "NotificationQueue",
    "NotificationWorker",
    "build_confirmation",
    "PromoCodeEngine",
    "compute_discount",
    "BusinessHours",
    "build_free_windows",
    "merge_intervals",
    "BookingState",
    "BookingStateMachine",
    "BookingTrigger",
    "InvalidTransitionError",
]
