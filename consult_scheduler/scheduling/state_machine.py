"""
Finite state machine for a single booking request.

Every booking moves through RECEIVED -> VALIDATED -> SLOT_CONFIRMED ->
RESERVED, or exits to REJECTED from any non-terminal state with the reason
recorded. The orchestrator drives the machine; transitions it doesn't
define are programming errors and raise immediately.

Usage:
    sm = BookingStateMachine()
    sm.transition(BookingTrigger.REQUEST_VALID)
    assert sm.current_state == BookingState.VALIDATED
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class BookingState(str, Enum):
    """All possible states of a booking request."""
    RECEIVED = "received"
    VALIDATED = "validated"
    SLOT_CONFIRMED = "slot_confirmed"
    RESERVED = "reserved"
    REJECTED = "rejected"


class BookingTrigger(str, Enum):
    """Events that cause state transitions."""
    REQUEST_VALID = "request_valid"
    REQUEST_INVALID = "request_invalid"
    PRICING_FAILED = "pricing_failed"
    SLOT_FREE = "slot_free"
    SLOT_TAKEN = "slot_taken"
    CALENDAR_FAILED = "calendar_failed"
    RESERVATION_CREATED = "reservation_created"
    RESERVATION_CONFLICT = "reservation_conflict"
    RESERVATION_FAILED = "reservation_failed"
    PROMO_EXHAUSTED = "promo_exhausted"


@dataclass
class Transition:
    """A single valid state transition."""
    from_state: BookingState
    to_state: BookingState
    trigger: BookingTrigger


@dataclass
class StateEntry:
    """Recorded history entry for a state visit."""
    state: BookingState
    entered_at: datetime
    trigger: Optional[BookingTrigger] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current state."""


class BookingStateMachine:
    """Deterministic state machine for one booking attempt."""

    TRANSITIONS: list[Transition] = [
        # --- Request validation ---
        Transition(BookingState.RECEIVED, BookingState.VALIDATED,
                   BookingTrigger.REQUEST_VALID),
        Transition(BookingState.RECEIVED, BookingState.REJECTED,
                   BookingTrigger.REQUEST_INVALID),
        Transition(BookingState.RECEIVED, BookingState.REJECTED,
                   BookingTrigger.PRICING_FAILED),

        # --- Slot re-validation ---
        Transition(BookingState.VALIDATED, BookingState.SLOT_CONFIRMED,
                   BookingTrigger.SLOT_FREE),
        Transition(BookingState.VALIDATED, BookingState.REJECTED,
                   BookingTrigger.SLOT_TAKEN),
        Transition(BookingState.VALIDATED, BookingState.REJECTED,
                   BookingTrigger.CALENDAR_FAILED),

        # --- Reservation ---
        Transition(BookingState.SLOT_CONFIRMED, BookingState.RESERVED,
                   BookingTrigger.RESERVATION_CREATED),
        Transition(BookingState.SLOT_CONFIRMED, BookingState.REJECTED,
                   BookingTrigger.RESERVATION_CONFLICT),
        Transition(BookingState.SLOT_CONFIRMED, BookingState.REJECTED,
                   BookingTrigger.RESERVATION_FAILED),
        Transition(BookingState.SLOT_CONFIRMED, BookingState.REJECTED,
                   BookingTrigger.PROMO_EXHAUSTED),
    ]

    def __init__(self) -> None:
        self._current_state = BookingState.RECEIVED
        self._history: list[StateEntry] = [
            StateEntry(state=BookingState.RECEIVED, entered_at=datetime.now(timezone.utc))
        ]
        self._rejection_reason: Optional[str] = None

    @property
    def current_state(self) -> BookingState:
        return self._current_state

    @property
    def rejection_reason(self) -> Optional[str]:
        return self._rejection_reason

    @property
    def last_trigger(self) -> Optional[BookingTrigger]:
        return self._history[-1].trigger

    def transition(self, trigger: BookingTrigger, reason: Optional[str] = None) -> BookingState:
        """
        Execute a state transition.

        Args:
            trigger: The event triggering the transition.
            reason: Why the request was rejected, for REJECTED transitions.

        Returns:
            The new booking state.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        for t in self.TRANSITIONS:
            if t.from_state == self._current_state and t.trigger == trigger:
                old_state = self._current_state
                self._current_state = t.to_state

                self._history.append(StateEntry(
                    state=self._current_state,
                    entered_at=datetime.now(timezone.utc),
                    trigger=trigger,
                ))

                if t.to_state == BookingState.REJECTED:
                    self._rejection_reason = reason or trigger.value

                logger.debug(
                    "Booking transition: %s -> %s (trigger: %s)",
                    old_state.value, self._current_state.value, trigger.value,
                )
                return self._current_state

        valid = [t.value for t in self.get_valid_triggers()]
        raise InvalidTransitionError(
            f"No valid transition from '{self._current_state.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    def get_valid_triggers(self) -> list[BookingTrigger]:
        """Return all triggers valid from the current state."""
        return [t.trigger for t in self.TRANSITIONS if t.from_state == self._current_state]

    def get_history(self) -> list[StateEntry]:
        """Return the full state transition history."""
        return list(self._history)

    def get_state_trace(self) -> list[str]:
        """Return ordered list of state names visited."""
        return [entry.state.value for entry in self._history]

    def is_terminal(self) -> bool:
        return self._current_state in (BookingState.RESERVED, BookingState.REJECTED)
