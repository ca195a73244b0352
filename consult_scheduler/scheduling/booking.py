"""
Booking orchestrator: validate -> re-check slot -> reserve -> confirm.

The client-supplied window is never trusted. Availability for the requested
technician is re-derived and must contain the exact slot before the
reservation call is issued. Concurrent requests for the same slot are
arbitrated by the reservation system; a conflict there surfaces as
SlotUnavailable and the caller re-selects. There is no automatic retry
with a different slot.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from consult_scheduler.errors import (
    ConflictError,
    PromoCodeExhausted,
    SlotUnavailable,
    UpstreamError,
    ValidationError,
)
from consult_scheduler.logging_context import get_request_logger, new_request_id, set_request_id
from consult_scheduler.schemas.booking_schema import BookingRequest, Reservation
from consult_scheduler.schemas.promo_schema import PromoCodeValidationResult
from consult_scheduler.scheduling.availability import AvailabilityResolver
from consult_scheduler.scheduling.notifications import NotificationQueue, build_confirmation
from consult_scheduler.scheduling.promo import PromoCodeEngine
from consult_scheduler.scheduling.state_machine import BookingStateMachine, BookingTrigger
from consult_scheduler.tools.field_service import JobRecord, ReservationSystem
from consult_scheduler.tools.services import ServiceTypeCatalog

logger = get_request_logger(__name__)


def _invalid_fields(exc: PydanticValidationError) -> list[str]:
    fields = []
    for err in exc.errors():
        name = ".".join(str(part) for part in err["loc"]) or "request"
        if name not in fields:
            fields.append(name)
    return fields


class BookingOrchestrator:
    """Top-level entry point for booking a consultation slot."""

    def __init__(
        self,
        catalog: ServiceTypeCatalog,
        resolver: AvailabilityResolver,
        reservations: ReservationSystem,
        promo_engine: Optional[PromoCodeEngine] = None,
        notifications: Optional[NotificationQueue] = None,
        business_name: str = "",
    ) -> None:
        self._catalog = catalog
        self._resolver = resolver
        self._reservations = reservations
        self._promo_engine = promo_engine
        self._notifications = notifications
        self._business_name = business_name

    async def book(self, request: Union[BookingRequest, Mapping[str, Any]]) -> Reservation:
        """Validate and reserve a slot.

        Raises:
            ValidationError: Malformed request, unknown job type, or a promo
                code that doesn't validate.
            SlotUnavailable: The slot is no longer free, or the reservation
                system reported a conflict.
            UpstreamError: A collaborator failed or timed out.
            PromoCodeExhausted: The promo code's last use was taken by a
                concurrent booking.
        """
        set_request_id(new_request_id())
        sm = BookingStateMachine()
        try:
            return await self._book(request, sm)
        finally:
            logger.info(
                "Booking finished in state %s via %s (trace: %s)",
                sm.current_state.value,
                sm.last_trigger.value if sm.last_trigger else "none",
                " -> ".join(sm.get_state_trace()),
            )

    async def _book(
        self, raw: Union[BookingRequest, Mapping[str, Any]], sm: BookingStateMachine
    ) -> Reservation:
        # RECEIVED -> VALIDATED
        request = self._parse(raw, sm)
        service_type = self._catalog.find_by_job_type(request.job_type_id)
        if service_type is None:
            sm.transition(BookingTrigger.REQUEST_INVALID, "unknown job type")
            raise ValidationError("Unknown job type", fields=["job_type_id"])

        pricing: Optional[PromoCodeValidationResult] = None
        original_price: Optional[Decimal] = None
        if request.promo_code:
            original_price, pricing = await self._price_promo(request.promo_code, sm)

        sm.transition(BookingTrigger.REQUEST_VALID)

        # VALIDATED -> SLOT_CONFIRMED
        try:
            free = await self._resolver.is_slot_available(
                service_type, request.technician_id, request.start_time, request.end_time
            )
        except UpstreamError as exc:
            sm.transition(BookingTrigger.CALENDAR_FAILED, str(exc))
            logger.error("Calendar unavailable while re-validating slot: %s", exc)
            raise
        if not free:
            sm.transition(BookingTrigger.SLOT_TAKEN)
            logger.info(
                "Requested slot %s-%s with technician %s is no longer free",
                request.start_time.isoformat(), request.end_time.isoformat(), request.technician_id,
            )
            raise SlotUnavailable(technician_id=request.technician_id)
        sm.transition(BookingTrigger.SLOT_FREE)

        # SLOT_CONFIRMED -> RESERVED
        job = await self._reserve(request, sm)

        if pricing is not None:
            await self._redeem_or_release(request.promo_code, job, sm)

        sm.transition(BookingTrigger.RESERVATION_CREATED)
        reservation = Reservation(
            id=job.id,
            technician_id=request.technician_id,
            job_type_id=request.job_type_id,
            start_time=request.start_time,
            end_time=request.end_time,
            original_price=original_price,
            discount_amount=pricing.discount_amount if pricing else None,
            final_price=pricing.final_price if pricing else None,
            promo_code=pricing.promo_code.code if pricing else None,
        )
        self._queue_confirmation(request, reservation)
        return reservation

    def _parse(
        self, raw: Union[BookingRequest, Mapping[str, Any]], sm: BookingStateMachine
    ) -> BookingRequest:
        if isinstance(raw, BookingRequest):
            return raw
        try:
            return BookingRequest.model_validate(dict(raw))
        except PydanticValidationError as exc:
            fields = _invalid_fields(exc)
            sm.transition(BookingTrigger.REQUEST_INVALID, f"invalid fields: {fields}")
            logger.info("Rejected booking request; invalid fields: %s", fields)
            raise ValidationError(fields=fields) from exc
        except TypeError as exc:
            sm.transition(BookingTrigger.REQUEST_INVALID, "malformed payload")
            raise ValidationError() from exc

    async def _price_promo(
        self, code: str, sm: BookingStateMachine
    ) -> tuple[Decimal, PromoCodeValidationResult]:
        if self._promo_engine is None:
            sm.transition(BookingTrigger.REQUEST_INVALID, "promo codes not accepted")
            raise ValidationError("Promo codes are not accepted", fields=["promo_code"])
        try:
            original_price, result = await self._promo_engine.validate_for_product(code)
        except UpstreamError as exc:
            sm.transition(BookingTrigger.PRICING_FAILED, str(exc))
            logger.error("Price lookup failed while validating promo code: %s", exc)
            raise
        if not result.valid:
            sm.transition(BookingTrigger.REQUEST_INVALID, result.error)
            raise ValidationError(result.error, fields=["promo_code"])
        return original_price, result

    async def _reserve(self, request: BookingRequest, sm: BookingStateMachine) -> JobRecord:
        try:
            return await self._reservations.create_job(
                name=request.name,
                email=request.email,
                phone=request.phone,
                start_time=request.start_time,
                end_time=request.end_time,
                technician_id=request.technician_id,
                job_type_id=request.job_type_id,
                summary=request.summary,
            )
        except ConflictError as exc:
            sm.transition(BookingTrigger.RESERVATION_CONFLICT, str(exc))
            logger.info("Reservation conflict for technician %s: %s", request.technician_id, exc)
            raise SlotUnavailable(technician_id=request.technician_id) from exc
        except UpstreamError as exc:
            sm.transition(BookingTrigger.RESERVATION_FAILED, str(exc))
            logger.error("Reservation call failed: %s", exc)
            raise
        except asyncio.TimeoutError as exc:
            sm.transition(BookingTrigger.RESERVATION_FAILED, "timeout")
            logger.error("Reservation call timed out")
            raise UpstreamError(technician_id=request.technician_id) from exc

    async def _redeem_or_release(
        self, code: str, job: JobRecord, sm: BookingStateMachine
    ) -> None:
        try:
            await self._promo_engine.redeem(code)
        except PromoCodeExhausted:
            sm.transition(BookingTrigger.PROMO_EXHAUSTED, "promo code exhausted")
            try:
                await self._reservations.cancel_job(job.id)
            except UpstreamError as cancel_exc:
                logger.error(
                    "Could not cancel job %s after promo exhaustion: %s", job.id, cancel_exc
                )
            raise

    def _queue_confirmation(self, request: BookingRequest, reservation: Reservation) -> None:
        if self._notifications is None:
            return
        message = build_confirmation(
            request, reservation, self._business_name, self._resolver.business_hours.tzinfo
        )
        if not self._notifications.publish(message):
            logger.warning("Booking %s confirmed without a queued confirmation", reservation.id)
