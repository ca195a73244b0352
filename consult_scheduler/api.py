"""
Client-facing operations, returned as (status, JSON-ready body) pairs.

Every failure body has the shape ``{"success": False, "error": <message>}``
where the message is the stable string carried by the raised error. Error
details stay in the logs.
"""

import logging
from collections.abc import Mapping
from typing import Any

from consult_scheduler.errors import (
    NotFoundError,
    PromoCodeExhausted,
    SchedulingError,
    SlotUnavailable,
    UpstreamError,
    ValidationError,
)
from consult_scheduler.scheduling.availability import AvailabilityResolver
from consult_scheduler.scheduling.booking import BookingOrchestrator
from consult_scheduler.scheduling.promo import PromoCodeEngine
from consult_scheduler.tools.services import ServiceTypeCatalog

logger = logging.getLogger(__name__)

NO_APPOINTMENTS = "No appointments available right now. Please try again later."
PROMO_CODE_REQUIRED = "Promo code is required"

Response = tuple[int, dict[str, Any]]

_STATUS_BY_ERROR: tuple[tuple[type[SchedulingError], int], ...] = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (SlotUnavailable, 409),
    (PromoCodeExhausted, 409),
    (UpstreamError, 502),
)


def error_response(exc: SchedulingError) -> Response:
    """Map a scheduling error to its status code and client body."""
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status, {"success": False, "error": exc.error}
    return 500, {"success": False, "error": SchedulingError.error}


class SchedulingApi:
    """Thin request/response layer over the scheduling services."""

    def __init__(
        self,
        catalog: ServiceTypeCatalog,
        resolver: AvailabilityResolver,
        orchestrator: BookingOrchestrator,
        promo_engine: PromoCodeEngine,
        currency: str = "USD",
    ) -> None:
        self._catalog = catalog
        self._resolver = resolver
        self._orchestrator = orchestrator
        self._promo_engine = promo_engine
        self._currency = currency

    def list_service_types(self) -> Response:
        services = [
            {
                "id": s.external_service_id,
                "label": s.label,
                "description": s.description,
                "duration_ms": s.duration_ms,
                "job_type_id": s.job_type_id,
            }
            for s in self._catalog.get_all_services()
        ]
        return 200, {"success": True, "data": services}

    async def get_availability(self, service_id: str) -> Response:
        try:
            entries = await self._resolver.availability_for(service_id)
        except SchedulingError as exc:
            return error_response(exc)

        if not entries:
            logger.info("No availability found for service %s", service_id)
            return 200, {"success": False, "error": NO_APPOINTMENTS}
        return 200, {
            "success": True,
            "data": [entry.model_dump(mode="json") for entry in entries],
        }

    async def submit_booking(self, payload: Mapping[str, Any]) -> Response:
        try:
            reservation = await self._orchestrator.book(payload)
        except SchedulingError as exc:
            status, body = error_response(exc)
            if isinstance(exc, ValidationError) and exc.fields:
                body["fields"] = exc.fields
            return status, body
        body = {"success": True, **reservation.model_dump(mode="json", exclude_none=True)}
        if reservation.original_price is not None:
            body["currency"] = self._currency
        return 200, body

    async def validate_promo_code(self, payload: Mapping[str, Any]) -> Response:
        code = payload.get("code") if isinstance(payload, Mapping) else None
        if not isinstance(code, str) or not code.strip():
            return 400, {"success": False, "error": PROMO_CODE_REQUIRED}

        try:
            original_price, result = await self._promo_engine.validate_for_product(code)
        except SchedulingError as exc:
            return error_response(exc)

        body = result.model_dump(mode="json", exclude_none=True)
        body["original_price"] = str(original_price)
        body["currency"] = self._currency
        return 200, body
