"""
Availability resolution: which consultation slots can actually be booked.

For every technician eligible for a service type, busy time is fetched from
the calendar source, turned into free windows, and sliced into consecutive
slots of exactly the service's duration. Slots are grouped by local date.

A technician whose calendar cannot be read is dropped from the result; the
rest of the query still succeeds.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable, Iterator, Optional

from consult_scheduler.errors import UpstreamError, UpstreamUnavailable
from consult_scheduler.schemas.scheduling_schema import (
    DateEntry,
    ServiceTypeMapping,
    Slot,
    TimeWindow,
)
from consult_scheduler.scheduling.slot_windows import BusinessHours, build_free_windows
from consult_scheduler.tools.field_service import CalendarSource
from consult_scheduler.tools.services import ServiceTypeCatalog
from consult_scheduler.tools.technicians import Technician, TechnicianDirectory

if TYPE_CHECKING:
    from consult_scheduler.config import AvailabilityConfig

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def slice_window(window: TimeWindow, duration: timedelta, technician_id: str) -> Iterator[Slot]:
    """Cut a free window into back-to-back slots; any remainder is discarded."""
    cursor = window.start
    while cursor + duration <= window.end:
        yield Slot(start=cursor, end=cursor + duration, technician_id=technician_id)
        cursor += duration


class AvailabilityResolver:
    """Resolves bookable slots for a service type across eligible technicians."""

    def __init__(
        self,
        calendar: CalendarSource,
        technicians: TechnicianDirectory,
        catalog: ServiceTypeCatalog,
        business_hours: BusinessHours,
        config: AvailabilityConfig,
        clock: Clock = utc_now,
    ) -> None:
        self._calendar = calendar
        self._technicians = technicians
        self._catalog = catalog
        self._hours = business_hours
        self._config = config
        self._clock = clock

    @property
    def business_hours(self) -> BusinessHours:
        return self._hours

    def default_range(self) -> tuple[datetime, datetime]:
        """Start of today through the end of the lookahead period, in business time."""
        today = self._hours.local_date(self._clock())
        range_start, _ = self._hours.day_bounds(today)
        last_day = today + timedelta(days=self._config.lookahead_days - 1)
        _, range_end = self._hours.day_bounds(last_day)
        return range_start, range_end

    async def availability_for(
        self,
        external_service_id: str,
        range_start: Optional[datetime] = None,
        range_end: Optional[datetime] = None,
    ) -> list[DateEntry]:
        """Resolve slots for a service id. Raises NotFoundError for unknown ids."""
        service_type = self._catalog.get_service_type(external_service_id)
        if range_start is None or range_end is None:
            default_start, default_end = self.default_range()
            range_start = range_start or default_start
            range_end = range_end or default_end
        return await self.resolve(service_type, range_start, range_end)

    async def resolve(
        self, service_type: ServiceTypeMapping, range_start: datetime, range_end: datetime
    ) -> list[DateEntry]:
        """Return bookable slots grouped by date, dates and slots ascending."""
        technicians = await self._technicians.eligible_for(service_type)
        if not technicians:
            logger.warning("No technicians eligible for '%s'", service_type.label)
            return []

        per_technician = await asyncio.gather(
            *(
                self._technician_slots(service_type, tech, range_start, range_end, strict=False)
                for tech in technicians
            )
        )

        buckets: dict[date, dict[tuple, Slot]] = defaultdict(dict)
        for slots in per_technician:
            for slot in slots:
                buckets[self._hours.local_date(slot.start)].setdefault(slot.key, slot)

        entries = [
            DateEntry(
                date=day,
                slots=sorted(by_key.values(), key=lambda s: (s.start, s.technician_id)),
            )
            for day, by_key in sorted(buckets.items())
            if by_key
        ]
        logger.info(
            "Resolved %d slots over %d dates for '%s' from %d technicians",
            sum(len(e.slots) for e in entries), len(entries), service_type.label, len(technicians),
        )
        return entries

    async def is_slot_available(
        self,
        service_type: ServiceTypeMapping,
        technician_id: str,
        start: datetime,
        end: datetime,
    ) -> bool:
        """Re-derive one technician's slots for the local day of ``start`` and check membership.

        Only slots inside the advertised range (``default_range``) can match.
        Calendar failures propagate as UpstreamUnavailable here: a slot can't be
        confirmed without data.
        """
        range_start, range_end = self.default_range()
        if start < range_start or end > range_end:
            logger.info(
                "Requested slot %s-%s is outside the bookable range %s-%s",
                start.isoformat(), end.isoformat(), range_start.isoformat(), range_end.isoformat(),
            )
            return False

        technicians = await self._technicians.eligible_for(service_type)
        technician = next((t for t in technicians if t.id == technician_id), None)
        if technician is None:
            logger.info("Technician %s is not eligible for '%s'", technician_id, service_type.label)
            return False

        day_start, day_end = self._hours.day_bounds(self._hours.local_date(start))
        slots = await self._technician_slots(service_type, technician, day_start, day_end, strict=True)
        wanted = (start.astimezone(timezone.utc), end.astimezone(timezone.utc), technician_id)
        return any(slot.key == wanted for slot in slots)

    async def _technician_slots(
        self,
        service_type: ServiceTypeMapping,
        technician: Technician,
        range_start: datetime,
        range_end: datetime,
        strict: bool,
    ) -> list[Slot]:
        # Slice on whole local days so every range sees the same slot grid.
        day_start, _ = self._hours.day_bounds(self._hours.local_date(range_start))
        _, day_end = self._hours.day_bounds(self._hours.local_date(range_end))
        try:
            busy = await self._calendar.get_busy_intervals(technician.id, day_start, day_end)
        except (UpstreamError, asyncio.TimeoutError) as exc:
            if strict:
                raise UpstreamUnavailable(technician_id=technician.id) from exc
            logger.warning(
                "Calendar unavailable for technician %s (%s); excluding from availability",
                technician.id, exc,
            )
            return []

        duration = service_type.duration
        earliest = self._clock() + timedelta(minutes=self._config.min_lead_minutes)
        windows = build_free_windows(busy, day_start, day_end, self._hours, duration)
        lower = max(range_start, earliest)
        return [
            slot
            for window in windows
            for slot in slice_window(window, duration, technician.id)
            if slot.start >= lower and slot.end <= range_end
        ]
