"""
Free-window construction from a technician's busy intervals.

Busy intervals are merged, clipped to the requested range, and subtracted
from the business-hours window of every local calendar day in the range.
The result is ordered, non-overlapping, contained in business hours, and
expressed in UTC.

Usage:
    hours = BusinessHours(timezone="America/Chicago", open_time=time(8), close_time=time(17))
    windows = build_free_windows(busy, start, end, hours, min_duration=timedelta(minutes=30))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import TYPE_CHECKING, Iterable, Iterator
from zoneinfo import ZoneInfo

from consult_scheduler.schemas.scheduling_schema import TimeWindow
from consult_scheduler.utils import require_aware

if TYPE_CHECKING:
    from consult_scheduler.config import BusinessHoursConfig

logger = logging.getLogger(__name__)

WEEKDAYS = frozenset(range(5))


@dataclass(frozen=True)
class BusinessHours:
    """Recurring daily opening window in a fixed timezone."""

    timezone: str
    open_time: time
    close_time: time
    weekdays: frozenset[int] = WEEKDAYS

    def __post_init__(self) -> None:
        if self.open_time >= self.close_time:
            raise ValueError(
                f"open_time must be before close_time, got {self.open_time} >= {self.close_time}"
            )

    @classmethod
    def from_config(cls, config: BusinessHoursConfig) -> BusinessHours:
        return cls(
            timezone=config.timezone,
            open_time=datetime.strptime(config.open_time, "%H:%M").time(),
            close_time=datetime.strptime(config.close_time, "%H:%M").time(),
            weekdays=config.weekday_set,
        )

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def local_date(self, instant: datetime) -> date:
        return instant.astimezone(self.tzinfo).date()

    def day_bounds(self, day: date) -> tuple[datetime, datetime]:
        """Return the local midnight-to-midnight range for ``day``."""
        tz = self.tzinfo
        start = datetime.combine(day, time.min, tzinfo=tz)
        end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
        return start, end

    def windows_between(self, range_start: datetime, range_end: datetime) -> Iterator[TimeWindow]:
        """Yield each day's opening window clipped to ``[range_start, range_end)``."""
        tz = self.tzinfo
        day = self.local_date(range_start)
        last_day = self.local_date(range_end)
        while day <= last_day:
            if day.weekday() in self.weekdays:
                opens = max(datetime.combine(day, self.open_time, tzinfo=tz), range_start)
                closes = min(datetime.combine(day, self.close_time, tzinfo=tz), range_end)
                if opens < closes:
                    yield TimeWindow(start=opens, end=closes)
            day += timedelta(days=1)


def merge_intervals(
    intervals: Iterable[TimeWindow], range_start: datetime, range_end: datetime
) -> list[TimeWindow]:
    """Clip intervals to the range and merge overlapping or adjacent ones."""
    clipped = sorted(
        (
            (max(w.start, range_start), min(w.end, range_end))
            for w in intervals
            if w.start < range_end and range_start < w.end
        ),
        key=lambda pair: pair[0],
    )
    merged: list[list[datetime]] = []
    for start, end in clipped:
        if merged and start <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])
    return [TimeWindow(start=start, end=end) for start, end in merged]


def build_free_windows(
    busy_intervals: Iterable[TimeWindow],
    range_start: datetime,
    range_end: datetime,
    business_hours: BusinessHours,
    min_duration: timedelta = timedelta(0),
) -> list[TimeWindow]:
    """Subtract busy time from business hours across ``[range_start, range_end)``.

    Args:
        busy_intervals: The technician's busy time, in any order.
        range_start: Inclusive start of the search range (timezone-aware).
        range_end: Exclusive end of the search range (timezone-aware).
        business_hours: Daily opening window to clip free time to.
        min_duration: Free windows shorter than this are dropped.

    Returns:
        Ordered, non-overlapping free windows in UTC.
    """
    require_aware(range_start, "range_start")
    require_aware(range_end, "range_end")
    if range_end <= range_start:
        return []

    busy = merge_intervals(busy_intervals, range_start, range_end)
    free: list[TimeWindow] = []
    cursor = 0

    for opening in business_hours.windows_between(range_start, range_end):
        start = opening.start
        # Busy blocks that end before this opening can't affect later days either.
        while cursor < len(busy) and busy[cursor].end <= opening.start:
            cursor += 1

        i = cursor
        while i < len(busy) and busy[i].start < opening.end:
            if busy[i].start > start:
                free.append(TimeWindow(start=start, end=busy[i].start))
            start = max(start, busy[i].end)
            i += 1
        if start < opening.end:
            free.append(TimeWindow(start=start, end=opening.end))

    result = [
        TimeWindow(start=w.start.astimezone(timezone.utc), end=w.end.astimezone(timezone.utc))
        for w in free
        if w.duration >= min_duration
    ]
    logger.debug(
        "Built %d free windows from %d busy blocks between %s and %s",
        len(result), len(busy), range_start.isoformat(), range_end.isoformat(),
    )
    return result
