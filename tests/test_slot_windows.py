"""Tests for business hours and free-window construction."""

import random
from datetime import date, datetime, time, timedelta, timezone

import pytest

from consult_scheduler.config import BusinessHoursConfig
from consult_scheduler.schemas.scheduling_schema import TimeWindow
from consult_scheduler.scheduling.slot_windows import (
    BusinessHours,
    build_free_windows,
    merge_intervals,
)
from tests.conftest import MONDAY, at


def window(start: datetime, end: datetime) -> TimeWindow:
    return TimeWindow(start=start, end=end)


class TestBusinessHours:
    def test_open_must_precede_close(self):
        with pytest.raises(ValueError, match="open_time"):
            BusinessHours("UTC", time(17), time(9))

    def test_from_config(self):
        hours = BusinessHours.from_config(
            BusinessHoursConfig(timezone="America/Chicago", open_time="08:30",
                                close_time="16:00", weekdays="0,2,4")
        )
        assert hours.open_time == time(8, 30)
        assert hours.close_time == time(16)
        assert hours.weekdays == frozenset({0, 2, 4})

    def test_local_date_uses_business_timezone(self):
        hours = BusinessHours("America/Chicago", time(8), time(17))
        # 03:00 UTC Tuesday is still Monday evening in Chicago.
        assert hours.local_date(at(3, day=MONDAY + timedelta(days=1))) == MONDAY

    def test_weekends_have_no_windows(self, business_hours):
        saturday = MONDAY - timedelta(days=2)
        windows = list(business_hours.windows_between(at(0, day=saturday), at(0, day=MONDAY)))
        assert windows == []

    def test_windows_clipped_to_range(self, business_hours):
        windows = list(business_hours.windows_between(at(11), at(13)))
        assert windows == [window(at(11), at(13))]


class TestMergeIntervals:
    def test_overlapping_intervals_merge(self):
        merged = merge_intervals(
            [window(at(10), at(11)), window(at(10, 30), at(12))], at(0), at(23)
        )
        assert merged == [window(at(10), at(12))]

    def test_adjacent_intervals_merge(self):
        merged = merge_intervals(
            [window(at(11), at(12)), window(at(10), at(11))], at(0), at(23)
        )
        assert merged == [window(at(10), at(12))]

    def test_intervals_clipped_to_range(self):
        merged = merge_intervals([window(at(8), at(10)), window(at(20), at(22))], at(9), at(21))
        assert merged == [window(at(9), at(10)), window(at(20), at(21))]

    def test_intervals_outside_range_dropped(self):
        assert merge_intervals([window(at(1), at(2))], at(9), at(17)) == []


class TestBuildFreeWindows:
    def test_no_busy_time_returns_full_day(self, business_hours):
        free = build_free_windows([], at(0), at(0, day=MONDAY + timedelta(days=1)), business_hours)
        assert free == [window(at(9), at(17))]

    def test_busy_block_splits_day(self, business_hours):
        free = build_free_windows([window(at(11), at(12))], at(0), at(23), business_hours)
        assert free == [window(at(9), at(11)), window(at(12), at(17))]

    def test_busy_all_day_returns_nothing(self, business_hours):
        free = build_free_windows([window(at(8), at(18))], at(0), at(23), business_hours)
        assert free == []

    def test_busy_block_straddling_open(self, business_hours):
        free = build_free_windows([window(at(7), at(10))], at(0), at(23), business_hours)
        assert free == [window(at(10), at(17))]

    def test_inverted_range_returns_nothing(self, business_hours):
        assert build_free_windows([], at(17), at(9), business_hours) == []

    def test_empty_range_returns_nothing(self, business_hours):
        assert build_free_windows([], at(10), at(10), business_hours) == []

    def test_naive_range_rejected(self, business_hours):
        with pytest.raises(ValueError, match="timezone-aware"):
            build_free_windows([], datetime(2030, 3, 4, 9), at(17), business_hours)

    def test_min_duration_drops_short_gaps(self, business_hours):
        busy = [window(at(9, 20), at(12)), window(at(12, 45), at(17))]
        free = build_free_windows(busy, at(0), at(23), business_hours, timedelta(minutes=30))
        assert free == [window(at(12), at(12, 45))]

    def test_results_are_utc(self):
        hours = BusinessHours("America/Chicago", time(8), time(17))
        start = datetime.combine(MONDAY, time.min, tzinfo=hours.tzinfo)
        free = build_free_windows([], start, start + timedelta(days=1), hours)
        assert len(free) == 1
        assert free[0].start.tzinfo == timezone.utc
        # 08:00 CST is 14:00 UTC.
        assert free[0].start == at(14)

    def test_opening_hours_follow_dst_change(self):
        hours = BusinessHours("America/Chicago", time(8), time(17), frozenset(range(7)))
        saturday = date(2030, 3, 9)
        start = datetime.combine(saturday, time.min, tzinfo=hours.tzinfo)
        free = build_free_windows([], start, start + timedelta(days=2), hours)
        assert [w.start for w in free] == [at(14, day=saturday), at(13, day=date(2030, 3, 10))]
        assert free[1].duration == timedelta(hours=9)

    def test_generated_busy_sets_yield_disjoint_windows_inside_hours(self, business_hours):
        rng = random.Random(1234)
        range_start = at(0)
        range_end = at(0, day=MONDAY + timedelta(days=5))
        for _ in range(200):
            busy = []
            for _ in range(rng.randint(0, 12)):
                start = range_start + timedelta(minutes=15 * rng.randint(0, 5 * 96 - 1))
                busy.append(window(start, start + timedelta(minutes=15 * rng.randint(1, 16))))

            free = build_free_windows(busy, range_start, range_end, business_hours)

            for earlier, later in zip(free, free[1:]):
                assert earlier.end <= later.start
            for w in free:
                opening = window(
                    datetime.combine(w.start.date(), time(9), tzinfo=timezone.utc),
                    datetime.combine(w.start.date(), time(17), tzinfo=timezone.utc),
                )
                assert opening.contains(w)
                assert not any(b.overlaps(w) for b in busy)
