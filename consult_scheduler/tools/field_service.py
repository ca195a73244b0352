"""
Mock field-service platform: technician calendars and job reservations.

In production, this would integrate with ServiceTitan (technician shifts,
appointments, and job creation) via its HTTP API. The in-memory version
keeps the one property the scheduler relies on: a technician can never
hold two overlapping jobs, and the conflict check plus insert is atomic.
"""

import asyncio
import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Optional, Protocol
from zoneinfo import ZoneInfo

from consult_scheduler.errors import ConflictError, UpstreamError, UpstreamUnavailable
from consult_scheduler.schemas.scheduling_schema import TimeWindow
from consult_scheduler.tools.customer import CustomerDirectory

logger = logging.getLogger(__name__)

# Demo schedule generation parameters
DEMO_SEED = 42
DEMO_BUSY_PROBABILITY = 0.3
DEMO_HOURS = range(8, 17)


class CalendarSource(Protocol):
    async def get_busy_intervals(
        self, technician_id: str, range_start: datetime, range_end: datetime
    ) -> list[TimeWindow]:
        ...


class ReservationSystem(Protocol):
    async def create_job(
        self,
        *,
        name: str,
        email: str,
        phone: str,
        start_time: datetime,
        end_time: datetime,
        technician_id: str,
        job_type_id: int,
        summary: str = "",
    ) -> "JobRecord":
        ...

    async def cancel_job(self, job_id: str) -> None:
        ...


@dataclass
class JobRecord:
    """Job stored by the field-service platform."""

    id: str
    customer_id: str
    technician_id: str
    job_type_id: int
    start_time: datetime
    end_time: datetime
    summary: str = ""
    status: str = "Scheduled"
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def window(self) -> TimeWindow:
        return TimeWindow(start=self.start_time, end=self.end_time)


class InMemoryFieldService:
    """Calendar source and reservation system over the same job store."""

    def __init__(self, customers: Optional[CustomerDirectory] = None) -> None:
        self.customers = customers or CustomerDirectory()
        self.unavailable_technicians: set[str] = set()
        self._blocked: dict[str, list[TimeWindow]] = {}
        self._jobs: dict[str, JobRecord] = {}
        self._lock = asyncio.Lock()

    def block_time(self, technician_id: str, start: datetime, end: datetime) -> None:
        """Mark time as busy outside of booked jobs (other appointments, time off)."""
        self._blocked.setdefault(str(technician_id), []).append(TimeWindow(start=start, end=end))

    def _busy_for(self, technician_id: str) -> list[TimeWindow]:
        busy = list(self._blocked.get(technician_id, []))
        busy.extend(
            job.window
            for job in self._jobs.values()
            if job.technician_id == technician_id and job.status == "Scheduled"
        )
        return busy

    async def get_busy_intervals(
        self, technician_id: str, range_start: datetime, range_end: datetime
    ) -> list[TimeWindow]:
        technician_id = str(technician_id)
        if technician_id in self.unavailable_technicians:
            raise UpstreamUnavailable(technician_id=technician_id)
        return sorted(
            (w for w in self._busy_for(technician_id) if w.start < range_end and range_start < w.end),
            key=lambda w: w.start,
        )

    async def create_job(
        self,
        *,
        name: str,
        email: str,
        phone: str,
        start_time: datetime,
        end_time: datetime,
        technician_id: str,
        job_type_id: int,
        summary: str = "",
    ) -> JobRecord:
        """Create a job, rejecting any overlap with the technician's existing schedule."""
        requested = TimeWindow(start=start_time, end=end_time)
        async with self._lock:
            for busy in self._busy_for(technician_id):
                if busy.overlaps(requested):
                    raise ConflictError(technician_id=technician_id, start=start_time.isoformat())

            customer = self.customers.find_or_create(name, phone, email)
            job = JobRecord(
                id=f"JOB-{uuid.uuid4().hex[:6].upper()}",
                customer_id=customer.id,
                technician_id=technician_id,
                job_type_id=job_type_id,
                start_time=start_time,
                end_time=end_time,
                summary=summary,
            )
            self._jobs[job.id] = job

        logger.info(
            "Job created: %s for %s with technician %s at %s",
            job.id, customer.id, technician_id, start_time.isoformat(),
        )
        return job

    async def cancel_job(self, job_id: str) -> None:
        """Cancel a job, freeing its window."""
        async with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise UpstreamError(f"Job {job_id} not found.", job_id=job_id)
            job.status = "Canceled"
        logger.info("Job cancelled: %s", job_id)

    def get_job(self, job_id: str) -> Optional[JobRecord]:
        """Retrieve a job by id."""
        return self._jobs.get(job_id)

    def scheduled_jobs(self) -> list[JobRecord]:
        return [job for job in self._jobs.values() if job.status == "Scheduled"]

    def reset(self) -> None:
        """Clear all jobs and blocked time. Used by test fixtures for isolation."""
        self._blocked.clear()
        self._jobs.clear()
        self.unavailable_technicians.clear()
        self.customers.reset()


def seed_demo_appointments(
    field_service: InMemoryFieldService,
    technician_ids: Iterable[str],
    start_day: date,
    days: int,
    timezone_name: str,
    seed: int = DEMO_SEED,
) -> int:
    """Block out a realistic, reproducible set of existing appointments.

    Returns the number of hour-long appointments created.
    """
    rng = random.Random(seed)
    tz = ZoneInfo(timezone_name)
    created = 0
    for technician_id in technician_ids:
        for offset in range(days):
            day = start_day + timedelta(days=offset)
            for hour in DEMO_HOURS:
                if rng.random() < DEMO_BUSY_PROBABILITY:
                    start = datetime.combine(day, time(hour), tzinfo=tz)
                    field_service.block_time(technician_id, start, start + timedelta(hours=1))
                    created += 1
    logger.debug("Seeded %d demo appointments", created)
    return created
