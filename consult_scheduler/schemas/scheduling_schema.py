"""Time window, slot, and service-type data models."""

from datetime import date, datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from consult_scheduler.utils import require_aware


class TimeWindow(BaseModel):
    """Half-open interval ``[start, end)`` between two aware instants."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_bounds(self) -> "TimeWindow":
        require_aware(self.start, "start")
        require_aware(self.end, "end")
        if self.start >= self.end:
            raise ValueError(f"start must be before end, got {self.start} >= {self.end}")
        return self

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: "TimeWindow") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeWindow") -> bool:
        return self.start <= other.start and other.end <= self.end


class Slot(TimeWindow):
    """A bookable window tied to one technician."""

    technician_id: str

    @field_validator("technician_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @property
    def key(self) -> tuple[datetime, datetime, str]:
        return (self.start, self.end, self.technician_id)


class DateEntry(BaseModel):
    """All slots available on a single local calendar date."""

    date: date
    slots: list[Slot] = Field(default_factory=list)


class ServiceTypeMapping(BaseModel):
    """Maps a customer-facing service to a field-service job type."""

    model_config = ConfigDict(frozen=True)

    external_service_id: str
    job_type_id: int
    label: str
    duration_ms: int = Field(gt=0)
    skills: tuple[str, ...] = ()
    description: str = ""
    enabled: bool = True

    @field_validator("external_service_id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @property
    def duration(self) -> timedelta:
        return timedelta(milliseconds=self.duration_ms)
