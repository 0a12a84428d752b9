"""Data models for calendar analysis - events, calendars and result rows."""

from __future__ import annotations

import datetime
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_serializer,
    field_validator,
    model_validator,
)

from timeweaver.core.timezone_utils import ZoneLike, as_timezone, elapsed_between, to_utc


class Event(BaseModel):
    """A single calendar event as a half-open interval ``[start, end)``."""

    uid: Optional[str] = Field(default=None, description="Event UID (not required to be unique)")
    summary: Optional[str] = Field(default=None, description="Display text")
    start: datetime.datetime = Field(..., description="Zoned start instant")
    end: datetime.datetime = Field(..., description="Zoned end instant (exclusive)")
    category: Optional[str] = Field(default=None, description="CATEGORIES value")

    model_config = ConfigDict(frozen=True)

    @field_validator("start", "end")
    @classmethod
    def _require_timezone(cls, value: datetime.datetime) -> datetime.datetime:
        if value.tzinfo is None or value.utcoffset() is None:
            raise ValueError("event datetimes must be timezone-aware")
        return value

    @model_validator(mode="after")
    def _require_positive_length(self) -> Event:
        if elapsed_between(self.start, self.end) <= datetime.timedelta(0):
            raise ValueError(f"event start {self.start} must be before end {self.end}")
        return self

    @property
    def duration(self) -> datetime.timedelta:
        """Elapsed length of the event."""
        return elapsed_between(self.start, self.end)

    @property
    def duration_minutes(self) -> int:
        """Event length rounded to whole minutes."""
        return round(self.duration.total_seconds() / 60)

    def in_timezone(self, zone: ZoneLike) -> Event:
        """Return a copy with start/end expressed in ``zone``."""
        tz = as_timezone(zone)
        return self.model_copy(update={"start": self.start.astimezone(tz), "end": self.end.astimezone(tz)})

    @field_serializer("start", "end")
    def serialize_datetime(self, dt: datetime.datetime) -> str:
        """Serialize datetime fields to ISO format."""
        return dt.isoformat()


class Calendar(BaseModel):
    """Ordered sequence of events from one load.

    Order is file order. Treat instances as values: ``convert_zone`` returns a
    new Calendar. ``normalize_timezone`` is the one in-place operation and is
    not safe to call while another caller reads the same instance.
    """

    events: list[Event] = Field(default_factory=list, description="Events in file order")
    warnings: list[str] = Field(default_factory=list, description="Dropped-event diagnostics")

    def __len__(self) -> int:
        return len(self.events)

    def convert_zone(self, zone: ZoneLike) -> Calendar:
        """Return a new Calendar with every event expressed in ``zone``.

        Instants are unchanged; only the zone used for display and bucketing.
        """
        tz = as_timezone(zone)
        return Calendar(
            events=[event.in_timezone(tz) for event in self.events],
            warnings=list(self.warnings),
        )

    def normalize_timezone(self, zone: ZoneLike) -> Calendar:
        """Convert every event to ``zone`` in place and return self."""
        tz = as_timezone(zone)
        self.events[:] = [event.in_timezone(tz) for event in self.events]
        return self

    def sorted_by_start(self) -> list[Event]:
        """Events ordered by start instant; ties keep file order."""
        return sorted(self.events, key=lambda event: to_utc(event.start))


def convert_zone(calendar: Calendar, zone: ZoneLike) -> Calendar:
    """Re-express every event of ``calendar`` in ``zone`` (pure)."""
    return calendar.convert_zone(zone)


# Result rows


class _Row(BaseModel):
    model_config = ConfigDict(frozen=True)


class ConflictRecord(_Row):
    """Two existing events that overlap."""

    uid_a: Optional[str]
    uid_b: Optional[str]
    overlap_start: datetime.datetime
    overlap_end: datetime.datetime
    minutes: int = Field(..., description="Overlap length rounded to whole minutes")


class GapRecord(_Row):
    """Adjacent events (in start order) separated by less than a threshold."""

    uid_prev: Optional[str]
    uid_next: Optional[str]
    gap: datetime.timedelta = Field(..., description="next.start - prev.end; negative if they overlap")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def gap_minutes(self) -> float:
        return self.gap.total_seconds() / 60


class ImpactRecord(_Row):
    """An existing event overlapped by a candidate interval."""

    uid: Optional[str]
    summary: Optional[str]
    overlap_start: datetime.datetime
    overlap_end: datetime.datetime


class SimulationResult(_Row):
    """Outcome of a what-if check for a candidate interval."""

    would_conflict: bool
    impacted: list[ImpactRecord] = Field(default_factory=list)


class DayOccupancy(_Row):
    """Distinct busy minutes on one local calendar date."""

    date: datetime.date
    busy_minutes: int


class HourOccupancy(_Row):
    """Distinct busy minutes in one (weekday, hour) cell; weekday 1 = Monday."""

    weekday: int = Field(..., ge=1, le=7)
    hour: int = Field(..., ge=0, le=23)
    busy_minutes: int


class DayStress(DayOccupancy):
    stress: float


class HourStress(HourOccupancy):
    stress: float


class UtilizationRow(_Row):
    """Per-bucket duration statistics; overlapping events are counted in full."""

    bucket: datetime.datetime | datetime.date
    busy_minutes: int
    events: int
    mean_duration: float
    median_duration: float
    std_duration: float = Field(..., description="Sample standard deviation; NaN for one event")
