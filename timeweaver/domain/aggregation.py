"""Occupancy, utilization and stress scoring for calendar buckets.

Occupancy merges overlapping time within each bucket, so the same stretch of
time never counts twice and a day never holds more than its wall-clock length.
Utilization sums each event's own duration and therefore does count
overlapping time once per event.
"""

from __future__ import annotations

import bisect
import logging
import math
import re
import statistics
from collections import defaultdict
from collections.abc import Iterator
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Literal, Protocol, Union

from timeweaver.calendar.models import (
    Calendar,
    DayOccupancy,
    DayStress,
    HourOccupancy,
    HourStress,
    UtilizationRow,
)
from timeweaver.core.exceptions import InvalidBucketError
from timeweaver.core.timezone_utils import ZoneLike, as_timezone, to_utc

logger = logging.getLogger(__name__)

STRESS_SATURATION_MINUTES = 240.0

OccupancyGranularity = Literal["day", "hour"]
BucketSpec = Union[str, timedelta]

_HOUR = timedelta(hours=1)
_NAMED_BUCKETS = ("day", "week", "month")
_PERIOD = re.compile(r"^\s*(\d+)\s*(minute|hour|day|week)s?\s*$", re.IGNORECASE)
# Largest float below 100
_STRESS_CEILING = math.nextafter(100.0, 0.0)


class _HasBusyMinutes(Protocol):
    busy_minutes: int


def _bucket_pieces(
    start: datetime, end: datetime, by: str, tz: tzinfo
) -> Iterator[tuple[object, datetime, datetime]]:
    """Split a UTC span at local day or hour boundaries."""
    t = start
    while t < end:
        local = t.astimezone(tz)
        if by == "day":
            key: object = local.date()
            boundary = to_utc(datetime.combine(local.date() + timedelta(days=1), time(), tzinfo=tz))
        else:
            key = (local.isoweekday(), local.hour)
            into_hour = timedelta(minutes=local.minute, seconds=local.second, microseconds=local.microsecond)
            boundary = t - into_hour + _HOUR
        piece_end = min(boundary, end)
        yield key, t, piece_end
        t = piece_end


def _union_seconds(spans: list[tuple[datetime, datetime]]) -> float:
    total = 0.0
    current_start, current_end = None, None
    for start, end in sorted(spans):
        if current_end is None or start > current_end:
            if current_end is not None:
                total += (current_end - current_start).total_seconds()
            current_start, current_end = start, end
        elif end > current_end:
            current_end = end
    if current_end is not None:
        total += (current_end - current_start).total_seconds()
    return total


def _occupied_minutes(calendar: Calendar, by: str, zone: ZoneLike) -> dict[object, int]:
    tz = as_timezone(zone)
    spans: dict[object, list[tuple[datetime, datetime]]] = defaultdict(list)
    for event in calendar.events:
        for key, start, end in _bucket_pieces(to_utc(event.start), to_utc(event.end), by, tz):
            spans[key].append((start, end))
    # merged per bucket so overlapping time counts once
    return {key: round(_union_seconds(pieces) / 60) for key, pieces in spans.items()}


def _granularity(by: BucketSpec) -> BucketSpec:
    return by.strip().lower() if isinstance(by, str) else by


def occupancy_table(
    calendar: Calendar,
    by: OccupancyGranularity = "day",
    zone: ZoneLike = "UTC",
) -> Union[list[DayOccupancy], list[HourOccupancy]]:
    """Compute busy minutes per bucket with overlapping time counted once.

    Events are split at local day or hour boundaries and the pieces in each
    bucket are merged before their length is rounded to whole minutes.

    Args:
        calendar: Events to measure
        by: ``"day"`` for local calendar dates, ``"hour"`` for
            ``(weekday, hour)`` cells with Monday = 1; case-insensitive
        zone: Zone used to assign minutes to buckets

    Returns:
        Rows sorted by bucket key

    Raises:
        InvalidBucketError: If ``by`` is not ``"day"`` or ``"hour"``
    """
    granularity = _granularity(by)
    if granularity not in ("day", "hour"):
        raise InvalidBucketError(f"by must be 'day' or 'hour', got {by!r}")

    buckets = _occupied_minutes(calendar, granularity, zone)
    if granularity == "day":
        return [DayOccupancy(date=key, busy_minutes=minutes) for key, minutes in sorted(buckets.items())]
    return [
        HourOccupancy(weekday=key[0], hour=key[1], busy_minutes=minutes)
        for key, minutes in sorted(buckets.items())
    ]


def parse_period(spec: BucketSpec) -> timedelta:
    """Turn ``"3 days"``/``"2 weeks"``/``"90 minutes"`` or a timedelta into a period.

    Raises:
        InvalidBucketError: If the spec is not a positive period
    """
    if isinstance(spec, timedelta):
        period = spec
    else:
        match = _PERIOD.match(spec)
        if match is None:
            raise InvalidBucketError(f"Unrecognized bucket spec {spec!r}")
        count, unit = int(match.group(1)), match.group(2).lower()
        period = timedelta(**{f"{unit}s": count})
    if period <= timedelta(0):
        raise InvalidBucketError(f"Bucket period must be positive, got {spec!r}")
    return period


def _named_bucket(local_start: datetime, by: str) -> date:
    day = local_start.date()
    if by == "day":
        return day
    if by == "week":
        # Monday of the ISO week
        return day - timedelta(days=day.isoweekday() - 1)
    return day.replace(day=1)


def _fixed_edges(starts: list[datetime], ends: list[datetime], period: timedelta) -> list[datetime]:
    # Wall-clock stepping in the target zone, from the earliest start until past the latest end.
    # Edges are kept strictly increasing as instants; a step that lands in a DST gap can repeat one.
    first = min(starts, key=to_utc)
    last = to_utc(max(ends, key=to_utc))
    edges = [first]
    t = first + period
    while to_utc(t) <= last:
        if to_utc(t) > to_utc(edges[-1]):
            edges.append(t)
        t = t + period
    return edges


def _duration_stats(bucket: Union[date, datetime], minutes: list[int]) -> UtilizationRow:
    std = statistics.stdev(minutes) if len(minutes) > 1 else math.nan
    return UtilizationRow(
        bucket=bucket,
        busy_minutes=sum(minutes),
        events=len(minutes),
        mean_duration=statistics.fmean(minutes),
        median_duration=float(statistics.median(minutes)),
        std_duration=std,
    )


def utilization(
    calendar: Calendar,
    by: BucketSpec = "day",
    zone: ZoneLike = "UTC",
) -> list[UtilizationRow]:
    """Aggregate per-event durations into buckets with descriptive statistics.

    Args:
        calendar: Events to aggregate
        by: ``"day"``, ``"week"`` (Monday anchor), ``"month"`` (first of
            month), or a fixed period (``timedelta`` or ``"3 days"``) whose
            windows start at the earliest event start
        zone: Zone used for bucketing

    Returns:
        One row per bucket, sorted by bucket. ``busy_minutes`` sums raw event
        durations, so overlapping events are counted in full. The standard
        deviation is the sample (n - 1) definition and is NaN for a bucket
        with a single event.

    Raises:
        InvalidBucketError: If ``by`` is not a recognized granularity or period
    """
    granularity = _granularity(by)
    named = granularity in _NAMED_BUCKETS
    period = None if named else parse_period(granularity)

    local_events = calendar.convert_zone(zone).events
    if not local_events:
        return []

    grouped: dict[Union[date, datetime], list[int]] = defaultdict(list)
    if named:
        for event in local_events:
            grouped[_named_bucket(event.start, str(granularity))].append(event.duration_minutes)
    else:
        assert period is not None
        edges = _fixed_edges([e.start for e in local_events], [e.end for e in local_events], period)
        instants = [to_utc(edge) for edge in edges]
        for event in local_events:
            index = bisect.bisect_right(instants, to_utc(event.start)) - 1
            if index < 0:
                raise RuntimeError(f"Event start {event.start} precedes the first bucket edge {edges[0]}")
            grouped[edges[index]].append(event.duration_minutes)

    rows = [_duration_stats(bucket, grouped[bucket]) for bucket in sorted(grouped, key=_bucket_sort_key)]
    logger.debug("Utilization by %s: %d buckets", by, len(rows))
    return rows


def _bucket_sort_key(bucket: Union[date, datetime]) -> datetime:
    if isinstance(bucket, datetime):
        return to_utc(bucket)
    return datetime(bucket.year, bucket.month, bucket.day, tzinfo=as_timezone("UTC"))


def stress(
    value: Union[float, int, _HasBusyMinutes],
    saturation_minutes: float = STRESS_SATURATION_MINUTES,
) -> float:
    """Map busy minutes to a 0-100 stress score.

    ``100 * (1 - exp(-busy / saturation))``: 0 at 0 minutes, about 63.2 at
    the saturation point, approaching but never reaching 100.

    Args:
        value: Busy minutes, or any row with a ``busy_minutes`` field
        saturation_minutes: Scale of the saturating curve

    Raises:
        ValueError: If busy minutes are negative or not finite
    """
    busy = value if isinstance(value, (int, float)) else value.busy_minutes
    if not math.isfinite(busy) or busy < 0:
        raise ValueError(f"busy_minutes must be a finite non-negative number, got {busy!r}")
    if saturation_minutes <= 0:
        raise ValueError("saturation_minutes must be positive")
    score = -100.0 * math.expm1(-busy / saturation_minutes)
    return min(score, _STRESS_CEILING)


def stress_index(
    calendar: Calendar,
    by: OccupancyGranularity = "day",
    zone: ZoneLike = "UTC",
    saturation_minutes: float = STRESS_SATURATION_MINUTES,
) -> Union[list[DayStress], list[HourStress]]:
    """Occupancy table with a stress score per bucket."""
    occupancy = occupancy_table(calendar, by=by, zone=zone)
    granularity = _granularity(by)
    if granularity == "day":
        return [
            DayStress(date=row.date, busy_minutes=row.busy_minutes, stress=stress(row, saturation_minutes))
            for row in occupancy
            if isinstance(row, DayOccupancy)
        ]
    return [
        HourStress(
            weekday=row.weekday,
            hour=row.hour,
            busy_minutes=row.busy_minutes,
            stress=stress(row, saturation_minutes),
        )
        for row in occupancy
        if isinstance(row, HourOccupancy)
    ]
