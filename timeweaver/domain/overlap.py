"""Conflict, overload and what-if detection over a Calendar.

Everything here is built on ``overlap``, the half-open interval
intersection, so "do these two events conflict" and "would this new event
conflict" always agree.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from timeweaver.calendar.models import (
    Calendar,
    ConflictRecord,
    GapRecord,
    ImpactRecord,
    SimulationResult,
)
from timeweaver.core.timezone_utils import elapsed_between, to_utc

logger = logging.getLogger(__name__)

DEFAULT_OVERLOAD_THRESHOLD = timedelta(minutes=15)


def overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> Optional[tuple[datetime, datetime]]:
    """Intersect two half-open intervals ``[a_start, a_end)`` and ``[b_start, b_end)``.

    Instants are compared in UTC so intervals in different zones (or either
    side of a DST fold) compare correctly.

    Returns:
        ``(start, end)`` of the shared span, or None when the intervals only
        touch or are disjoint
    """
    start = a_start if to_utc(a_start) >= to_utc(b_start) else b_start
    end = a_end if to_utc(a_end) <= to_utc(b_end) else b_end
    if to_utc(start) < to_utc(end):
        return start, end
    return None


def _whole_minutes(span: timedelta) -> int:
    # round() ties to even
    return round(span.total_seconds() / 60)


def conflicts(calendar: Calendar) -> list[ConflictRecord]:
    """Return every overlapping pair of events.

    Pairs are enumerated ``i < j`` in calendar order and emitted in that
    order. Quadratic in the number of events.
    """
    events = calendar.events
    rows: list[ConflictRecord] = []
    for i, first in enumerate(events):
        for second in events[i + 1 :]:
            shared = overlap(first.start, first.end, second.start, second.end)
            if shared is None:
                continue
            overlap_start, overlap_end = shared
            rows.append(
                ConflictRecord(
                    uid_a=first.uid,
                    uid_b=second.uid,
                    overlap_start=overlap_start,
                    overlap_end=overlap_end,
                    minutes=_whole_minutes(elapsed_between(overlap_start, overlap_end)),
                )
            )
    logger.debug("Found %d conflicts among %d events", len(rows), len(events))
    return rows


def find_overloads(
    calendar: Calendar,
    threshold: timedelta = DEFAULT_OVERLOAD_THRESHOLD,
) -> list[GapRecord]:
    """Flag back-to-back events whose gap is shorter than ``threshold``.

    Events are sorted by start and only neighbours in that order are
    compared; tightness between non-adjacent events is not reported. The gap
    is negative when the neighbours overlap.

    Examples:
        An event ending 09:15 followed by one starting 09:20 has a 5 minute
        gap: flagged with a 10 minute threshold, not with a 1 minute one.
    """
    ordered = calendar.sorted_by_start()
    rows: list[GapRecord] = []
    for prev, nxt in zip(ordered, ordered[1:]):
        gap = elapsed_between(prev.end, nxt.start)
        if gap < threshold:
            rows.append(GapRecord(uid_prev=prev.uid, uid_next=nxt.uid, gap=gap))
    logger.debug("Found %d tight gaps (threshold %s)", len(rows), threshold)
    return rows


def simulate_event(calendar: Calendar, start: datetime, stop: datetime) -> SimulationResult:
    """Check whether a hypothetical event ``[start, stop)`` would collide.

    Args:
        calendar: Existing events
        start: Candidate start (timezone-aware)
        stop: Candidate end, exclusive (timezone-aware)

    Returns:
        SimulationResult listing every event with a positive overlap

    Raises:
        ValueError: If either bound is naive or ``stop`` is not after ``start``
    """
    if start.tzinfo is None or stop.tzinfo is None:
        raise ValueError("Candidate bounds must be timezone-aware")
    if to_utc(stop) <= to_utc(start):
        raise ValueError(f"Candidate stop {stop} must be after start {start}")

    impacted: list[ImpactRecord] = []
    for event in calendar.events:
        shared = overlap(event.start, event.end, start, stop)
        if shared is None:
            continue
        impacted.append(
            ImpactRecord(
                uid=event.uid,
                summary=event.summary,
                overlap_start=shared[0],
                overlap_end=shared[1],
            )
        )
    return SimulationResult(would_conflict=bool(impacted), impacted=impacted)
