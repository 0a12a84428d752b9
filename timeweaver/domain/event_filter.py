"""Attribute filtering for calendars - range, category, text, weekday and hour."""

from __future__ import annotations

import logging
from collections.abc import Collection
from datetime import datetime
from typing import Optional

from timeweaver.calendar.models import Calendar, Event
from timeweaver.core.timezone_utils import ZoneLike, to_utc

logger = logging.getLogger(__name__)


class EventFilter:
    """Predicate pass over events already expressed in the filtering zone.

    Weekday and hour criteria read the event start in that zone; weekdays
    use 1 = Monday ... 7 = Sunday, hours 0-23.
    """

    def __init__(
        self,
        range: Optional[tuple[datetime, datetime]] = None,  # noqa: A002
        categories: Optional[Collection[str]] = None,
        text: Optional[str] = None,
        weekdays: Optional[Collection[int]] = None,
        hours: Optional[Collection[int]] = None,
    ):
        if range is not None:
            window_start, window_end = range
            if window_start.tzinfo is None or window_end.tzinfo is None:
                raise ValueError("Filter range bounds must be timezone-aware")
        self.range = range
        self.categories = {str(c) for c in categories} if categories is not None else None
        self.text = text.lower() if text is not None else None
        self.weekdays = set(weekdays) if weekdays is not None else None
        self.hours = set(hours) if hours is not None else None

    def matches(self, event: Event) -> bool:
        """Return True when ``event`` satisfies every configured criterion."""
        if self.range is not None:
            window_start, window_end = self.range
            # keep events intersecting the window
            if not (to_utc(event.end) > to_utc(window_start) and to_utc(event.start) < to_utc(window_end)):
                return False
        if self.categories is not None and (event.category is None or event.category not in self.categories):
            return False
        if self.text is not None and self.text not in (event.summary or "").lower():
            return False
        if self.weekdays is not None and event.start.isoweekday() not in self.weekdays:
            return False
        return self.hours is None or event.start.hour in self.hours


def filter_events(
    calendar: Calendar,
    zone: ZoneLike = "UTC",
    range: Optional[tuple[datetime, datetime]] = None,  # noqa: A002
    categories: Optional[Collection[str]] = None,
    text: Optional[str] = None,
    weekdays: Optional[Collection[int]] = None,
    hours: Optional[Collection[int]] = None,
) -> Calendar:
    """Filter events by multiple criteria.

    Args:
        calendar: Events to filter
        zone: Zone events are converted to before filtering
        range: Optional ``(start, stop)`` window; keeps events intersecting it
        categories: Keep events whose category is in this collection
        text: Case-insensitive substring to match in the summary
        weekdays: Keep events whose start weekday is in this set (1=Mon ... 7=Sun)
        hours: Keep events whose start hour is in this set (0-23)

    Returns:
        New Calendar in ``zone`` with the matching events in original order
    """
    predicate = EventFilter(range=range, categories=categories, text=text, weekdays=weekdays, hours=hours)
    local = calendar.convert_zone(zone)
    kept = [event for event in local.events if predicate.matches(event)]
    logger.debug("Filter kept %d of %d events", len(kept), len(local.events))
    return Calendar(events=kept, warnings=local.warnings)
