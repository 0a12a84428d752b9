"""Timezone resolution and zone-aware arithmetic for timeweaver."""

from __future__ import annotations

import datetime
import logging
import zoneinfo
from functools import lru_cache
from typing import ClassVar, Union

from dateutil.relativedelta import relativedelta

from .exceptions import UnknownTimezoneError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"

ZoneLike = Union[str, datetime.tzinfo]


class TimezoneResolver:
    """Maps timezone names found in calendar exports to zoneinfo zones."""

    # Windows timezone names to IANA identifier mapping
    # Common Windows timezones used in ICS files from Outlook/Exchange
    WINDOWS_TZ_MAP: ClassVar[dict[str, str]] = {
        "Pacific Standard Time": "America/Los_Angeles",
        "Mountain Standard Time": "America/Denver",
        "Central Standard Time": "America/Chicago",
        "Eastern Standard Time": "America/New_York",
        "Alaskan Standard Time": "America/Anchorage",
        "Hawaiian Standard Time": "Pacific/Honolulu",
        "Arizona Standard Time": "America/Phoenix",
        "GMT Standard Time": "Europe/London",
        "Central European Standard Time": "Europe/Paris",
        "W. Europe Standard Time": "Europe/Berlin",
        "Turkey Standard Time": "Europe/Istanbul",
        "China Standard Time": "Asia/Shanghai",
        "Tokyo Standard Time": "Asia/Tokyo",
        "India Standard Time": "Asia/Kolkata",
        "AUS Eastern Standard Time": "Australia/Sydney",
    }

    TZ_ALIAS_MAP: ClassVar[dict[str, str]] = {
        # US aliases (obsolete)
        "US/Pacific": "America/Los_Angeles",
        "US/Mountain": "America/Denver",
        "US/Central": "America/Chicago",
        "US/Eastern": "America/New_York",
        "US/Alaska": "America/Anchorage",
        "US/Hawaii": "Pacific/Honolulu",
        "US/Arizona": "America/Phoenix",
        # Other common aliases
        "Z": "UTC",
        "GMT": "UTC",
        "Etc/UTC": "UTC",
        "Etc/GMT": "UTC",
        "Universal": "UTC",
        "Zulu": "UTC",
        # Deprecated IANA names
        "Asia/Rangoon": "Asia/Yangon",
        "America/Godthab": "America/Nuuk",
        "Europe/Kiev": "Europe/Kyiv",
    }

    def canonical_name(self, name: str) -> str:
        """Return the IANA identifier a Windows name or alias stands for.

        Names that are neither are returned stripped but otherwise unchanged.
        """
        cleaned = name.strip().strip('"')
        return self.WINDOWS_TZ_MAP.get(cleaned) or self.TZ_ALIAS_MAP.get(cleaned, cleaned)

    def resolve(self, name: str) -> zoneinfo.ZoneInfo:
        """Resolve a timezone name to a ZoneInfo.

        Args:
            name: IANA identifier, Windows timezone name or alias

        Returns:
            ZoneInfo for the zone

        Raises:
            UnknownTimezoneError: If the name cannot be resolved
        """
        if not name or not name.strip():
            raise UnknownTimezoneError("Empty timezone name")

        canonical = self.canonical_name(name)
        try:
            return zoneinfo.ZoneInfo(canonical)
        except (zoneinfo.ZoneInfoNotFoundError, ValueError) as e:
            logger.warning("Unknown timezone %r (canonical %r)", name, canonical)
            raise UnknownTimezoneError(f"Unknown timezone: {name}") from e


_resolver = TimezoneResolver()


@lru_cache(maxsize=64)
def resolve_timezone(name: str) -> zoneinfo.ZoneInfo:
    """Resolve a timezone name (convenience function).

    Examples:
        >>> resolve_timezone("US/Pacific")
        zoneinfo.ZoneInfo(key='America/Los_Angeles')
        >>> resolve_timezone("Pacific Standard Time")
        zoneinfo.ZoneInfo(key='America/Los_Angeles')
    """
    return _resolver.resolve(name)


def utc_zone() -> zoneinfo.ZoneInfo:
    """Return the UTC zone used for every UTC-form timestamp."""
    return resolve_timezone(DEFAULT_TIMEZONE)


def as_timezone(zone: ZoneLike) -> datetime.tzinfo:
    """Accept a zone name or a tzinfo and return a tzinfo."""
    if isinstance(zone, datetime.tzinfo):
        return zone
    return resolve_timezone(zone)


def convert_to_timezone(dt: datetime.datetime, zone: ZoneLike) -> datetime.datetime:
    """Express the same instant in another zone.

    Raises:
        ValueError: If ``dt`` is naive
    """
    if dt.tzinfo is None:
        raise ValueError(f"Cannot convert naive datetime {dt!r}")
    return dt.astimezone(as_timezone(zone))


def to_utc(dt: datetime.datetime) -> datetime.datetime:
    """Return the instant of ``dt`` in UTC."""
    return dt.astimezone(datetime.timezone.utc)


def elapsed_between(start: datetime.datetime, end: datetime.datetime) -> datetime.timedelta:
    """Absolute elapsed time from ``start`` to ``end``.

    Aware datetimes sharing a tzinfo subtract by wall clock, which is wrong
    across DST transitions, so both sides are moved to UTC first.
    """
    return to_utc(end) - to_utc(start)


def add_elapsed(dt: datetime.datetime, delta: datetime.timedelta) -> datetime.datetime:
    """Add absolute elapsed time, keeping the zone of ``dt``."""
    return (to_utc(dt) + delta).astimezone(dt.tzinfo)


def add_calendar_days(dt: datetime.datetime, days: int) -> datetime.datetime:
    """Add whole calendar days on the wall clock of ``dt``'s zone.

    09:00 plus one day is 09:00 the next day even across a DST transition.
    A wall time that falls in a DST gap is normalized to the real instant.
    """
    if days == 0:
        return dt
    shifted = dt + relativedelta(days=days)
    if shifted.tzinfo is None:
        return shifted
    return shifted.astimezone(datetime.timezone.utc).astimezone(shifted.tzinfo)
