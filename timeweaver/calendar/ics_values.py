"""Value decoders for iCalendar properties - text, datetime and duration.

Every decoder either returns a fully resolved value or raises a
``FormatError`` subclass; nothing here guesses.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from timeweaver.core.exceptions import DurationFormatError, UnsupportedDatetimeError
from timeweaver.core.timezone_utils import add_calendar_days, add_elapsed, resolve_timezone, utc_zone


# Applied in this order so an escaped backslash is decoded last
_TEXT_ESCAPES = (
    ("\\n", "\n"),
    ("\\N", "\n"),
    ("\\,", ","),
    ("\\;", ";"),
    ("\\\\", "\\"),
)

# digits-only length -> strptime format, for UTC values after dropping "T"
_UTC_FORMATS = {
    14: "%Y%m%d%H%M%S",
    12: "%Y%m%d%H%M",
    8: "%Y%m%d",
}

_LOCAL_PATTERNS = {
    15: (re.compile(r"^\d{8}T\d{6}$"), "%Y%m%dT%H%M%S"),
    13: (re.compile(r"^\d{8}T\d{4}$"), "%Y%m%dT%H%M"),
    8: (re.compile(r"^\d{8}$"), "%Y%m%d"),
}

_DIGITS = re.compile(r"^\d+$")

_DURATION = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$")


def unescape_text(value: str) -> str:
    r"""Decode an iCalendar TEXT value.

    Replacements run in a fixed order: ``\n``/``\N``, ``\,``, ``\;``, then
    ``\\``.
    """
    for escaped, plain in _TEXT_ESCAPES:
        value = value.replace(escaped, plain)
    return value


def _strptime(value: str, digits: str, fmt: str) -> datetime:
    try:
        return datetime.strptime(digits, fmt)
    except ValueError as e:
        raise UnsupportedDatetimeError(f"Malformed datetime value: {value}") from e


def parse_datetime(value: str, tzid: Optional[str] = None) -> datetime:
    """Parse a DTSTART/DTEND value into a zoned datetime.

    Args:
        value: ``yyyymmddTHHMMSSZ`` style UTC value, or local
            ``yyyymmddTHHMMSS`` / ``yyyymmddTHHMM`` / ``yyyymmdd``
        tzid: Zone for local values (TZID parameter); UTC when absent

    Returns:
        Timezone-aware datetime carrying its zone

    Raises:
        UnsupportedDatetimeError: Unsupported length or malformed digits
        UnknownTimezoneError: TZID cannot be resolved
    """
    value = value.strip()
    if value.endswith("Z"):
        core = value[:-1].replace("T", "")
        fmt = _UTC_FORMATS.get(len(core))
        if fmt is None or not _DIGITS.match(core):
            raise UnsupportedDatetimeError(f"Unsupported UTC datetime format: {value}")
        return _strptime(value, core, fmt).replace(tzinfo=utc_zone())

    pattern = _LOCAL_PATTERNS.get(len(value))
    if pattern is None or not pattern[0].match(value):
        raise UnsupportedDatetimeError(f"Unsupported local datetime format: {value}")
    naive = _strptime(value, value, pattern[1])
    zone = resolve_timezone(tzid) if tzid else utc_zone()
    return naive.replace(tzinfo=zone)


@dataclass(frozen=True)
class EventDuration:
    """A DURATION value kept as its components.

    Days are calendar days (wall clock in the start's zone); hours, minutes
    and seconds are elapsed time.
    """

    days: int = 0
    hours: int = 0
    minutes: int = 0
    seconds: int = 0

    @property
    def clock_part(self) -> timedelta:
        return timedelta(hours=self.hours, minutes=self.minutes, seconds=self.seconds)

    def add_to(self, start: datetime) -> datetime:
        """Return ``start`` advanced by this duration."""
        return add_elapsed(add_calendar_days(start, self.days), self.clock_part)

    def __str__(self) -> str:
        out = "P"
        if self.days:
            out += f"{self.days}D"
        if self.hours or self.minutes or self.seconds:
            out += "T"
            if self.hours:
                out += f"{self.hours}H"
            if self.minutes:
                out += f"{self.minutes}M"
            if self.seconds:
                out += f"{self.seconds}S"
        return out if out != "P" else "PT0S"


def parse_duration(value: str) -> EventDuration:
    """Parse a DURATION value like ``P1D``, ``PT1H30M``, ``PT45M``, ``PT30S``.

    Raises:
        DurationFormatError: Value does not match the supported pattern
    """
    match = _DURATION.match(value.strip())
    if match is None:
        raise DurationFormatError(f"Unsupported DURATION: {value}")
    days, hours, minutes, seconds = (int(part) if part else 0 for part in match.groups())
    return EventDuration(days=days, hours=hours, minutes=minutes, seconds=seconds)
