"""Unit tests for timezone_utils module."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from timeweaver.core.exceptions import UnknownTimezoneError
from timeweaver.core.timezone_utils import (
    TimezoneResolver,
    add_calendar_days,
    add_elapsed,
    as_timezone,
    convert_to_timezone,
    elapsed_between,
    resolve_timezone,
    to_utc,
)

pytestmark = pytest.mark.unit

NEW_YORK = ZoneInfo("America/New_York")


class TestTimezoneResolver:
    """Tests for name resolution."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Europe/Istanbul", "Europe/Istanbul"),
            ("Pacific Standard Time", "America/Los_Angeles"),
            ("US/Eastern", "America/New_York"),
            ("Z", "UTC"),
            ('"Europe/Berlin"', "Europe/Berlin"),
            ("Europe/Kiev", "Europe/Kyiv"),
        ],
    )
    def test_resolve(self, name, expected):
        """IANA names, Windows names and aliases all resolve."""
        assert resolve_timezone(name) == ZoneInfo(expected)

    @pytest.mark.parametrize("name", ["", "   ", "Nowhere/Special", "../etc/passwd"])
    def test_unknown_names_raise(self, name):
        """Unresolvable names raise UnknownTimezoneError."""
        with pytest.raises(UnknownTimezoneError):
            TimezoneResolver().resolve(name)

    def test_canonical_name_passes_through_unknown(self):
        """Names outside the maps are only stripped."""
        assert TimezoneResolver().canonical_name("  Asia/Tokyo ") == "Asia/Tokyo"


class TestConversions:
    """Tests for zone conversion helpers."""

    def test_as_timezone_accepts_tzinfo(self):
        """A tzinfo is returned unchanged."""
        assert as_timezone(timezone.utc) is timezone.utc
        assert as_timezone("Asia/Tokyo") == ZoneInfo("Asia/Tokyo")

    def test_convert_to_timezone_keeps_instant(self):
        """Conversion changes the wall clock, not the instant."""
        dt = datetime(2025, 8, 12, 9, tzinfo=timezone.utc)
        converted = convert_to_timezone(dt, "Europe/Istanbul")

        assert converted == dt
        assert converted.hour == 12

    def test_convert_naive_raises(self):
        """Naive datetimes have no instant to convert."""
        with pytest.raises(ValueError):
            convert_to_timezone(datetime(2025, 8, 12, 9), "UTC")

    def test_to_utc(self):
        """to_utc returns the UTC wall clock."""
        assert to_utc(datetime(2025, 8, 12, 12, tzinfo=ZoneInfo("Europe/Istanbul"))).hour == 9


class TestArithmetic:
    """Tests for elapsed versus calendar arithmetic across DST."""

    def test_elapsed_between_across_fall_back(self):
        """Midnight to noon on the fall-back day is 13 hours."""
        start = datetime(2025, 11, 2, 0, tzinfo=NEW_YORK)
        end = datetime(2025, 11, 2, 12, tzinfo=NEW_YORK)

        assert elapsed_between(start, end) == timedelta(hours=13)

    def test_add_elapsed_keeps_zone(self):
        """Adding 24 hours across spring-forward shifts the wall clock by one hour."""
        start = datetime(2025, 3, 8, 12, tzinfo=NEW_YORK)
        result = add_elapsed(start, timedelta(hours=24))

        assert result.tzinfo == NEW_YORK
        assert (result.day, result.hour) == (9, 13)

    def test_add_calendar_days_keeps_wall_clock(self):
        """One calendar day across spring-forward keeps 12:00 and is 23 hours."""
        start = datetime(2025, 3, 8, 12, tzinfo=NEW_YORK)
        result = add_calendar_days(start, 1)

        assert (result.day, result.hour) == (9, 12)
        assert elapsed_between(start, result) == timedelta(hours=23)

    def test_add_calendar_days_normalizes_gap(self):
        """A wall time inside the DST gap is moved to the real instant."""
        start = datetime(2025, 3, 8, 2, 30, tzinfo=NEW_YORK)
        result = add_calendar_days(start, 1)

        assert result.utcoffset() == timedelta(hours=-4)
        assert (result.day, result.hour, result.minute) == (9, 3, 30)

    def test_add_zero_days(self):
        """Zero days is the identity."""
        start = datetime(2025, 3, 8, 2, 30, tzinfo=NEW_YORK)
        assert add_calendar_days(start, 0) is start
