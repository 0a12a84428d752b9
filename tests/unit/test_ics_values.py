"""Unit tests for ics_values module - text, datetime and duration decoders."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from timeweaver.calendar.ics_values import EventDuration, parse_datetime, parse_duration, unescape_text
from timeweaver.core.exceptions import (
    DurationFormatError,
    FormatError,
    UnknownTimezoneError,
    UnsupportedDatetimeError,
)

pytestmark = pytest.mark.unit


class TestUnescapeText:
    """Tests for unescape_text."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("line one\\nline two", "line one\nline two"),
            ("LINE\\NBREAK", "LINE\nBREAK"),
            ("a\\, b", "a, b"),
            ("a\\; b", "a; b"),
            ("C:\\\\temp", "C:\\temp"),
            ("plain", "plain"),
        ],
    )
    def test_single_escapes(self, raw, expected):
        """Each supported escape decodes to its character."""
        assert unescape_text(raw) == expected

    def test_escaped_backslash_before_comma_is_not_double_unescaped(self):
        """An escaped comma is decoded before the escaped backslash."""
        # raw text: \\, -> the '\,' pair is seen first and becomes ','
        assert unescape_text("\\\\,") == "\\,"

    def test_replacement_order_is_fixed(self):
        """Newline escapes are decoded before the backslash escape."""
        assert unescape_text("a\\\\nb") == "a\\\nb"


class TestParseDatetime:
    """Tests for parse_datetime."""

    def test_utc_with_seconds(self):
        """Trailing Z yields a UTC datetime."""
        dt = parse_datetime("20250812T140000Z")
        assert dt == datetime(2025, 8, 12, 14, 0, 0, tzinfo=timezone.utc)
        assert dt.tzinfo == ZoneInfo("UTC")

    def test_utc_minutes_precision(self):
        """12 digits after dropping T is minute precision."""
        assert parse_datetime("20250812T1405Z") == datetime(2025, 8, 12, 14, 5, tzinfo=timezone.utc)

    def test_utc_date_only(self):
        """8 digits with Z is midnight UTC."""
        assert parse_datetime("20250812Z") == datetime(2025, 8, 12, tzinfo=timezone.utc)

    def test_local_without_tzid_is_utc(self):
        """A floating local value is resolved in UTC."""
        dt = parse_datetime("20250812T140000")
        assert dt.utcoffset() == timedelta(0)
        assert dt.hour == 14

    def test_local_minutes_precision(self):
        """yyyymmddTHHMM is accepted."""
        assert parse_datetime("20250812T0930").minute == 30

    def test_local_date_only(self):
        """yyyymmdd gives midnight."""
        dt = parse_datetime("20250812", tzid="Europe/Istanbul")
        assert (dt.hour, dt.minute) == (0, 0)
        assert dt.tzinfo == ZoneInfo("Europe/Istanbul")

    @pytest.mark.smoke
    def test_tzid_keeps_zone_and_wall_time(self):
        """A TZID value is 14:00 in that zone, a different instant from 14:00Z."""
        local = parse_datetime("20250812T140000", tzid="Europe/Istanbul")
        utc = parse_datetime("20250812T140000Z")

        assert local.hour == 14
        assert local.tzinfo == ZoneInfo("Europe/Istanbul")
        assert local != utc
        assert utc - local == timedelta(hours=3)

    def test_windows_tzid_is_resolved(self):
        """Outlook-style Windows zone names resolve to IANA zones."""
        dt = parse_datetime("20250115T090000", tzid="Eastern Standard Time")
        assert dt.tzinfo == ZoneInfo("America/New_York")
        assert dt.utcoffset() == timedelta(hours=-5)

    @pytest.mark.parametrize(
        "value",
        ["2025081214Z", "20250812T14Z", "2025-08-12", "20250812T1400000", "202508", ""],
    )
    def test_unsupported_lengths_raise(self, value):
        """Lengths other than the supported ones fail."""
        with pytest.raises(UnsupportedDatetimeError):
            parse_datetime(value)

    @pytest.mark.parametrize("value", ["2025AB12T140000", "20251312T140000", "20250812T250000Z", "2025081X"])
    def test_malformed_digits_raise(self, value):
        """Right length but invalid digits or calendar values fail."""
        with pytest.raises(UnsupportedDatetimeError):
            parse_datetime(value)

    def test_unknown_tzid_raises_format_error(self):
        """Unresolvable zones are a FormatError."""
        with pytest.raises(UnknownTimezoneError) as exc_info:
            parse_datetime("20250812T140000", tzid="Mars/Olympus_Mons")
        assert isinstance(exc_info.value, FormatError)


class TestParseDuration:
    """Tests for parse_duration and EventDuration."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("P1D", EventDuration(days=1)),
            ("PT1H30M", EventDuration(hours=1, minutes=30)),
            ("PT45M", EventDuration(minutes=45)),
            ("PT30S", EventDuration(seconds=30)),
            ("P2DT3H4M5S", EventDuration(days=2, hours=3, minutes=4, seconds=5)),
            ("P", EventDuration()),
            ("PT", EventDuration()),
        ],
    )
    def test_components(self, value, expected):
        """Absent components are zero."""
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["1H", "P1W", "PT1.5H", "-PT1H", "P1H", "PT1D", ""])
    def test_malformed_durations_raise(self, value):
        """Strings outside the supported pattern fail."""
        with pytest.raises(DurationFormatError):
            parse_duration(value)

    def test_str_round_trip(self):
        """The textual form parses back to the same components."""
        duration = EventDuration(days=1, minutes=15)
        assert str(duration) == "P1DT15M"
        assert parse_duration(str(duration)) == duration

    def test_clock_part_is_elapsed_time(self):
        """Hours are added as elapsed time."""
        start = datetime(2025, 8, 12, 9, 0, tzinfo=ZoneInfo("UTC"))
        assert EventDuration(hours=2, minutes=15).add_to(start) == start + timedelta(hours=2, minutes=15)

    def test_day_part_keeps_wall_clock_across_dst(self):
        """One day after 09:00 on the eve of a DST change is 09:00 local, 23 hours later."""
        ny = ZoneInfo("America/New_York")
        start = datetime(2025, 3, 8, 9, 0, tzinfo=ny)
        end = EventDuration(days=1).add_to(start)

        assert (end.day, end.hour, end.minute) == (9, 9, 0)
        assert end.astimezone(timezone.utc) - start.astimezone(timezone.utc) == timedelta(hours=23)

    def test_hour_part_is_not_wall_clock_across_dst(self):
        """24 hours after 09:00 before spring-forward lands at 10:00 local."""
        ny = ZoneInfo("America/New_York")
        start = datetime(2025, 3, 8, 9, 0, tzinfo=ny)
        end = EventDuration(hours=24).add_to(start)

        assert end.hour == 10
        assert end.tzinfo == ny
