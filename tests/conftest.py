"""Shared fixtures for timeweaver tests."""

from collections.abc import Callable, Generator
from datetime import datetime, timedelta
from typing import Any, Optional
from zoneinfo import ZoneInfo

import pytest

from timeweaver.calendar.models import Calendar, Event

UTC = ZoneInfo("UTC")


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "smoke: Basic smoke tests")


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Keep TIMEWEAVER_* environment variables from leaking between tests."""
    for key in (
        "TIMEWEAVER_DEBUG",
        "TIMEWEAVER_LOG_LEVEL",
        "TIMEWEAVER_DEFAULT_TIMEZONE",
        "TIMEWEAVER_OVERLOAD_THRESHOLD_MINUTES",
        "TIMEWEAVER_STRESS_SATURATION_MINUTES",
        "TIMEWEAVER_IGNORE_UNKNOWN_PROPERTIES",
        "TIMEWEAVER_DROP_INCOMPLETE_EVENTS",
        "TIMEWEAVER_DEFAULT_EVENT_MINUTES",
    ):
        monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def make_event() -> Callable[..., Event]:
    """Factory for events on 2025-09-01 (a Monday) given as HH:MM strings."""

    def _make(
        uid: Optional[str],
        start: str,
        end: str,
        day: int = 1,
        tz: ZoneInfo = UTC,
        summary: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Event:
        sh, sm = (int(part) for part in start.split(":"))
        eh, em = (int(part) for part in end.split(":"))
        start_dt = datetime(2025, 9, day, sh, sm, tzinfo=tz)
        end_dt = datetime(2025, 9, day, eh, em, tzinfo=tz)
        if end_dt <= start_dt:
            end_dt += timedelta(days=1)
        return Event(uid=uid, summary=summary or uid, start=start_dt, end=end_dt, category=category)

    return _make


@pytest.fixture
def make_calendar() -> Callable[..., Calendar]:
    """Wrap events into a Calendar."""

    def _make(*events: Event) -> Calendar:
        return Calendar(events=list(events))

    return _make


SAMPLE_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Test//Test//EN
BEGIN:VEVENT
UID:standup-1
SUMMARY:Daily standup
CATEGORIES:Work
DTSTART;TZID=Europe/Istanbul:20250812T100000
DTEND;TZID=Europe/Istanbul:20250812T110000
END:VEVENT
BEGIN:VEVENT
UID:review-1
SUMMARY:Design review\\, round 2
DTSTART;TZID=Europe/Istanbul:20250812T103000
DURATION:PT45M
END:VEVENT
BEGIN:VEVENT
UID:lunch-1
SUMMARY:Lunch
DTSTART:20250812T090000Z
END:VEVENT
END:VCALENDAR
"""


@pytest.fixture
def sample_ics() -> str:
    """Three events: two overlapping Istanbul meetings and a UTC lunch."""
    return SAMPLE_ICS
