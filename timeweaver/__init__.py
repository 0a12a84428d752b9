"""timeweaver - calendar conflict, occupancy and what-if analytics over iCalendar data.

Typical use::

    from timeweaver import load_file, conflicts, utilization

    calendar = load_file("work.ics")
    for row in conflicts(calendar):
        print(row.uid_a, row.uid_b, row.minutes)
"""

__version__ = "0.1.0"

from timeweaver.calendar.ics_parser import EventAssembler, ParserPolicy, STRICT_POLICY, load, load_file
from timeweaver.calendar.models import (
    Calendar,
    ConflictRecord,
    DayOccupancy,
    DayStress,
    Event,
    GapRecord,
    HourOccupancy,
    HourStress,
    ImpactRecord,
    SimulationResult,
    UtilizationRow,
    convert_zone,
)
from timeweaver.core.exceptions import (
    ConfigError,
    DurationFormatError,
    FormatError,
    InvalidBucketError,
    StructureError,
    TimeWeaverError,
    UnknownTimezoneError,
    UnsupportedDatetimeError,
)
from timeweaver.core.timezone_utils import resolve_timezone
from timeweaver.domain.aggregation import occupancy_table, stress, stress_index, utilization
from timeweaver.domain.event_filter import filter_events
from timeweaver.domain.overlap import conflicts, find_overloads, overlap, simulate_event

__all__ = [
    "STRICT_POLICY",
    "Calendar",
    "ConfigError",
    "ConflictRecord",
    "DayOccupancy",
    "DayStress",
    "DurationFormatError",
    "Event",
    "EventAssembler",
    "FormatError",
    "GapRecord",
    "HourOccupancy",
    "HourStress",
    "ImpactRecord",
    "InvalidBucketError",
    "ParserPolicy",
    "SimulationResult",
    "StructureError",
    "TimeWeaverError",
    "UnknownTimezoneError",
    "UnsupportedDatetimeError",
    "UtilizationRow",
    "conflicts",
    "convert_zone",
    "filter_events",
    "find_overloads",
    "load",
    "load_file",
    "occupancy_table",
    "overlap",
    "resolve_timezone",
    "simulate_event",
    "stress",
    "stress_index",
    "utilization",
]
