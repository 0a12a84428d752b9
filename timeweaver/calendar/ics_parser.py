"""iCalendar event assembler and Calendar loader.

The assembler is a two-state machine (outside / inside a VEVENT) holding one
in-progress draft. Leniency is explicit in ``ParserPolicy``: by default
unknown properties are skipped and incomplete events are dropped with a
diagnostic, while values that claim a supported format but cannot be decoded
abort the load.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from timeweaver.calendar.ics_lines import PropertyLine, split_property, unfold_lines
from timeweaver.calendar.ics_values import EventDuration, parse_datetime, parse_duration, unescape_text
from timeweaver.calendar.models import Calendar, Event
from timeweaver.core.exceptions import FormatError, StructureError
from timeweaver.core.timezone_utils import add_elapsed, elapsed_between

logger = logging.getLogger(__name__)

# Properties routed into the draft
RECOGNIZED_PROPERTIES = frozenset(
    {"UID", "SUMMARY", "CATEGORIES", "LOCATION", "DTSTART", "DTEND", "DURATION"}
)

# Standard VEVENT properties that are read past quietly even by a strict policy
KNOWN_IGNORED_PROPERTIES = frozenset(
    {
        "ATTACH",
        "ATTENDEE",
        "CLASS",
        "COMMENT",
        "CONTACT",
        "CREATED",
        "DESCRIPTION",
        "DTSTAMP",
        "EXDATE",
        "GEO",
        "LAST-MODIFIED",
        "ORGANIZER",
        "PRIORITY",
        "RDATE",
        "RECURRENCE-ID",
        "RELATED-TO",
        "REQUEST-STATUS",
        "RESOURCES",
        "RRULE",
        "SEQUENCE",
        "STATUS",
        "TRANSP",
        "URL",
    }
)


@dataclass(frozen=True)
class ParserPolicy:
    """Leniency switches for the assembler.

    Attributes:
        ignore_unknown_properties: Skip unrecognized event properties. When
            False, a non-standard property without an ``X-`` prefix raises
            StructureError.
        drop_incomplete_events: Drop events with no DTSTART or with
            ``start >= end`` (recorded in ``Calendar.warnings``). When False
            they raise StructureError.
        default_event_duration: Length given to an event with neither DTEND
            nor DURATION.
    """

    ignore_unknown_properties: bool = True
    drop_incomplete_events: bool = True
    default_event_duration: timedelta = timedelta(hours=1)


STRICT_POLICY = ParserPolicy(ignore_unknown_properties=False, drop_incomplete_events=False)


class AssemblerState(str, Enum):
    """Where the assembler is relative to VEVENT boundaries."""

    OUTSIDE = "outside"
    IN_EVENT = "in_event"


@dataclass
class _EventDraft:
    """Fields accumulated between BEGIN:VEVENT and END:VEVENT."""

    first_line: int
    uid: Optional[str] = None
    summary: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    duration: Optional[EventDuration] = None
    # VALUE=DATE flags; parsed but not carried onto Event
    start_is_date: bool = False
    end_is_date: bool = False
    # depth of nested components (VALARM, ...) whose lines are skipped
    nested: list[str] = field(default_factory=list)

    def label(self) -> str:
        return self.uid or f"<no UID, line {self.first_line}>"


class EventAssembler:
    """Turns a stream of logical lines into validated Events."""

    def __init__(self, policy: Optional[ParserPolicy] = None) -> None:
        self.policy = policy or ParserPolicy()
        self.state = AssemblerState.OUTSIDE
        self.warnings: list[str] = []
        self.dropped = 0
        self._draft: Optional[_EventDraft] = None

    def assemble(self, lines: Iterable[str]) -> Iterator[Event]:
        """Yield one Event per complete VEVENT in ``lines``.

        Raises:
            FormatError: A recognized property value could not be decoded
            StructureError: Structural defect under a strict policy
        """
        for lineno, line in enumerate(lines, start=1):
            event = self.feed(line, lineno)
            if event is not None:
                yield event

        if self.state is AssemblerState.IN_EVENT and self._draft is not None:
            self._drop(self._draft, "missing END:VEVENT before end of input")
            self._reset()

    def feed(self, line: str, lineno: int = 0) -> Optional[Event]:
        """Consume one logical line; return an Event when one completes."""
        prop = split_property(line)
        name = prop.name.strip().upper()
        marker = prop.value.strip().upper()

        if self.state is AssemblerState.OUTSIDE:
            if name == "BEGIN" and marker == "VEVENT":
                self._begin(lineno)
            # anything else outside an event body is ignored
            return None

        draft = self._draft
        assert draft is not None

        if name == "END" and marker == "VEVENT":
            self._reset()
            return self._finish(draft)

        if name == "BEGIN":
            if marker == "VEVENT":
                self._drop(draft, f"BEGIN:VEVENT on line {lineno} before END:VEVENT")
                self._begin(lineno)
            else:
                draft.nested.append(marker)
            return None

        if name == "END":
            if draft.nested and draft.nested[-1] == marker:
                draft.nested.pop()
            return None

        if draft.nested:
            return None

        self._route(draft, name, prop, lineno)
        return None

    def _begin(self, lineno: int) -> None:
        self.state = AssemblerState.IN_EVENT
        self._draft = _EventDraft(first_line=lineno)

    def _reset(self) -> None:
        self.state = AssemblerState.OUTSIDE
        self._draft = None

    def _route(self, draft: _EventDraft, name: str, prop: PropertyLine, lineno: int) -> None:
        if name not in RECOGNIZED_PROPERTIES:
            if (
                not self.policy.ignore_unknown_properties
                and name
                and not name.startswith("X-")
                and name not in KNOWN_IGNORED_PROPERTIES
            ):
                raise StructureError(f"Unknown property {name!r} on line {lineno}")
            return

        params = {key.strip().upper(): value for key, value in prop.params.items()}
        try:
            if name == "UID":
                draft.uid = unescape_text(prop.value)
            elif name == "SUMMARY":
                draft.summary = unescape_text(prop.value)
            elif name == "CATEGORIES":
                draft.category = unescape_text(prop.value)
            elif name == "LOCATION":
                draft.location = unescape_text(prop.value)
            elif name == "DTSTART":
                draft.start_is_date = params.get("VALUE", "").upper() == "DATE"
                draft.start = parse_datetime(prop.value, params.get("TZID"))
            elif name == "DTEND":
                draft.end_is_date = params.get("VALUE", "").upper() == "DATE"
                draft.end = parse_datetime(prop.value, params.get("TZID"))
            elif name == "DURATION":
                draft.duration = parse_duration(prop.value)
        except FormatError as e:
            logger.error("Failed to decode %s on line %d (event %s): %s", name, lineno, draft.label(), e)
            raise

    def _finish(self, draft: _EventDraft) -> Optional[Event]:
        if draft.start is None:
            self._drop(draft, "missing DTSTART")
            return None

        end = draft.end
        if end is None:
            if draft.duration is not None:
                end = draft.duration.add_to(draft.start)
            else:
                end = add_elapsed(draft.start, self.policy.default_event_duration)

        if elapsed_between(draft.start, end) <= timedelta(0):
            self._drop(draft, f"end {end.isoformat()} is not after start {draft.start.isoformat()}")
            return None

        return Event(
            uid=draft.uid,
            summary=draft.summary,
            start=draft.start,
            end=end,
            category=draft.category,
        )

    def _drop(self, draft: _EventDraft, reason: str) -> None:
        message = f"Dropped event {draft.label()}: {reason}"
        if not self.policy.drop_incomplete_events:
            raise StructureError(message)
        logger.warning(message)
        self.warnings.append(message)
        self.dropped += 1


def load(text: str, policy: Optional[ParserPolicy] = None) -> Calendar:
    """Parse iCalendar text into a Calendar.

    Args:
        text: Raw (folded) calendar text
        policy: Leniency policy; defaults to ParserPolicy()

    Returns:
        Calendar with events in file order and diagnostics for dropped events

    Raises:
        FormatError: A supported property could not be decoded
        StructureError: Structural defect under a strict policy
    """
    if text is None:
        raise TypeError("Calendar text cannot be None")

    assembler = EventAssembler(policy)
    events = list(assembler.assemble(unfold_lines(text)))
    logger.debug("Parsed %d events (%d dropped)", len(events), assembler.dropped)
    return Calendar(events=events, warnings=assembler.warnings)


def load_file(path: Union[str, Path], policy: Optional[ParserPolicy] = None) -> Calendar:
    """Read a UTF-8 ``.ics`` file and parse it with ``load``."""
    p = Path(path)
    logger.debug("Loading calendar from %s", p)
    return load(p.read_text(encoding="utf-8"), policy)
