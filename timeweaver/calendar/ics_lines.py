"""Line unfolding and property splitting for iCalendar text.

RFC 5545 folds long content lines by inserting a line break followed by a
single space or tab. Unfolding removes exactly that break and one whitespace
character, so folded text reconstructs the logical line byte for byte.
"""

import re
from collections.abc import Iterator
from typing import NamedTuple

_LINE_BREAK = re.compile(r"\r?\n")
_CONTINUATION = (" ", "\t")


class PropertyLine(NamedTuple):
    """A logical line split into ``NAME;PARAM=VALUE:VALUE`` parts."""

    name: str
    params: dict[str, str]
    value: str


def unfold_lines(text: str) -> Iterator[str]:
    """Yield logical lines from raw iCalendar text.

    A physical line starting with one space or tab continues the previous
    logical line: that character is dropped and the remainder appended with
    no separator. Calling the function again restarts the sequence.

    Args:
        text: Raw calendar text

    Yields:
        Logical (unfolded) lines in input order
    """
    pending: str | None = None
    for physical in _LINE_BREAK.split(text):
        if pending is not None and physical.startswith(_CONTINUATION):
            pending += physical[1:]
            continue
        if pending is not None:
            yield pending
        pending = physical
    if pending is not None:
        yield pending


def fold_line(line: str, width: int = 75) -> str:
    """Fold a logical line into physical lines of at most ``width`` characters.

    Continuation lines start with a single space, which counts toward the width.
    """
    if width < 2:
        raise ValueError("width must be at least 2")
    if len(line) <= width:
        return line
    parts = [line[:width]]
    rest = line[width:]
    while rest:
        parts.append(" " + rest[: width - 1])
        rest = rest[width - 1 :]
    return "\r\n".join(parts)


def split_property(line: str) -> PropertyLine:
    """Split a logical line into name, parameters and value.

    The value starts after the first ``:``; a line without one has an empty
    value. Parameter tokens without ``=`` are dropped. Never raises.

    Examples:
        >>> split_property("DTSTART;TZID=Europe/Istanbul:20250812T140000")
        PropertyLine(name='DTSTART', params={'TZID': 'Europe/Istanbul'}, value='20250812T140000')
    """
    head, sep, value = line.partition(":")
    if not sep:
        value = ""
    name, *tokens = head.split(";")
    params: dict[str, str] = {}
    for token in tokens:
        key, eq, param_value = token.partition("=")
        if eq:
            params[key] = param_value
    return PropertyLine(name, params, value)
