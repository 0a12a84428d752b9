"""Exception hierarchy for calendar parsing and analysis.

Decode failures (bad datetime, bad duration, unknown timezone) abort the
whole load. Structural leniency (dropping incomplete events) is controlled by
``ParserPolicy`` and only raises in strict mode.
"""


class TimeWeaverError(Exception):
    """Base exception for all timeweaver errors."""


class FormatError(TimeWeaverError, ValueError):
    """A property value could not be decoded.

    Raised when:
    - A DTSTART/DTEND value has an unsupported length or malformed digits
    - A DURATION value does not match the supported pattern
    - A TZID names a timezone that cannot be resolved
    """


class UnsupportedDatetimeError(FormatError):
    """Datetime value has an unsupported length or malformed digits."""


class DurationFormatError(FormatError):
    """DURATION value does not match ``P[nD][T[nH][nM][nS]]``."""


class UnknownTimezoneError(FormatError):
    """Timezone name could not be resolved to a zone."""


class StructureError(TimeWeaverError):
    """Structural defect rejected by a strict parser policy.

    Raised when:
    - An event has no DTSTART or has inverted bounds and incomplete events
      are not dropped
    - An unrecognized property appears inside an event and unknown
      properties are not ignored
    """


class InvalidBucketError(TimeWeaverError, ValueError):
    """Aggregation granularity is outside the recognized set."""


class ConfigError(TimeWeaverError):
    """Configuration file exists but cannot be used."""
