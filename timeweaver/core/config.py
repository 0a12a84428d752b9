"""timeweaver.core.config

Lightweight config loader for timeweaver analysis runs.

- Reads YAML (PyYAML); JSON files load too since JSON is valid YAML.
- Environment variables (``TIMEWEAVER_*``) override file values.
- Exposes a typed dataclass `AnalysisConfig` and a `load_config()` helper that
  accepts an optional path override.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from .exceptions import ConfigError

if TYPE_CHECKING:
    from timeweaver.calendar.ics_parser import ParserPolicy

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.cwd() / "timeweaver.yaml"


@dataclass
class AnalysisConfig:
    """Typed configuration for one analysis run.

    The analysis functions take plain arguments and never read a config
    themselves; callers pass the values explicitly, e.g.
    ``load(text, cfg.parser_policy())``,
    ``find_overloads(calendar, threshold=cfg.overload_threshold)`` and
    ``stress_index(calendar, zone=cfg.default_timezone,
    saturation_minutes=cfg.stress_saturation_minutes)``. ``log_level`` mirrors
    ``TIMEWEAVER_LOG_LEVEL``, which ``configure_logging`` reads as well.

    Fields:
        default_timezone: zone used for bucketing when the caller names none
        overload_threshold_minutes: gap below which adjacent events are flagged
        stress_saturation_minutes: busy minutes at which stress reaches ~63.2
        ignore_unknown_properties: skip unrecognized event properties
        drop_incomplete_events: drop events without a usable start/end
        default_event_minutes: length given to events with no DTEND/DURATION
        log_level: logging level name
    """

    default_timezone: str = "UTC"
    overload_threshold_minutes: int = 15
    stress_saturation_minutes: float = 240.0
    ignore_unknown_properties: bool = True
    drop_incomplete_events: bool = True
    default_event_minutes: int = 60
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> AnalysisConfig:
        """Create a config from a plain mapping, applying defaults and validation.

        Numeric-like values are coerced, booleans accept the usual string
        spellings, and out-of-range values fall back to defaults with a warning.
        """
        if data is None:
            data = {}

        def _coerce_int(key: str, default: int, minimum: int) -> int:
            raw = data.get(key, default)
            try:
                value = int(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not an int; using default %d", key, raw, default)
                return default
            if value < minimum:
                logger.warning("Config %s=%d below minimum %d; using default %d", key, value, minimum, default)
                return default
            return value

        def _coerce_bool(key: str, default: bool) -> bool:
            raw = data.get(key, default)
            if isinstance(raw, bool):
                return raw
            if isinstance(raw, str) and raw.strip().lower() in ("1", "true", "yes", "on"):
                return True
            if isinstance(raw, str) and raw.strip().lower() in ("0", "false", "no", "off"):
                return False
            logger.warning("Config %s=%r is not a boolean; using default %s", key, raw, default)
            return default

        saturation_raw = data.get("stress_saturation_minutes", 240.0)
        try:
            saturation = float(saturation_raw)
        except (TypeError, ValueError):
            logger.warning("Config stress_saturation_minutes=%r is not a number; using 240", saturation_raw)
            saturation = 240.0
        if saturation <= 0:
            logger.warning("stress_saturation_minutes %s must be positive; using 240", saturation)
            saturation = 240.0

        default_tz = data.get("default_timezone", "UTC")
        default_tz = str(default_tz) if default_tz else "UTC"

        log_level = data.get("log_level", "INFO")
        log_level = str(log_level).upper() if log_level is not None else "INFO"

        return cls(
            default_timezone=default_tz,
            overload_threshold_minutes=_coerce_int("overload_threshold_minutes", 15, 0),
            stress_saturation_minutes=saturation,
            ignore_unknown_properties=_coerce_bool("ignore_unknown_properties", True),
            drop_incomplete_events=_coerce_bool("drop_incomplete_events", True),
            default_event_minutes=_coerce_int("default_event_minutes", 60, 1),
            log_level=log_level,
        )

    @property
    def overload_threshold(self) -> timedelta:
        return timedelta(minutes=self.overload_threshold_minutes)

    def parser_policy(self) -> ParserPolicy:
        """Build the parser leniency policy described by this config."""
        from timeweaver.calendar.ics_parser import ParserPolicy

        return ParserPolicy(
            ignore_unknown_properties=self.ignore_unknown_properties,
            drop_incomplete_events=self.drop_incomplete_events,
            default_event_duration=timedelta(minutes=self.default_event_minutes),
        )


# Environment variable -> config key
ENV_KEYS: dict[str, str] = {
    "TIMEWEAVER_DEFAULT_TIMEZONE": "default_timezone",
    "TIMEWEAVER_OVERLOAD_THRESHOLD_MINUTES": "overload_threshold_minutes",
    "TIMEWEAVER_STRESS_SATURATION_MINUTES": "stress_saturation_minutes",
    "TIMEWEAVER_IGNORE_UNKNOWN_PROPERTIES": "ignore_unknown_properties",
    "TIMEWEAVER_DROP_INCOMPLETE_EVENTS": "drop_incomplete_events",
    "TIMEWEAVER_DEFAULT_EVENT_MINUTES": "default_event_minutes",
    "TIMEWEAVER_LOG_LEVEL": "log_level",
}


def config_from_env() -> dict[str, Any]:
    """Collect config overrides from ``TIMEWEAVER_*`` environment variables."""
    cfg: dict[str, Any] = {}
    for env_key, cfg_key in ENV_KEYS.items():
        value = os.environ.get(env_key)
        if value:
            cfg[cfg_key] = value
    return cfg


def _load_yaml(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Unable to parse config file {path}: {exc}") from exc
    # safe_load returns None for empty files
    return {} if loaded is None else loaded


def load_config(path: str | Path | None = None, use_env: bool = True) -> AnalysisConfig:
    """Load configuration from a YAML/JSON file and return an AnalysisConfig.

    Args:
        path: Optional path to the config file. Defaults to ./timeweaver.yaml.
        use_env: Apply ``TIMEWEAVER_*`` environment overrides on top of the file.

    Behavior:
    - If the file is missing: defaults (plus environment overrides).
    - If the file exists but its top level is not a mapping: raises ConfigError.
    """
    p = Path(path) if path else DEFAULT_CONFIG_PATH
    logger.debug("Attempting to load config from %s", p)

    raw: dict[str, Any] = {}
    if p.exists():
        loaded = _load_yaml(p)
        if not isinstance(loaded, dict):
            logger.warning("Config file %s parsed but top-level is not a mapping: %r", p, loaded)
            raise ConfigError("Config file must contain a mapping at top level")
        raw.update(loaded)
        logger.info("Loaded configuration from %s", p)
    else:
        logger.info("Config file %s not found; using defaults", p)

    if use_env:
        overrides = config_from_env()
        if overrides:
            logger.debug("Applying environment overrides for keys: %s", ", ".join(sorted(overrides)))
        raw.update(overrides)

    cfg = AnalysisConfig.from_dict(raw)
    logger.debug("Configuration values: %s", cfg)
    return cfg
