"""Core infrastructure: timezones, configuration, logging and errors."""
