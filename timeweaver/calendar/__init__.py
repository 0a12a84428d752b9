"""iCalendar ingestion: line unfolding, value decoding and event assembly."""
