"""Service for expanding recurring bookings into individual occurrences."""

from __future__ import annotations

from datetime import date, datetime, time, timezone, tzinfo

from dateutil.rrule import DAILY, MONTHLY, WEEKLY, rrule

from clubflow.domain.models import Interval, RecurrencePattern
from clubflow.services.layout import DisplayWindow

_FREQ_MAP = {
    RecurrencePattern.DAILY: DAILY,
    RecurrencePattern.WEEKLY: WEEKLY,
    RecurrencePattern.MONTHLY: MONTHLY,
}


def expand_series(
    first: Interval,
    pattern: RecurrencePattern,
    until: date,
    tz: tzinfo | None = None,
) -> list[Interval]:
    """Expand *first* into one interval per occurrence up to and including *until*.

    Occurrences repeat the wall-clock start time of *first* in *tz* (the
    display timezone by default), so a weekly 18:00 session stays at 18:00
    across daylight-saving changes. Every occurrence keeps the duration of
    *first* and is returned in UTC. Monthly series follow RFC 5545 and skip
    months that lack the start day (e.g. the 31st).
    """
    tz = tz or DisplayWindow().tzinfo
    duration = first.duration
    local_start = first.start.astimezone(tz)
    until_dt = datetime.combine(until, time.max, tzinfo=tz)
    rule = rrule(_FREQ_MAP[pattern], dtstart=local_start, until=until_dt)

    occurrences = []
    for dt in rule:
        start = dt.astimezone(timezone.utc)
        occurrences.append(Interval(start=start, end=start + duration))
    return occurrences
