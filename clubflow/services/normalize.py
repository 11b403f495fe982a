"""Service for reducing bookings, events and birthdays to timed calendar entries.

This is the only place that knows how each kind of entry stores its times;
layout and conflict checks only ever see ``TimedEntry`` / ``Interval``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import dateparser

from clubflow.domain.models import (
    BirthdayEntry,
    BookingEntry,
    ClubMember,
    EventEntry,
    Interval,
    TimedEntry,
)
from clubflow.services.layout import DisplayWindow

logger = logging.getLogger(__name__)

_CLOCK_TIME = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")

# Birthdays carry no time; they occupy the default 08:00-09:00 slot
BIRTHDAY_START_HOUR = 8
BIRTHDAY_DURATION = timedelta(hours=1)


def _midnight(day: date, tz: ZoneInfo) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=tz)


def resolve_end_time(
    start: datetime, raw: str | None, window: DisplayWindow | None = None
) -> datetime:
    """Resolve an event end given as ``"HH:MM"``, an ISO datetime or loose text.

    Clock times are taken on the (local) day of *start*. Anything that cannot
    be read falls back to *start*, which the caller stretches to the minimum
    duration.
    """
    if not raw:
        return start

    window = window or DisplayWindow()
    tz = window.tzinfo
    local_start = start.astimezone(tz)

    m = _CLOCK_TIME.match(raw)
    if m:
        return _midnight(local_start.date(), tz) + timedelta(
            hours=int(m.group(1)), minutes=int(m.group(2))
        )

    try:
        parsed = datetime.fromisoformat(raw.strip())
    except ValueError:
        parsed = dateparser.parse(
            raw,
            settings={
                "RELATIVE_BASE": local_start.replace(tzinfo=None),
                "RETURN_AS_TIMEZONE_AWARE": False,
            },
        )

    if parsed is None:
        logger.warning("Could not read end time %r, using start time", raw)
        return start
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def normalize_entry(
    entry: BookingEntry | EventEntry | BirthdayEntry,
    window: DisplayWindow | None = None,
) -> TimedEntry:
    """Return the single timed shape used by the layout and conflict code."""
    window = window or DisplayWindow()

    if isinstance(entry, BookingEntry):
        booking = entry.booking
        return TimedEntry(
            key=booking.id,
            source=entry.source,
            title=booking.title,
            interval=booking.interval,
            facility_id=booking.facility_id,
            payload={"type": booking.type.value, "status": booking.status.value},
        )

    if isinstance(entry, EventEntry):
        end = resolve_end_time(entry.start_time, entry.end_time, window)
        return TimedEntry(
            key=entry.id,
            source=entry.source,
            title=entry.title,
            interval=Interval.coerce(entry.start_time, end),
            payload={"location": entry.location},
        )

    if isinstance(entry, BirthdayEntry):
        start = _midnight(entry.day, window.tzinfo) + timedelta(
            hours=BIRTHDAY_START_HOUR
        )
        return TimedEntry(
            key=f"birthday:{entry.name}:{entry.day.isoformat()}",
            source=entry.source,
            title=entry.name,
            interval=Interval(start=start, end=start + BIRTHDAY_DURATION),
            payload={"isPlayer": entry.is_player},
        )

    raise TypeError(f"Unsupported calendar entry: {type(entry).__name__}")


def normalize_entries(
    entries: Sequence[BookingEntry | EventEntry | BirthdayEntry],
    window: DisplayWindow | None = None,
) -> list[TimedEntry]:
    return [normalize_entry(entry, window) for entry in entries]


def birthdays_on(members: Iterable[ClubMember], day: date) -> list[BirthdayEntry]:
    """Birthday entries for every member born on the month and day of *day*."""
    return [
        BirthdayEntry(
            name=f"{member.first_name} {member.last_name}",
            day=day,
            is_player=bool(member.position),
        )
        for member in members
        if member.birth_date is not None
        and member.birth_date.month == day.month
        and member.birth_date.day == day.day
    ]
