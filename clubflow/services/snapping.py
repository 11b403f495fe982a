"""Drag, drop and resize helpers that snap calendar gestures to time slots."""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta

from pydantic import BaseModel, ConfigDict

from clubflow import config
from clubflow.domain.models import MIN_DURATION, Interval
from clubflow.services.layout import DisplayWindow

SNAP_STEP_HOURS = config.CALENDAR_SNAP_MINUTES / 60


def round_half_up(value: float, step: float = SNAP_STEP_HOURS) -> float:
    """Round *value* to the nearest multiple of *step*; halves round up.

    ``round()`` would round halves to even, which makes 0.25 h and 0.75 h
    snap in different directions.
    """
    return math.floor(value / step + 0.5) * step


def snap_hours(
    pixel_delta: float,
    pixels_per_hour: float = config.CALENDAR_PIXELS_PER_HOUR,
    step_hours: float = SNAP_STEP_HOURS,
) -> float:
    """Convert a vertical drag distance into a snapped number of hours."""
    return round_half_up(pixel_delta / pixels_per_hour, step_hours)


def snap_drop_hour(
    offset_y: float, grid_height: float, window: DisplayWindow | None = None
) -> float:
    """Hour of day under a drop at *offset_y* pixels into a grid *grid_height* tall."""
    window = window or DisplayWindow()
    total_hours = (offset_y / grid_height) * window.span_hours
    return round_half_up(total_hours) + window.start_hour


def move_interval(
    interval: Interval,
    day: date,
    hour: float,
    window: DisplayWindow | None = None,
) -> Interval:
    """Move *interval* to start at *hour* on *day*, keeping its duration.

    *hour* is snapped to the slot grid and read in the window's timezone.
    """
    window = window or DisplayWindow()
    midnight = datetime(day.year, day.month, day.day, tzinfo=window.tzinfo)
    start = midnight + timedelta(hours=round_half_up(hour))
    return Interval(start=start, end=start + interval.duration)


# ---------------------------------------------------------------------------
# Resize
# ---------------------------------------------------------------------------


class ResizeHandle(BaseModel):
    """State of one resize gesture, owned by whoever started it."""

    model_config = ConfigDict(frozen=True)

    booking_id: str
    interval: Interval
    origin_y: float
    pixels_per_hour: float = config.CALENDAR_PIXELS_PER_HOUR


def begin_resize(
    booking_id: str,
    interval: Interval,
    origin_y: float,
    window: DisplayWindow | None = None,
) -> ResizeHandle:
    window = window or DisplayWindow()
    return ResizeHandle(
        booking_id=booking_id,
        interval=interval,
        origin_y=origin_y,
        pixels_per_hour=window.pixels_per_hour,
    )


def _resized_end(handle: ResizeHandle, pointer_y: float) -> datetime:
    delta = snap_hours(pointer_y - handle.origin_y, handle.pixels_per_hour)
    return handle.interval.end + timedelta(hours=delta)


def preview_resize(
    handle: ResizeHandle, pointer_y: float, window: DisplayWindow | None = None
) -> float | None:
    """Hour of day the end edge would snap to, or None when off the grid."""
    window = window or DisplayWindow()
    end = _resized_end(handle, pointer_y).astimezone(window.tzinfo)
    hour = end.hour + end.minute / 60
    if window.start_hour <= hour <= window.end_hour:
        return hour
    return None


def end_resize(
    handle: ResizeHandle,
    pointer_y: float,
    min_duration: timedelta = MIN_DURATION,
) -> Interval:
    """Finish the gesture and return the resized interval.

    An end dragged onto or above the start is pushed to start + *min_duration*.
    """
    return Interval.coerce(
        handle.interval.start, _resized_end(handle, pointer_y), min_duration
    )
