"""Time-grid layout for the day and week calendar views.

Entries are placed on a vertical grid (one pixel row per fraction of an
hour) and overlapping entries are split into side-by-side columns.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field

from clubflow import config
from clubflow.domain.models import LayoutBlock, TimedEntry


class DisplayWindow(BaseModel):
    """Visible part of the day and its pixel scale."""

    model_config = ConfigDict(frozen=True)

    start_hour: float = config.CALENDAR_DAY_START_HOUR
    end_hour: float = config.CALENDAR_DAY_END_HOUR
    pixels_per_hour: float = Field(default=config.CALENDAR_PIXELS_PER_HOUR, gt=0)
    min_duration_hours: float = config.CALENDAR_MIN_DURATION_MINUTES / 60
    min_height: float = config.CALENDAR_MIN_BLOCK_HEIGHT
    timezone: str = config.CALENDAR_TIMEZONE

    @property
    def span_hours(self) -> float:
        return self.end_hour - self.start_hour

    @property
    def grid_height(self) -> float:
        return self.span_hours * self.pixels_per_hour

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def local_hours(moment: datetime, midnight: datetime) -> float:
    """Wall-clock hours from *midnight* to *moment* (may exceed 24)."""
    return (moment - midnight).total_seconds() / 3600


def entry_hours(entry: TimedEntry, window: DisplayWindow) -> tuple[float, float]:
    """Start and end of *entry* as hours into the day the entry starts on."""
    tz = window.tzinfo
    start = entry.interval.start.astimezone(tz)
    end = entry.interval.end.astimezone(tz)
    midnight = start.replace(hour=0, minute=0, second=0, microsecond=0)
    return local_hours(start, midnight), local_hours(end, midnight)


def time_position(
    start_hour: float, end_hour: float, window: DisplayWindow
) -> tuple[float, float]:
    """Return ``(top, height)`` in pixels for an entry spanning the given hours.

    Both ends are clamped into the window, the entry is stretched to the
    minimum visual duration, and the height never drops below
    ``window.min_height`` so short entries stay clickable.
    """
    clamped_start = max(window.start_hour, min(window.end_hour, start_hour))
    clamped_end = max(
        clamped_start + window.min_duration_hours, min(window.end_hour, end_hour)
    )

    top = (clamped_start - window.start_hour) * window.pixels_per_hour
    height = (clamped_end - clamped_start) * window.pixels_per_hour
    return top, max(height, window.min_height)


def _spans_overlap(start: float, end: float, other_start: float, other_end: float) -> bool:
    return not (end <= other_start or start >= other_end)


def group_and_layout(
    entries: Sequence[TimedEntry], window: DisplayWindow | None = None
) -> list[LayoutBlock]:
    """Position *entries* on the time grid and assign overlap columns.

    Entries are sorted by their top edge and each one joins the first group
    containing any entry it overlaps, otherwise it starts a new group.
    Groups are therefore chains of overlaps: two members of a group do not
    necessarily overlap each other. Every member of a group of N gets
    ``100 / N`` percent of the width, in sort order.
    """
    window = window or DisplayWindow()

    positioned = [
        (entry, *time_position(*entry_hours(entry, window), window))
        for entry in entries
    ]
    positioned.sort(key=lambda item: item[1])

    groups: list[list[tuple[TimedEntry, float, float]]] = []
    for item in positioned:
        _, top, height = item
        for group in groups:
            if any(
                _spans_overlap(top, top + height, g_top, g_top + g_height)
                for _, g_top, g_height in group
            ):
                group.append(item)
                break
        else:
            groups.append([item])

    blocks: list[LayoutBlock] = []
    for group in groups:
        width = 100 / len(group)
        for index, (entry, top, height) in enumerate(group):
            blocks.append(
                LayoutBlock(
                    key=entry.key,
                    source=entry.source,
                    title=entry.title,
                    start=entry.interval.start,
                    end=entry.interval.end,
                    facility_id=entry.facility_id,
                    top=top,
                    height=height,
                    column=index,
                    total_columns=len(group),
                    width=width,
                    left=index * width,
                    payload=entry.payload,
                )
            )

    return blocks
