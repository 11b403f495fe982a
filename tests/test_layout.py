"""Tests for the calendar time-grid layout."""

from datetime import datetime, timedelta, timezone

import pytest

from clubflow.domain.models import Interval, TimedEntry
from clubflow.services.layout import DisplayWindow, group_and_layout, time_position

_DAY = datetime(2026, 6, 1, tzinfo=timezone.utc)
_WINDOW = DisplayWindow(timezone="UTC")


def _entry(key: str, start_h: float, end_h: float) -> TimedEntry:
    return TimedEntry(
        key=key,
        source="booking",
        title=key,
        interval=Interval(
            start=_DAY + timedelta(hours=start_h), end=_DAY + timedelta(hours=end_h)
        ),
    )


def _by_key(blocks):
    return {b.key: b for b in blocks}


# ---------------------------------------------------------------------------
# time_position
# ---------------------------------------------------------------------------


def test_position_inside_window():
    assert time_position(8, 10, _WINDOW) == (100, 100)


def test_short_entry_gets_minimum_height():
    """A 10-minute entry at 08:00 is drawn 25px tall, not ~8px."""
    blocks = group_and_layout([_entry("short", 8, 8 + 10 / 60)], _WINDOW)
    assert blocks[0].top == 100
    assert blocks[0].height == 25


def test_entry_before_window_is_clamped():
    top, height = time_position(5, 7, _WINDOW)
    assert top == 0
    assert height == 50


def test_entry_past_midnight_is_clamped_to_window_end():
    blocks = group_and_layout([_entry("late", 23, 25)], _WINDOW)
    assert blocks[0].top == 850
    assert blocks[0].height == 50


def test_min_height_is_configurable():
    window = DisplayWindow(timezone="UTC", min_height=40, min_duration_hours=0.25)
    assert time_position(8, 8.1, window) == (100, 40)


def test_hours_are_read_in_window_timezone():
    window = DisplayWindow(timezone="Europe/Zurich")
    # 07:00 UTC is 09:00 in Zurich during summer time
    blocks = group_and_layout([_entry("local", 7, 8)], window)
    assert blocks[0].top == 150
    assert blocks[0].height == 50


# ---------------------------------------------------------------------------
# grouping and columns
# ---------------------------------------------------------------------------


def test_empty_input():
    assert group_and_layout([], _WINDOW) == []


def test_separate_entries_use_full_width():
    blocks = _by_key(group_and_layout([_entry("a", 8, 9), _entry("b", 10, 11)], _WINDOW))
    for block in blocks.values():
        assert block.total_columns == 1
        assert block.width == 100
        assert block.left == 0


def test_back_to_back_entries_are_not_grouped():
    blocks = group_and_layout([_entry("a", 8, 9), _entry("b", 9, 10)], _WINDOW)
    assert all(b.total_columns == 1 for b in blocks)


def test_overlapping_entries_share_width_in_start_order():
    blocks = _by_key(
        group_and_layout([_entry("later", 9, 11), _entry("first", 8, 10)], _WINDOW)
    )
    assert blocks["first"].column == 0
    assert blocks["later"].column == 1
    assert blocks["first"].width == 50
    assert blocks["later"].left == 50


def test_transitive_overlap_chain_forms_one_group():
    """a and c do not overlap, but both overlap b, so all three share a group."""
    blocks = _by_key(
        group_and_layout(
            [_entry("a", 9, 10), _entry("b", 9.5, 11), _entry("c", 10.5, 12)], _WINDOW
        )
    )
    assert {b.total_columns for b in blocks.values()} == {3}
    assert [blocks[k].column for k in ("a", "b", "c")] == [0, 1, 2]


@pytest.mark.parametrize("size", [2, 3, 5])
def test_group_columns_are_disjoint_and_fill_width(size):
    entries = [_entry(f"e{i}", 10, 12) for i in range(size)]
    blocks = sorted(group_and_layout(entries, _WINDOW), key=lambda b: b.left)

    assert all(b.total_columns == size for b in blocks)
    assert sum(b.width for b in blocks) == pytest.approx(100)
    for current, following in zip(blocks, blocks[1:]):
        assert current.left + current.width == pytest.approx(following.left)


def test_minimum_height_can_create_overlap():
    """Two 10-minute entries 15 minutes apart overlap once stretched."""
    blocks = group_and_layout(
        [_entry("a", 8, 8 + 10 / 60), _entry("b", 8.25, 8.25 + 10 / 60)], _WINDOW
    )
    assert all(b.total_columns == 2 for b in blocks)


def test_layout_is_idempotent_on_its_own_output():
    entries = [
        _entry("early", 4, 5),
        _entry("short", 8, 8 + 5 / 60),
        _entry("long", 9, 13),
        _entry("late", 23.5, 26),
    ]
    first = group_and_layout(entries, _WINDOW)

    replay = [
        _entry(
            b.key,
            b.top / _WINDOW.pixels_per_hour + _WINDOW.start_hour,
            (b.top + b.height) / _WINDOW.pixels_per_hour + _WINDOW.start_hour,
        )
        for b in first
    ]
    second = _by_key(group_and_layout(replay, _WINDOW))

    for block in first:
        assert second[block.key].top == pytest.approx(block.top)
        assert second[block.key].height == pytest.approx(block.height)
