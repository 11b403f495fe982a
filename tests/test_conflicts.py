"""Tests for the conflict-detection and admission service."""

from datetime import datetime, timedelta, timezone

import pytest

from clubflow.domain.models import Booking, BookingStatus, Interval
from clubflow.services.conflicts import check_admission, find_conflicts

_DAY = datetime(2026, 6, 1, tzinfo=timezone.utc)


def _at(hour: int, minute: int = 0) -> datetime:
    return _DAY + timedelta(hours=hour, minutes=minute)


def _make_booking(
    start: datetime, end: datetime, title: str = "Existing", facility_id: str = "pitch"
) -> Booking:
    return Booking(
        club_id=1, facility_id=facility_id, title=title, start_time=start, end_time=end
    )


# ---------------------------------------------------------------------------
# find_conflicts
# ---------------------------------------------------------------------------


def test_no_overlap():
    """Bookings that don't overlap should not be returned as conflicts."""
    existing = [_make_booking(_at(8), _at(9))]
    conflicts = find_conflicts(
        new_start=_at(10), new_end=_at(11), existing_bookings=existing
    )
    assert conflicts == []


def test_partial_overlap():
    """A booking that partially overlaps should be returned as a conflict."""
    existing = [_make_booking(_at(9), _at(10, 30))]
    conflicts = find_conflicts(
        new_start=_at(10), new_end=_at(11), existing_bookings=existing
    )
    assert len(conflicts) == 1
    assert conflicts[0].start_time == _at(9)


def test_exact_boundary_no_conflict():
    """When existing.end_time == new_start, there is no conflict (boundary touch)."""
    existing = [_make_booking(_at(9), _at(10))]
    conflicts = find_conflicts(
        new_start=_at(10), new_end=_at(11), existing_bookings=existing
    )
    assert conflicts == []


def test_enclosing_booking_conflicts():
    existing = [_make_booking(_at(8), _at(12))]
    assert len(find_conflicts(_at(9), _at(10), existing)) == 1


# ---------------------------------------------------------------------------
# Interval.overlaps
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "a, b",
    [
        ((9, 10), (9, 10)),
        ((9, 11), (10, 12)),
        ((9, 12), (10, 11)),
        ((10, 11), (11, 12)),
        ((8, 9), (14, 15)),
    ],
)
def test_overlap_is_symmetric(a, b):
    first = Interval(start=_at(a[0]), end=_at(a[1]))
    second = Interval(start=_at(b[0]), end=_at(b[1]))
    assert first.overlaps(second) == second.overlaps(first)


def test_back_to_back_intervals_do_not_overlap():
    first = Interval(start=_at(10), end=_at(11))
    second = Interval(start=_at(11), end=_at(12))
    assert not first.overlaps(second)
    assert not second.overlaps(first)


def test_interval_rejects_inverted_range():
    with pytest.raises(ValueError):
        Interval(start=_at(11), end=_at(10))


def test_interval_coerce_applies_minimum_duration():
    interval = Interval.coerce(_at(11), _at(10))
    assert interval.start == _at(11)
    assert interval.end == _at(11, 30)


# ---------------------------------------------------------------------------
# check_admission
# ---------------------------------------------------------------------------


def test_scenario_capacity_two_is_full():
    existing = [
        _make_booking(_at(9), _at(10)),
        _make_booking(_at(9, 30), _at(10, 30)),
    ]
    proposed = Interval(start=_at(9, 45), end=_at(10, 15))

    result = check_admission("pitch", proposed, 2, existing)
    assert result.available is False
    assert result.conflict_count == 2
    assert result.current_bookings == 2

    result = check_admission("pitch", proposed, 3, existing)
    assert result.available is True
    assert result.capacity == 3


@pytest.mark.parametrize("capacity", [1, 2, 4])
def test_capacity_boundary(capacity):
    proposed = Interval(start=_at(10), end=_at(11))
    full = [_make_booking(_at(10), _at(11)) for _ in range(capacity)]

    assert check_admission("pitch", proposed, capacity, full).available is False
    assert check_admission("pitch", proposed, capacity, full[:-1]).available is True


def test_no_existing_bookings_is_available():
    proposed = Interval(start=_at(10), end=_at(11))
    result = check_admission("pitch", proposed, 1, [])
    assert result.available is True
    assert result.conflict_count == 0
    assert result.conflicting == []


@pytest.mark.parametrize("capacity", [0, -1])
def test_capacity_below_one_is_never_available(capacity):
    proposed = Interval(start=_at(10), end=_at(11))
    result = check_admission("pitch", proposed, capacity, [])
    assert result.available is False
    assert result.capacity == capacity


def test_self_exclusion_admits_unchanged_booking():
    own = _make_booking(_at(10), _at(11), title="Own")
    result = check_admission(
        "pitch", own.interval, 1, [own], exclude_reservation_id=own.id
    )
    assert result.available is True


def test_exclusion_keeps_display_count():
    """The edited booking is left out of the decision but still shown."""
    own = _make_booking(_at(10), _at(11), title="Own")
    other = _make_booking(_at(10, 30), _at(11, 30), title="Other")

    result = check_admission(
        "pitch", own.interval, 2, [own, other], exclude_reservation_id=own.id
    )

    assert result.available is True
    assert result.conflict_count == 1
    assert result.current_bookings == 2
    assert [b.id for b in result.conflicting] == [other.id]


def test_check_admission_does_not_mutate_inputs():
    existing = [_make_booking(_at(10), _at(11))]
    snapshot = [b.model_copy() for b in existing]
    check_admission("pitch", Interval(start=_at(10), end=_at(11)), 1, existing)
    assert existing == snapshot


def test_admission_result_json_shape():
    existing = [_make_booking(_at(10), _at(11))]
    result = check_admission("pitch", Interval(start=_at(10), end=_at(11)), 1, existing)
    data = result.model_dump(mode="json", by_alias=True)
    assert set(data) == {
        "available",
        "maxConcurrent",
        "currentBookings",
        "conflictingBookings",
    }
    assert data["conflictingBookings"][0]["id"] == existing[0].id


def test_cancelled_status_is_a_caller_filter():
    """The engine counts whatever it is given; callers drop cancelled bookings."""
    cancelled = _make_booking(_at(10), _at(11))
    cancelled.status = BookingStatus.CANCELLED
    active = [b for b in [cancelled] if not b.is_cancelled]
    assert check_admission("pitch", cancelled.interval, 1, active).available is True
