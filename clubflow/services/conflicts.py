"""Service for detecting booking conflicts and checking facility capacity."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from clubflow.domain.models import AdmissionResult, Booking, Interval

logger = logging.getLogger(__name__)


def find_conflicts(
    new_start: datetime,
    new_end: datetime,
    existing_bookings: Sequence[Booking],
) -> list[Booking]:
    """Return existing bookings that overlap with the given time range.

    Overlap rule: conflict if new_start < existing.end_time AND new_end > existing.start_time.
    Exact boundary touches (end == start) are NOT considered conflicts.
    """
    return [
        booking
        for booking in existing_bookings
        if new_start < booking.end_time and new_end > booking.start_time
    ]


def check_admission(
    resource_id: str,
    proposed: Interval,
    capacity: int,
    existing: Sequence[Booking],
    exclude_reservation_id: str | None = None,
) -> AdmissionResult:
    """Decide whether *proposed* fits on a resource next to *existing*.

    *existing* must already be limited to the resource's non-cancelled
    bookings. The booking named by *exclude_reservation_id* (the one being
    edited) does not count towards the decision but is still included in
    ``current_bookings``, so an edited booking shows "2 of 2" both before
    and after saving. A capacity below 1 is never available.
    """
    all_conflicts = find_conflicts(proposed.start, proposed.end, existing)
    if exclude_reservation_id is not None:
        conflicts = [b for b in all_conflicts if b.id != exclude_reservation_id]
    else:
        conflicts = all_conflicts

    available = capacity >= 1 and len(conflicts) < capacity

    logger.debug(
        "Admission check resource=%s interval=%s..%s exclude=%s "
        "conflicts=%d after_exclusion=%d capacity=%d available=%s",
        resource_id,
        proposed.start.isoformat(),
        proposed.end.isoformat(),
        exclude_reservation_id,
        len(all_conflicts),
        len(conflicts),
        capacity,
        available,
    )

    return AdmissionResult(
        available=available,
        capacity=capacity,
        conflict_count=len(conflicts),
        current_bookings=len(all_conflicts),
        conflicting=conflicts,
    )
