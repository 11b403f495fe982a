"""In-memory repositories for facilities, bookings and the activity feed."""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone

from clubflow.domain.models import (
    ActivityEntry,
    Booking,
    BookingStatus,
    BookingType,
    Facility,
)


class FacilityRepository:
    """Dict-backed store for Facility instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Facility] = {}

    def add(self, facility: Facility) -> None:
        self._store[facility.id] = facility

    def get(self, facility_id: str) -> Facility | None:
        return self._store.get(facility_id)

    def list_for_club(self, club_id: int) -> list[Facility]:
        return [f for f in self._store.values() if f.club_id == club_id]


class BookingRepository:
    """Dict-backed store for Booking instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Booking] = {}

    def add(self, booking: Booking) -> None:
        self._store[booking.id] = booking

    def get(self, booking_id: str) -> Booking | None:
        return self._store.get(booking_id)

    def list_for_club(self, club_id: int) -> list[Booking]:
        return sorted(
            (b for b in self._store.values() if b.club_id == club_id),
            key=lambda b: b.start_time,
        )

    def list_active_for_facility(self, facility_id: str) -> list[Booking]:
        """Return the facility's bookings that still occupy it (not cancelled)."""
        return [
            b
            for b in self._store.values()
            if b.facility_id == facility_id and not b.is_cancelled
        ]

    def delete(self, booking_id: str) -> None:
        self._store.pop(booking_id, None)


class ActivityRepository:
    """List-backed store for ActivityEntry instances."""

    def __init__(self) -> None:
        self._entries: list[ActivityEntry] = []

    def add(self, entry: ActivityEntry) -> None:
        self._entries.append(entry)

    def list_for_club(self, club_id: int) -> list[ActivityEntry]:
        return sorted(
            [e for e in self._entries if e.club_id == club_id],
            key=lambda e: e.timestamp,
        )

    def list_for_booking(self, booking_id: str) -> list[ActivityEntry]:
        return [e for e in self._entries if e.booking_id == booking_id]


# ---------------------------------------------------------------------------
# Seed data – a demo club with a shared pitch and a single court
# ---------------------------------------------------------------------------


DEMO_CLUB_ID = 1


def seed_demo_data(
    facility_repo: FacilityRepository, booking_repo: BookingRepository
) -> None:
    tomorrow = datetime.now(timezone.utc).date() + timedelta(days=1)

    def at(hour: int, minute: int = 0) -> datetime:
        return datetime.combine(tomorrow, time(hour, minute), tzinfo=timezone.utc)

    pitch = Facility(
        club_id=DEMO_CLUB_ID,
        name="Main pitch",
        type="field",
        max_concurrent_bookings=2,
    )
    court = Facility(club_id=DEMO_CLUB_ID, name="Court 1", type="court")
    facility_repo.add(pitch)
    facility_repo.add(court)

    booking_repo.add(
        Booking(
            club_id=DEMO_CLUB_ID,
            facility_id=pitch.id,
            title="U12 training",
            start_time=at(17),
            end_time=at(18, 30),
            type=BookingType.TRAINING,
        )
    )
    booking_repo.add(
        Booking(
            club_id=DEMO_CLUB_ID,
            facility_id=pitch.id,
            title="U14 training",
            start_time=at(18),
            end_time=at(19, 30),
            type=BookingType.TRAINING,
        )
    )
    booking_repo.add(
        Booking(
            club_id=DEMO_CLUB_ID,
            facility_id=court.id,
            title="Club championship",
            start_time=at(10),
            end_time=at(12),
            type=BookingType.MATCH,
        )
    )
    booking_repo.add(
        Booking(
            club_id=DEMO_CLUB_ID,
            facility_id=court.id,
            title="Net repair",
            start_time=at(8),
            end_time=at(9),
            type=BookingType.MAINTENANCE,
            status=BookingStatus.CANCELLED,
        )
    )
