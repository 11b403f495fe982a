"""Service for creating and changing bookings under the facility capacity rules.

Every write that can add load to a facility holds that facility's lock
while it re-runs the availability check and stores the result, so two
concurrent requests cannot both take the last free slot. The loser is
rejected, not queued.
"""

from __future__ import annotations

import logging
import threading
from contextlib import AbstractContextManager, nullcontext
from datetime import date, datetime, timezone
from typing import NoReturn

from pydantic import ValidationError

from clubflow import config
from clubflow.domain.bus import EventBus
from clubflow.domain.events import (
    BookingCancelled,
    BookingCreated,
    BookingRejected,
    BookingRescheduled,
)
from clubflow.domain.models import (
    AdmissionResult,
    Booking,
    BookingCreate,
    BookingStatus,
    BookingUpdate,
    Interval,
)
from clubflow.repos.memory import BookingRepository, FacilityRepository
from clubflow.services.conflicts import check_admission
from clubflow.services.layout import DisplayWindow
from clubflow.services.recurrence import expand_series
from clubflow.services.snapping import begin_resize, end_resize, move_interval

logger = logging.getLogger(__name__)

_SCHEDULING_FIELDS = ("facility_id", "start_time", "end_time")


class BookingError(Exception):
    """Base class for booking failures reported to the client."""


class FacilityNotFoundError(BookingError):
    def __init__(self, facility_id: str) -> None:
        super().__init__(f"Facility {facility_id} not found")
        self.facility_id = facility_id


class BookingNotFoundError(BookingError):
    def __init__(self, booking_id: str) -> None:
        super().__init__(f"Booking {booking_id} not found")
        self.booking_id = booking_id


class InvalidBookingError(BookingError):
    pass


class BookingUnavailableError(BookingError):
    def __init__(self, availability: AdmissionResult) -> None:
        super().__init__(
            "Facility is not available at the requested time. "
            f"At most {availability.capacity} booking(s) allowed, "
            f"currently {availability.current_bookings} booking(s)."
        )
        self.availability = availability


class BookingService:
    def __init__(
        self,
        bus: EventBus,
        facility_repo: FacilityRepository,
        booking_repo: BookingRepository,
    ) -> None:
        self.bus = bus
        self.facility_repo = facility_repo
        self.booking_repo = booking_repo
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _facility_lock(self, facility_id: str | None) -> AbstractContextManager:
        if facility_id is None:
            return nullcontext()
        with self._locks_guard:
            return self._locks.setdefault(facility_id, threading.Lock())

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def check_availability(
        self,
        facility_id: str | None,
        start_time: datetime,
        end_time: datetime,
        exclude_booking_id: str | None = None,
        club_id: int | None = None,
    ) -> AdmissionResult:
        """Check a time range against a facility's non-cancelled bookings.

        Bookings without a facility are club events and are always
        available. An inverted range is stretched to the minimum duration
        before checking. When *club_id* is given, a facility owned by
        another club is reported as not found.
        """
        if facility_id is None:
            return AdmissionResult(
                available=True,
                capacity=config.EVENT_MAX_CONCURRENT,
                conflict_count=0,
                current_bookings=0,
            )

        facility = self.facility_repo.get(facility_id)
        if facility is None or (club_id is not None and facility.club_id != club_id):
            raise FacilityNotFoundError(facility_id)

        return check_admission(
            facility.id,
            Interval.coerce(start_time, end_time),
            facility.capacity.max_concurrent,
            self.booking_repo.list_active_for_facility(facility.id),
            exclude_reservation_id=exclude_booking_id,
        )

    def get_booking(self, club_id: int, booking_id: str) -> Booking:
        booking = self.booking_repo.get(booking_id)
        if booking is None or booking.club_id != club_id:
            raise BookingNotFoundError(booking_id)
        return booking

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _reject(self, booking: Booking, availability: AdmissionResult) -> NoReturn:
        self.bus.publish(
            BookingRejected(
                club_id=booking.club_id,
                facility_id=booking.facility_id,
                title=booking.title,
                start_time=booking.start_time,
                end_time=booking.end_time,
                current_bookings=availability.current_bookings,
                max_concurrent=availability.capacity,
                booking_id=booking.id if self.booking_repo.get(booking.id) else None,
            )
        )
        raise BookingUnavailableError(availability)

    def create_booking(self, club_id: int, data: BookingCreate) -> Booking:
        booking = Booking(club_id=club_id, **data.model_dump())

        with self._facility_lock(booking.facility_id):
            availability = self.check_availability(
                booking.facility_id,
                booking.start_time,
                booking.end_time,
                club_id=club_id,
            )
            if not availability.available:
                self._reject(booking, availability)
            self.booking_repo.add(booking)

        self.bus.publish(BookingCreated(booking_id=booking.id))
        return booking

    def create_series(self, club_id: int, data: BookingCreate) -> list[Booking]:
        """Create one booking per occurrence of a recurring booking.

        The first occurrence must be free. Later occurrences that collide
        with existing bookings are skipped. Only the first stored booking
        keeps the recurrence settings.
        """
        first = Interval(start=data.start_time, end=data.end_time)
        occurrences = (
            expand_series(first, data.recurring_pattern, data.recurring_until)
            or [first]
        )
        fields = data.model_dump(
            exclude={
                "start_time",
                "end_time",
                "recurring",
                "recurring_pattern",
                "recurring_until",
            }
        )

        created: list[Booking] = []
        for interval in occurrences:
            is_main = not created
            booking = Booking(
                club_id=club_id,
                start_time=interval.start,
                end_time=interval.end,
                recurring=is_main,
                recurring_pattern=data.recurring_pattern if is_main else None,
                recurring_until=data.recurring_until if is_main else None,
                **fields,
            )
            with self._facility_lock(booking.facility_id):
                availability = self.check_availability(
                    booking.facility_id,
                    booking.start_time,
                    booking.end_time,
                    club_id=club_id,
                )
                if not availability.available:
                    if is_main:
                        self._reject(booking, availability)
                    logger.info(
                        "Skipping occurrence %s of %r: facility %s unavailable",
                        interval.start.isoformat(),
                        booking.title,
                        booking.facility_id,
                    )
                    continue
                self.booking_repo.add(booking)

            created.append(booking)
            self.bus.publish(BookingCreated(booking_id=booking.id))

        logger.info("Created %d booking(s) for series %r", len(created), data.title)
        return created

    def update_booking(
        self, club_id: int, booking_id: str, changes: BookingUpdate
    ) -> Booking:
        """Apply a partial update, re-checking capacity when the booking moves.

        The booking itself is excluded from the check so it cannot conflict
        with its own previous time range.
        """
        updates = changes.model_dump(exclude_unset=True)
        current = self.get_booking(club_id, booking_id)
        facility_id = updates.get("facility_id", current.facility_id)

        with self._facility_lock(facility_id):
            current = self.get_booking(club_id, booking_id)
            try:
                candidate = Booking.model_validate(
                    {
                        **current.model_dump(),
                        **updates,
                        "updated_at": datetime.now(timezone.utc),
                    }
                )
            except ValidationError as exc:
                raise InvalidBookingError(str(exc)) from exc

            moved = any(field in updates for field in _SCHEDULING_FIELDS)
            reactivated = current.is_cancelled and not candidate.is_cancelled
            if (
                (moved or reactivated)
                and candidate.facility_id is not None
                and not candidate.is_cancelled
            ):
                availability = self.check_availability(
                    candidate.facility_id,
                    candidate.start_time,
                    candidate.end_time,
                    exclude_booking_id=candidate.id,
                    club_id=club_id,
                )
                if not availability.available:
                    self._reject(candidate, availability)

            self.booking_repo.add(candidate)

        if moved:
            self.bus.publish(
                BookingRescheduled(
                    booking_id=candidate.id,
                    previous_start=current.start_time,
                    previous_end=current.end_time,
                    previous_facility_id=current.facility_id,
                )
            )
        if candidate.is_cancelled and not current.is_cancelled:
            self.bus.publish(BookingCancelled(booking_id=candidate.id))
        return candidate

    def cancel_booking(self, club_id: int, booking_id: str) -> Booking:
        return self.update_booking(
            club_id, booking_id, BookingUpdate(status=BookingStatus.CANCELLED)
        )

    def delete_booking(self, club_id: int, booking_id: str) -> None:
        booking = self.get_booking(club_id, booking_id)
        self.booking_repo.delete(booking.id)
        logger.info("Booking %s deleted", booking.id)

    def move_booking(
        self,
        club_id: int,
        booking_id: str,
        day: date,
        hour: float,
        window: DisplayWindow | None = None,
    ) -> Booking:
        """Drop a booking onto a new day and snapped hour, keeping its duration."""
        booking = self.get_booking(club_id, booking_id)
        interval = move_interval(booking.interval, day, hour, window)
        return self.update_booking(
            club_id,
            booking_id,
            BookingUpdate(start_time=interval.start, end_time=interval.end),
        )

    def resize_booking(
        self,
        club_id: int,
        booking_id: str,
        pixel_delta: float,
        window: DisplayWindow | None = None,
    ) -> Booking:
        """Move a booking's end by a drag distance snapped to the slot grid."""
        booking = self.get_booking(club_id, booking_id)
        handle = begin_resize(booking.id, booking.interval, 0, window)
        interval = end_resize(handle, pixel_delta)
        return self.update_booking(
            club_id, booking_id, BookingUpdate(end_time=interval.end)
        )
