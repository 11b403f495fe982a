"""Handlers that turn booking events into activity feed entries."""

from __future__ import annotations

import logging

from clubflow.domain.bus import EventBus
from clubflow.domain.events import (
    BookingCancelled,
    BookingCreated,
    BookingRejected,
    BookingRescheduled,
)
from clubflow.domain.models import ActivityEntry, ActivityType
from clubflow.repos.memory import ActivityRepository, BookingRepository

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Wires domain-event handlers to the bus and records the activity feed."""

    def __init__(
        self,
        bus: EventBus,
        booking_repo: BookingRepository,
        activity_repo: ActivityRepository,
    ) -> None:
        self.bus = bus
        self.booking_repo = booking_repo
        self.activity_repo = activity_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(BookingCreated, self.on_booking_created)
        self.bus.subscribe(BookingRescheduled, self.on_booking_rescheduled)
        self.bus.subscribe(BookingCancelled, self.on_booking_cancelled)
        self.bus.subscribe(BookingRejected, self.on_booking_rejected)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_booking_created(self, event: BookingCreated) -> None:
        stored = self.booking_repo.get(event.booking_id)
        if stored is None:
            return

        logger.info(
            "Booking %s created for facility %s (%s - %s)",
            stored.id,
            stored.facility_id,
            stored.start_time.isoformat(),
            stored.end_time.isoformat(),
        )
        self.activity_repo.add(
            ActivityEntry(
                club_id=stored.club_id,
                booking_id=stored.id,
                type=ActivityType.CREATED,
                payload={
                    "title": stored.title,
                    "facilityId": stored.facility_id,
                    "startTime": stored.start_time.isoformat(),
                    "endTime": stored.end_time.isoformat(),
                },
            )
        )

    def on_booking_rescheduled(self, event: BookingRescheduled) -> None:
        stored = self.booking_repo.get(event.booking_id)
        if stored is None:
            return

        logger.info(
            "Booking %s moved from %s to %s",
            stored.id,
            event.previous_start.isoformat(),
            stored.start_time.isoformat(),
        )
        self.activity_repo.add(
            ActivityEntry(
                club_id=stored.club_id,
                booking_id=stored.id,
                type=ActivityType.RESCHEDULED,
                payload={
                    "previousStartTime": event.previous_start.isoformat(),
                    "previousEndTime": event.previous_end.isoformat(),
                    "previousFacilityId": event.previous_facility_id,
                    "startTime": stored.start_time.isoformat(),
                    "endTime": stored.end_time.isoformat(),
                    "facilityId": stored.facility_id,
                },
            )
        )

    def on_booking_cancelled(self, event: BookingCancelled) -> None:
        stored = self.booking_repo.get(event.booking_id)
        if stored is None:
            return

        logger.info("Booking %s cancelled", stored.id)
        self.activity_repo.add(
            ActivityEntry(
                club_id=stored.club_id,
                booking_id=stored.id,
                type=ActivityType.CANCELLED,
                payload={"title": stored.title},
            )
        )

    def on_booking_rejected(self, event: BookingRejected) -> None:
        logger.warning(
            "Rejected booking %r on facility %s: %d of %d slots in use",
            event.title,
            event.facility_id,
            event.current_bookings,
            event.max_concurrent,
        )
        self.activity_repo.add(
            ActivityEntry(
                club_id=event.club_id,
                booking_id=event.booking_id,
                type=ActivityType.REJECTED,
                payload={
                    "title": event.title,
                    "facilityId": event.facility_id,
                    "startTime": event.start_time.isoformat(),
                    "endTime": event.end_time.isoformat(),
                    "currentBookings": event.current_bookings,
                    "maxConcurrent": event.max_concurrent,
                },
            )
        )
