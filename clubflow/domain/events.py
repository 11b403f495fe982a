"""Domain events emitted while bookings are created and changed."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class BookingCreated(BaseModel):
    """Fired when a new Booking is persisted."""

    booking_id: str


class BookingRescheduled(BaseModel):
    """Fired when a booking's time range or facility changes."""

    booking_id: str
    previous_start: datetime
    previous_end: datetime
    previous_facility_id: str | None = None


class BookingCancelled(BaseModel):
    booking_id: str


class BookingRejected(BaseModel):
    """Fired when a booking attempt fails the availability check."""

    club_id: int
    facility_id: str
    title: str
    start_time: datetime
    end_time: datetime
    current_bookings: int
    max_concurrent: int
    booking_id: str | None = None
