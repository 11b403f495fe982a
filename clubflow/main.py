"""HTTP API for facilities, bookings and the club calendar."""

from __future__ import annotations

import logging
from datetime import date

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from clubflow import config
from clubflow.domain.bus import EventBus
from clubflow.domain.handlers import HandlerRegistry
from clubflow.domain.models import (
    ActivityEntry,
    AdmissionResult,
    AvailabilityRequest,
    Booking,
    BookingCreate,
    BookingEntry,
    BookingSeriesResponse,
    BookingUpdate,
    Facility,
    FacilityCreate,
    LayoutBlock,
    LayoutRequest,
    MoveRequest,
    ResizeRequest,
)
from clubflow.repos.memory import (
    ActivityRepository,
    BookingRepository,
    FacilityRepository,
    seed_demo_data,
)
from clubflow.services.bookings import (
    BookingNotFoundError,
    BookingService,
    BookingUnavailableError,
    FacilityNotFoundError,
    InvalidBookingError,
)
from clubflow.services.layout import DisplayWindow, group_and_layout
from clubflow.services.normalize import birthdays_on, normalize_entries

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="ClubFlow Booking Service")

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
facility_repo = FacilityRepository()
booking_repo = BookingRepository()
activity_repo = ActivityRepository()

handler_registry = HandlerRegistry(
    bus=event_bus,
    booking_repo=booking_repo,
    activity_repo=activity_repo,
)
booking_service = BookingService(
    bus=event_bus,
    facility_repo=facility_repo,
    booking_repo=booking_repo,
)

if config.SEED_DEMO_DATA:
    seed_demo_data(facility_repo, booking_repo)
    logger.info("Loaded demo facilities and bookings")


# ── Error mapping ─────────────────────────────────────────────────────


@app.exception_handler(FacilityNotFoundError)
@app.exception_handler(BookingNotFoundError)
async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidBookingError)
async def invalid_booking_handler(
    request: Request, exc: InvalidBookingError
) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(BookingUnavailableError)
async def unavailable_handler(
    request: Request, exc: BookingUnavailableError
) -> JSONResponse:
    conflicting = [
        b.model_dump(mode="json", by_alias=True) for b in exc.availability.conflicting
    ]
    return JSONResponse(
        status_code=400,
        content={"message": str(exc), "conflictingBookings": conflicting},
    )


# ── Facilities ────────────────────────────────────────────────────────


@app.get("/clubs/{club_id}/facilities", response_model=list[Facility])
def list_facilities(club_id: int) -> list[Facility]:
    return facility_repo.list_for_club(club_id)


@app.post("/clubs/{club_id}/facilities", response_model=Facility)
def create_facility(club_id: int, payload: FacilityCreate) -> Facility:
    facility = Facility(club_id=club_id, **payload.model_dump())
    facility_repo.add(facility)
    logger.info("Facility %s (%s) created for club %d", facility.id, facility.name, club_id)
    return facility


@app.get("/clubs/{club_id}/facilities/{facility_id}", response_model=Facility)
def get_facility(club_id: int, facility_id: str) -> Facility:
    facility = facility_repo.get(facility_id)
    if facility is None or facility.club_id != club_id:
        raise HTTPException(status_code=404, detail="Facility not found")
    return facility


# ── Bookings ──────────────────────────────────────────────────────────


@app.get("/clubs/{club_id}/bookings", response_model=list[Booking])
def list_bookings(club_id: int) -> list[Booking]:
    """Return the club's bookings, earliest first."""
    return booking_repo.list_for_club(club_id)


@app.post(
    "/clubs/{club_id}/bookings",
    response_model=Booking | BookingSeriesResponse,
)
def create_booking(club_id: int, payload: BookingCreate) -> Booking | BookingSeriesResponse:
    """Create a booking, or a whole series when recurrence is requested.

    Responds 400 with the conflicting bookings when the facility is full.
    """
    if payload.is_series:
        created = booking_service.create_series(club_id, payload)
        return BookingSeriesResponse(
            message=f"{len(created)} recurring bookings created",
            bookings=created,
            count=len(created),
            main_booking=created[0] if created else None,
        )
    return booking_service.create_booking(club_id, payload)


@app.post("/clubs/{club_id}/bookings/check-availability", response_model=AdmissionResult)
def check_availability(club_id: int, payload: AvailabilityRequest) -> AdmissionResult:
    """Report whether a facility has room for the given time range.

    Pass ``excludeBookingId`` when editing so the booking does not block itself.
    """
    return booking_service.check_availability(
        payload.facility_id,
        payload.start_time,
        payload.end_time,
        exclude_booking_id=payload.exclude_booking_id,
        club_id=club_id,
    )


@app.get("/clubs/{club_id}/bookings/{booking_id}", response_model=Booking)
def get_booking(club_id: int, booking_id: str) -> Booking:
    return booking_service.get_booking(club_id, booking_id)


@app.patch("/clubs/{club_id}/bookings/{booking_id}", response_model=Booking)
def update_booking(club_id: int, booking_id: str, payload: BookingUpdate) -> Booking:
    return booking_service.update_booking(club_id, booking_id, payload)


@app.delete("/clubs/{club_id}/bookings/{booking_id}", status_code=204)
def delete_booking(club_id: int, booking_id: str) -> Response:
    booking_service.delete_booking(club_id, booking_id)
    return Response(status_code=204)


@app.post("/clubs/{club_id}/bookings/{booking_id}/cancel", response_model=Booking)
def cancel_booking(club_id: int, booking_id: str) -> Booking:
    return booking_service.cancel_booking(club_id, booking_id)


@app.post("/clubs/{club_id}/bookings/{booking_id}/move", response_model=Booking)
def move_booking(club_id: int, booking_id: str, payload: MoveRequest) -> Booking:
    """Drop a booking on another day/slot; the duration is kept."""
    return booking_service.move_booking(club_id, booking_id, payload.day, payload.hour)


@app.post("/clubs/{club_id}/bookings/{booking_id}/resize", response_model=Booking)
def resize_booking(club_id: int, booking_id: str, payload: ResizeRequest) -> Booking:
    """Drag a booking's end edge by ``pixelDelta`` on the time grid."""
    return booking_service.resize_booking(club_id, booking_id, payload.pixel_delta)


# ── Calendar ──────────────────────────────────────────────────────────


@app.get("/clubs/{club_id}/calendar/{day}", response_model=list[LayoutBlock])
def club_calendar_day(club_id: int, day: date) -> list[LayoutBlock]:
    """Lay out the club's active bookings that start on *day*."""
    window = DisplayWindow()
    entries = [
        BookingEntry(booking=b)
        for b in booking_repo.list_for_club(club_id)
        if not b.is_cancelled and b.start_time.astimezone(window.tzinfo).date() == day
    ]
    return group_and_layout(normalize_entries(entries, window), window)


@app.post("/calendar/layout", response_model=list[LayoutBlock])
def calendar_layout(payload: LayoutRequest) -> list[LayoutBlock]:
    """Lay out client-supplied entries, plus member birthdays on ``day``."""
    window = DisplayWindow()
    entries = list(payload.entries)
    if payload.day is not None:
        entries.extend(birthdays_on(payload.members, payload.day))
    return group_and_layout(normalize_entries(entries, window), window)


# ── Activity feed ─────────────────────────────────────────────────────


@app.get("/clubs/{club_id}/activity", response_model=list[ActivityEntry])
def list_activity(club_id: int) -> list[ActivityEntry]:
    return activity_repo.list_for_club(club_id)
