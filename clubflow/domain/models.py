"""Domain models for facility bookings and the club calendar."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta, timezone
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)
from pydantic.alias_generators import to_camel

from clubflow import config

MIN_DURATION = timedelta(minutes=config.CALENDAR_MIN_DURATION_MINUTES)


class BookingStatus(StrEnum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    CANCELLED = "cancelled"


class BookingType(StrEnum):
    TRAINING = "training"
    MATCH = "match"
    GAME = "game"
    EVENT = "event"
    MEETING = "meeting"
    MAINTENANCE = "maintenance"
    BOOKING = "booking"


class RecurrencePattern(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ActivityType(StrEnum):
    CREATED = "created"
    RESCHEDULED = "rescheduled"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDateTime = Annotated[datetime, AfterValidator(_as_utc)]


class CamelModel(BaseModel):
    """Base for models exchanged with the web client (camelCase JSON)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Time primitives
# ---------------------------------------------------------------------------


class Interval(BaseModel):
    """Half-open time range ``[start, end)``."""

    model_config = ConfigDict(frozen=True)

    start: UtcDateTime
    end: UtcDateTime

    @model_validator(mode="after")
    def _end_after_start(self) -> Interval:
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self

    @classmethod
    def coerce(
        cls,
        start: datetime,
        end: datetime,
        min_duration: timedelta = MIN_DURATION,
    ) -> Interval:
        """Build an interval, stretching ``end`` to ``start + min_duration``
        when it does not come after ``start``.

        Drag and resize gestures can produce inverted ranges; those are
        repaired here rather than rejected.
        """
        start, end = _as_utc(start), _as_utc(end)
        if end <= start:
            end = start + min_duration
        return cls(start=start, end=end)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: Interval) -> bool:
        # touching boundaries do not overlap
        return self.start < other.end and self.end > other.start


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class ResourceCapacity(BaseModel):
    resource_id: str
    max_concurrent: int = Field(default=1, ge=1)


class Facility(CamelModel):
    id: str = Field(default_factory=_new_id)
    club_id: int
    name: str = Field(min_length=1)
    type: str = "field"
    description: str | None = None
    location: str | None = None
    max_concurrent_bookings: int = Field(default=1, ge=1)
    status: str = "available"
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def capacity(self) -> ResourceCapacity:
        return ResourceCapacity(
            resource_id=self.id, max_concurrent=self.max_concurrent_bookings
        )


class Booking(CamelModel):
    """A reservation of a facility, or a club event when ``facility_id`` is None."""

    id: str = Field(default_factory=_new_id)
    club_id: int
    facility_id: str | None = None
    team_id: int | None = None
    member_id: int | None = None
    title: str = Field(min_length=1)
    description: str | None = None
    start_time: UtcDateTime
    end_time: UtcDateTime
    type: BookingType = BookingType.BOOKING
    location: str | None = None
    is_public: bool = True
    status: BookingStatus = BookingStatus.CONFIRMED
    recurring: bool = False
    recurring_pattern: RecurrencePattern | None = None
    recurring_until: date | None = None
    contact_person: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    participants: int | None = None
    cost: str | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _end_after_start(self) -> Booking:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

    @property
    def interval(self) -> Interval:
        return Interval(start=self.start_time, end=self.end_time)

    @property
    def is_cancelled(self) -> bool:
        return self.status == BookingStatus.CANCELLED


class AdmissionResult(CamelModel):
    """Outcome of an availability check.

    ``conflict_count`` excludes the booking being edited and decides
    ``available``; ``current_bookings`` includes it and is what users see.
    """

    available: bool
    capacity: int = Field(alias="maxConcurrent")
    conflict_count: int = Field(default=0, exclude=True)
    current_bookings: int
    conflicting: list[Booking] = Field(
        default_factory=list, alias="conflictingBookings"
    )


class ActivityEntry(CamelModel):
    id: str = Field(default_factory=_new_id)
    club_id: int
    booking_id: str | None = None
    timestamp: datetime = Field(default_factory=_utcnow)
    type: ActivityType
    payload: dict = Field(default_factory=dict)


class ClubMember(CamelModel):
    first_name: str
    last_name: str
    birth_date: date | None = None
    position: str | None = None


# ---------------------------------------------------------------------------
# Calendar entries
# ---------------------------------------------------------------------------


class BookingEntry(CamelModel):
    source: Literal["booking"] = "booking"
    booking: Booking


class EventEntry(CamelModel):
    """A calendar event as sent by the client.

    ``end_time`` is either a bare ``"HH:MM"`` on the start date or a full
    ISO datetime.
    """

    source: Literal["event"] = "event"
    id: str = Field(default_factory=_new_id)
    title: str
    start_time: UtcDateTime
    end_time: str | None = None
    location: str | None = None


class BirthdayEntry(CamelModel):
    source: Literal["birthday"] = "birthday"
    name: str
    day: date
    is_player: bool = False


CalendarEntry = Annotated[
    BookingEntry | EventEntry | BirthdayEntry, Field(discriminator="source")
]


class TimedEntry(BaseModel):
    """Any calendar entry reduced to a key, a label and an interval."""

    key: str
    source: str
    title: str
    interval: Interval
    facility_id: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)


class LayoutBlock(CamelModel):
    key: str
    source: str
    title: str
    start: datetime
    end: datetime
    facility_id: str | None = None
    top: float
    height: float
    column: int
    total_columns: int
    width: float
    left: float
    payload: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class FacilityCreate(CamelModel):
    name: str = Field(min_length=1)
    type: str = "field"
    description: str | None = None
    location: str | None = None
    max_concurrent_bookings: int = Field(default=1, ge=1)


class AvailabilityRequest(CamelModel):
    facility_id: str | None
    start_time: UtcDateTime
    end_time: UtcDateTime
    exclude_booking_id: str | None = None


class BookingCreate(CamelModel):
    facility_id: str | None = None
    team_id: int | None = None
    member_id: int | None = None
    title: str = Field(min_length=1)
    description: str | None = None
    start_time: UtcDateTime
    end_time: UtcDateTime
    type: BookingType = BookingType.BOOKING
    location: str | None = None
    is_public: bool = True
    status: BookingStatus = BookingStatus.CONFIRMED
    recurring: bool = False
    recurring_pattern: RecurrencePattern | None = None
    recurring_until: date | None = None
    contact_person: str | None = None
    contact_email: str | None = None
    contact_phone: str | None = None
    participants: int | None = None
    cost: str | None = None
    notes: str | None = None

    @model_validator(mode="after")
    def _end_after_start(self) -> BookingCreate:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

    @property
    def is_series(self) -> bool:
        return bool(
            self.recurring and self.recurring_pattern and self.recurring_until
        )


class BookingUpdate(CamelModel):
    facility_id: str | None = None
    team_id: int | None = None
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    start_time: UtcDateTime | None = None
    end_time: UtcDateTime | None = None
    type: BookingType | None = None
    location: str | None = None
    status: BookingStatus | None = None
    participants: int | None = None
    cost: str | None = None
    notes: str | None = None


class BookingSeriesResponse(CamelModel):
    message: str
    bookings: list[Booking]
    count: int
    main_booking: Booking | None = None


class MoveRequest(CamelModel):
    day: date
    hour: float = Field(ge=0, le=24)


class ResizeRequest(CamelModel):
    pixel_delta: float


class LayoutRequest(CamelModel):
    day: date | None = None
    entries: list[CalendarEntry] = Field(default_factory=list)
    members: list[ClubMember] = Field(default_factory=list)
