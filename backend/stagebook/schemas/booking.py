"""
Pydantic schemas for applications, bookings and roadmaps.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from stagebook.domain import Application, Booking, FeeOption


class OptionChoice(BaseModel):
    label: str = Field(..., min_length=1, max_length=255)
    amount_cents: Optional[int] = Field(None, ge=0)

    def to_domain(self) -> FeeOption:
        return FeeOption(label=self.label, amount_cents=self.amount_cents)


class ApplicationCreate(BaseModel):
    artist_id: str = Field(..., min_length=1, max_length=64)
    option: Optional[OptionChoice] = None


class WithdrawRequest(BaseModel):
    artist_id: Optional[str] = Field(None, min_length=1, max_length=64)


class ConfirmRequest(BaseModel):
    application_id: int


class ApplicationResponse(BaseModel):
    id: int
    slot_id: int
    artist_id: str
    status: str
    option: Optional[dict[str, Any]]
    created_at: Optional[datetime]

    @classmethod
    def from_domain(cls, application: Application) -> "ApplicationResponse":
        return cls(
            id=application.id,
            slot_id=application.slot_id,
            artist_id=application.artist_id,
            status=application.status.value,
            option=application.option.to_json() if application.option else None,
            created_at=application.created_at,
        )


class BookingResponse(BaseModel):
    id: int
    slot_id: int
    artist_id: str
    application_id: Optional[int]
    status: str
    option: Optional[dict[str, Any]]
    conditions_snapshot: dict[str, Any]
    created_at: Optional[datetime]

    @classmethod
    def from_domain(cls, booking: Booking) -> "BookingResponse":
        return cls(
            id=booking.id,
            slot_id=booking.slot_id,
            artist_id=booking.artist_id,
            application_id=booking.application_id,
            status=booking.status.value,
            option=booking.option.to_json() if booking.option else None,
            conditions_snapshot=booking.conditions_snapshot,
            created_at=booking.created_at,
        )


class RoadmapEntryResponse(BaseModel):
    label: str
    value: str


class RoadmapScheduleResponse(BaseModel):
    day: str
    time: str
    place: str
    notes: str


class RoadmapSectionResponse(BaseModel):
    id: str
    title: str
    kind: str
    items: list[RoadmapEntryResponse]
    schedule: list[RoadmapScheduleResponse]
    text: str


class RoadmapResponse(BaseModel):
    title: str
    subtitle: str
    artist_id: Optional[str]
    sections: list[RoadmapSectionResponse]
