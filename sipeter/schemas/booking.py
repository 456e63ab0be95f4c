from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from sipeter.models.service_request import Priority


class _BookingDraftBase(BaseModel):
    # Emptiness is checked by the request store so that it surfaces as a ValidationFailure
    requester_name: str = Field(default="", max_length=255)
    description: str = Field(default="", max_length=2000)
    participant_count: int | None = Field(default=None, ge=0, le=99999)
    schedule_at: datetime | None = None
    priority: Priority = Priority.MEDIUM


class VenueBookingDraft(_BookingDraftBase):
    resource_type: Literal["VENUE"] = "VENUE"
    location: str = Field(default="", max_length=255)
    activity_name: str = Field(default="", max_length=255)


class VehicleBookingDraft(_BookingDraftBase):
    resource_type: Literal["VEHICLE"] = "VEHICLE"
    destination: str = Field(default="", max_length=255)


BookingDraft = Annotated[Union[VenueBookingDraft, VehicleBookingDraft], Field(discriminator="resource_type")]


class TicketCreate(BaseModel):
    category: Literal["CLEAN_WATER", "WASTE_WATER", "ELECTRICAL", "AIR_CONDITIONING"]
    requester_name: str = Field(default="", max_length=255)
    description: str = Field(default="", max_length=2000)
    location: str = Field(default="", max_length=255)
    priority: Priority = Priority.MEDIUM


class StatusUpdate(BaseModel):
    status: Literal["PENDING", "IN_PROGRESS", "COMPLETED", "REJECTED"]


class ServiceRequestOut(BaseModel):
    id: str
    category: str
    requester_name: str
    description: str
    location: str
    activity_name: str | None = None
    destination: str | None = None
    participant_count: int | None = None
    schedule_at: datetime | None = None
    status: str
    priority: str
    submitted_at: datetime

    class Config:
        from_attributes = True


class BookingCreated(BaseModel):
    booking: ServiceRequestOut
    # same-day bookings that existed when the booking was submitted
    conflicts: list[ServiceRequestOut] = Field(default_factory=list)


class RequestUpdate(BaseModel):
    """Operator edit of an existing request. Only the fields sent are changed."""

    requester_name: str | None = Field(default=None, max_length=255)
    description: str | None = Field(default=None, max_length=2000)
    location: str | None = Field(default=None, max_length=255)
    activity_name: str | None = Field(default=None, max_length=255)
    destination: str | None = Field(default=None, max_length=255)
    participant_count: int | None = Field(default=None, ge=0, le=99999)
    schedule_at: datetime | None = None
    priority: Priority | None = None


class RequestUpdated(BaseModel):
    request: ServiceRequestOut
    # other same-day bookings at the request's schedule after the edit
    conflicts: list[ServiceRequestOut] = Field(default_factory=list)


class RequestSummary(BaseModel):
    completed: int = 0
    in_progress: int = 0
