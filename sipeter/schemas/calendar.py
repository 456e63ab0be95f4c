from __future__ import annotations

import datetime

from pydantic import BaseModel, Field

from sipeter.schemas.booking import ServiceRequestOut, VehicleBookingDraft, VenueBookingDraft


class DayCellOut(BaseModel):
    day_number: int | None
    date: datetime.date | None
    bookings: list[ServiceRequestOut] = Field(default_factory=list)
    is_today: bool
    is_past: bool
    has_bookings: bool
    is_selectable: bool

    class Config:
        from_attributes = True


class CalendarView(BaseModel):
    resource_type: str
    month: str
    today: datetime.date
    can_go_previous: bool
    can_go_next: bool
    previous_month: str | None
    next_month: str | None
    cells: list[DayCellOut]
    selected_day: datetime.date | None
    bookings: list[ServiceRequestOut]


class DaySelection(BaseModel):
    selected_day: datetime.date
    draft: VenueBookingDraft | VehicleBookingDraft
    conflicts: list[ServiceRequestOut] = Field(default_factory=list)
