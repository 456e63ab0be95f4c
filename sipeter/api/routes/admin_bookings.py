from __future__ import annotations

from datetime import date, datetime
from typing import Union
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from sipeter.api.calendar_view import build_navigator, render_calendar
from sipeter.core.deps import get_db, get_now, get_tz, require_operator
from sipeter.models.service_request import ResourceType
from sipeter.schemas.booking import BookingCreated, ServiceRequestOut, VehicleBookingDraft, VenueBookingDraft
from sipeter.schemas.calendar import CalendarView, DaySelection
from sipeter.services.request_store import create_booking

router = APIRouter()


@router.get("/calendar/{resource_type}", response_model=CalendarView)
def admin_calendar(
    resource_type: ResourceType,
    month: str | None = Query(default=None, description="YYYY-MM"),
    day: date | None = None,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    tz: ZoneInfo = Depends(get_tz),
    operator=Depends(require_operator),
):
    nav = build_navigator(db, resource_type, now=now, tz=tz, is_write_capable=True, month=month, day=day)
    if day is not None:
        # viewing only; drafts are opened through /select, which refuses past days
        nav.review_day(day)
    return render_calendar(nav)


@router.post("/calendar/{resource_type}/select", response_model=DaySelection)
def select_day(
    resource_type: ResourceType,
    day: date,
    month: str | None = Query(default=None, description="YYYY-MM"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    tz: ZoneInfo = Depends(get_tz),
    operator=Depends(require_operator),
):
    nav = build_navigator(db, resource_type, now=now, tz=tz, is_write_capable=True, month=month, day=day)
    draft = nav.select_day(day)
    conflicts = nav.conflicts_for(draft)
    return DaySelection(
        selected_day=nav.selected_day,
        draft=draft,
        conflicts=[ServiceRequestOut.model_validate(c) for c in conflicts],
    )


@router.post("/bookings", response_model=BookingCreated)
def submit_booking(
    payload: Union[VenueBookingDraft, VehicleBookingDraft] = Body(..., discriminator="resource_type"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    tz: ZoneInfo = Depends(get_tz),
    operator=Depends(require_operator),
):
    nav = build_navigator(db, ResourceType(payload.resource_type), now=now, tz=tz, is_write_capable=True)
    booking, conflicts = nav.submit(payload, lambda draft: create_booking(db, draft, now=now))
    return BookingCreated(
        booking=ServiceRequestOut.model_validate(booking),
        conflicts=[ServiceRequestOut.model_validate(c) for c in conflicts],
    )
