from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from sipeter.api.calendar_view import build_navigator, render_calendar
from sipeter.core.deps import get_db, get_now, get_tz
from sipeter.models.service_request import RequestStatus, ResourceType
from sipeter.schemas.booking import RequestSummary, ServiceRequestOut
from sipeter.schemas.calendar import CalendarView
from sipeter.schemas.venue import VenueOut
from sipeter.services.availability_service import conflicts_on
from sipeter.services.request_store import count_by_status, list_agenda, list_board, list_bookings
from sipeter.services.venue_service import list_venues

router = APIRouter()


@router.get("/venues", response_model=list[VenueOut])
def public_venues(db: Session = Depends(get_db)):
    return list_venues(db)


@router.get("/calendar/{resource_type}", response_model=CalendarView)
def public_calendar(
    resource_type: ResourceType,
    month: str | None = Query(default=None, description="YYYY-MM"),
    day: date | None = None,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    tz: ZoneInfo = Depends(get_tz),
):
    nav = build_navigator(db, resource_type, now=now, tz=tz, is_write_capable=False, month=month, day=day)
    if day is not None:
        nav.select_day(day)
    return render_calendar(nav)


@router.get("/conflicts/{resource_type}", response_model=list[ServiceRequestOut])
def public_conflicts(
    resource_type: ResourceType,
    at: datetime | None = None,
    db: Session = Depends(get_db),
    tz: ZoneInfo = Depends(get_tz),
):
    return conflicts_on(at, resource_type, list_bookings(db, resource_type), tz)


@router.get("/requests", response_model=list[ServiceRequestOut])
def public_board(category: str | None = None, db: Session = Depends(get_db)):
    return list_board(db, category=category)


@router.get("/agenda", response_model=list[ServiceRequestOut])
def public_agenda(
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    tz: ZoneInfo = Depends(get_tz),
):
    return list_agenda(db, today=now.astimezone(tz).date())


@router.get("/summary", response_model=RequestSummary)
def public_summary(db: Session = Depends(get_db)):
    counts = count_by_status(db)
    return RequestSummary(
        completed=counts.get(RequestStatus.COMPLETED.value, 0),
        in_progress=counts.get(RequestStatus.IN_PROGRESS.value, 0),
    )
