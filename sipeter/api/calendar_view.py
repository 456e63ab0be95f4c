from __future__ import annotations

from datetime import date, datetime
from functools import partial
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from sipeter.core.config import get_settings
from sipeter.models.service_request import ResourceType
from sipeter.schemas.booking import ServiceRequestOut
from sipeter.schemas.calendar import CalendarView, DayCellOut
from sipeter.services.calendar_service import YearMonth
from sipeter.services.navigator import BookingNavigator
from sipeter.services.request_store import list_bookings
from sipeter.services.venue_service import list_venues


def build_navigator(
    db: Session,
    resource_type: ResourceType,
    *,
    now: datetime,
    tz: ZoneInfo,
    is_write_capable: bool,
    month: str | None = None,
    day: date | None = None,
) -> BookingNavigator:
    settings = get_settings()

    if month:
        current_month = YearMonth.parse(month)
    elif day is not None:
        current_month = YearMonth.from_date(day)
    else:
        current_month = None

    default_location = ""
    if resource_type == ResourceType.VENUE:
        venues = list_venues(db)
        if venues:
            default_location = venues[0].name

    return BookingNavigator(
        resource_type,
        partial(list_bookings, db, resource_type),
        today=now.astimezone(tz).date(),
        tz=tz,
        is_write_capable=is_write_capable,
        current_month=current_month,
        default_time=settings.default_booking_time,
        default_location=default_location,
        months_ahead=settings.navigation_months_ahead,
    )


def render_calendar(nav: BookingNavigator) -> CalendarView:
    current = nav.current_month
    return CalendarView(
        resource_type=nav.resource_type.value,
        month=str(current),
        today=nav.today,
        can_go_previous=nav.can_go_previous,
        can_go_next=nav.can_go_next,
        previous_month=str(current.shift(-1)) if nav.can_go_previous else None,
        next_month=str(current.shift(1)) if nav.can_go_next else None,
        cells=[DayCellOut.model_validate(cell) for cell in nav.month_grid()],
        selected_day=nav.selected_day,
        bookings=[ServiceRequestOut.model_validate(b) for b in nav.visible_bookings()],
    )
