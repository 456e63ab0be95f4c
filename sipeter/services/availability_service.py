from __future__ import annotations

from datetime import date, datetime
from typing import Iterable
from zoneinfo import ZoneInfo

from sipeter.models.service_request import TERMINAL_STATUSES, ResourceType, ServiceRequest


def local_day(value: date | datetime | None, tz: ZoneInfo) -> date | None:
    """Calendar day of ``value`` in the portal timezone.

    Naive datetimes are already local wall-clock time; aware ones are converted.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(tz).date()
        return value.date()
    return value


def is_active(booking: ServiceRequest) -> bool:
    return booking.status not in TERMINAL_STATUSES


def is_on_day(booking: ServiceRequest, day: date, tz: ZoneInfo) -> bool:
    return local_day(booking.schedule_at, tz) == day


def active_bookings(bookings: Iterable[ServiceRequest], resource_type: ResourceType | str) -> list[ServiceRequest]:
    rt = ResourceType(resource_type)
    return [b for b in bookings if b.resource_type == rt and is_active(b)]


def conflicts_on(
    candidate: date | datetime | None,
    resource_type: ResourceType | str,
    bookings: Iterable[ServiceRequest],
    tz: ZoneInfo,
) -> list[ServiceRequest]:
    """Active bookings of ``resource_type`` on the same calendar day as ``candidate``.

    Time of day is ignored. A missing candidate yields no conflicts.
    """
    day = local_day(candidate, tz)
    if day is None:
        return []
    return [b for b in active_bookings(bookings, resource_type) if is_on_day(b, day, tz)]
