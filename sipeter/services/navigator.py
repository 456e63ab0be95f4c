from __future__ import annotations

from datetime import date, datetime, time
from typing import Callable, Sequence
from zoneinfo import ZoneInfo

from sipeter.core.errors import ValidationFailure
from sipeter.core.logging import get_logger
from sipeter.models.service_request import ResourceType, ServiceRequest
from sipeter.schemas.booking import BookingDraft, VehicleBookingDraft, VenueBookingDraft
from sipeter.services.availability_service import active_bookings, conflicts_on, is_on_day, local_day
from sipeter.services.calendar_service import DayCell, YearMonth, build_month_grid

logger = get_logger(__name__)


def _schedule_sort_key(booking: ServiceRequest, tz: ZoneInfo) -> datetime:
    value = booking.schedule_at
    if value is None:
        return datetime.min
    if value.tzinfo is not None:
        return value.astimezone(tz).replace(tzinfo=None)
    return value


class BookingNavigator:
    """Month navigation, day selection and the visible booking list for one resource type.

    Bookings are pulled from ``list_bookings`` on every derived computation so
    that status changes and new bookings are always reflected. ``today`` is
    injected by the caller; nothing here reads the wall clock.

    The navigable window runs from the month of ``today`` up to
    ``months_ahead`` months later, both inclusive.
    """

    def __init__(
        self,
        resource_type: ResourceType | str,
        list_bookings: Callable[[], Sequence[ServiceRequest]],
        *,
        today: date,
        tz: ZoneInfo,
        is_write_capable: bool = False,
        current_month: YearMonth | None = None,
        default_time: time = time(9, 0),
        default_location: str = "",
        months_ahead: int = 12,
    ) -> None:
        self.resource_type = ResourceType(resource_type)
        self.today = today
        self.tz = tz
        self.is_write_capable = is_write_capable
        self.default_time = default_time
        self.default_location = default_location

        self._list_bookings = list_bookings
        self._home_month = YearMonth.from_date(today)
        self._lower_bound = self._home_month
        self._upper_bound = self._home_month.shift(months_ahead)

        self.current_month = self._clamp(current_month or self._home_month)
        self.selected_day: date | None = None

    def _clamp(self, ym: YearMonth) -> YearMonth:
        if ym < self._lower_bound:
            return self._lower_bound
        if ym > self._upper_bound:
            return self._upper_bound
        return ym

    # --- month navigation ---

    @property
    def can_go_previous(self) -> bool:
        return self.current_month.shift(-1) >= self._lower_bound

    @property
    def can_go_next(self) -> bool:
        return self.current_month.shift(1) <= self._upper_bound

    def go_to_previous_month(self) -> bool:
        if not self.can_go_previous:
            return False
        self.current_month = self.current_month.shift(-1)
        return True

    def go_to_next_month(self) -> bool:
        if not self.can_go_next:
            return False
        self.current_month = self.current_month.shift(1)
        return True

    def jump_to_today(self) -> None:
        self.current_month = self._home_month

    # --- derived state ---

    def active_bookings(self) -> list[ServiceRequest]:
        return active_bookings(self._list_bookings(), self.resource_type)

    def month_grid(self) -> list[DayCell]:
        return build_month_grid(self.current_month, self.active_bookings(), today=self.today, tz=self.tz)

    def visible_bookings(self) -> list[ServiceRequest]:
        # sorted() is stable, so equal schedules keep the store's insertion order
        bookings = sorted(self.active_bookings(), key=lambda b: _schedule_sort_key(b, self.tz))
        if self.selected_day is None:
            return bookings
        return [b for b in bookings if is_on_day(b, self.selected_day, self.tz)]

    def conflicts_for(self, draft: BookingDraft) -> list[ServiceRequest]:
        return conflicts_on(draft.schedule_at, self.resource_type, self._list_bookings(), self.tz)

    # --- day selection ---

    def _resolve_day(self, day: int | date) -> date:
        if isinstance(day, datetime):
            day = local_day(day, self.tz)
        if isinstance(day, date):
            if YearMonth.from_date(day) != self.current_month:
                raise ValidationFailure(f"{day.isoformat()} is not in {self.current_month}", field="day")
            return day
        if not 1 <= day <= self.current_month.days_in_month:
            raise ValidationFailure(f"Day {day} is not in {self.current_month}", field="day")
        return self.current_month.day(day)

    def new_draft(self, day: date) -> BookingDraft:
        schedule_at = datetime.combine(day, self.default_time)
        if self.resource_type == ResourceType.VENUE:
            return VenueBookingDraft(schedule_at=schedule_at, location=self.default_location)
        return VehicleBookingDraft(schedule_at=schedule_at)

    def select_day(self, day: int | date) -> BookingDraft | None:
        """Select a day of the current month.

        For a write-capable caller this returns a draft seeded with the day at the
        default time, which is the signal to open the booking form. Past days are
        refused for such callers. Read-only callers only filter the list; clicking
        a past day with no bookings does nothing.
        """
        d = self._resolve_day(day)
        is_past = d < self.today

        if self.is_write_capable:
            if is_past:
                logger.info("day_selection_rejected", resource_type=self.resource_type.value, day=d.isoformat())
                raise ValidationFailure("Cannot create a booking on a past date", field="schedule_at")
            self.selected_day = d
            return self.new_draft(d)

        self._review(d)
        return None

    def review_day(self, day: int | date) -> None:
        """Filter the list to a day without opening a draft, whatever the caller can do.

        A past day with no bookings has nothing to review and leaves the
        selection untouched.
        """
        self._review(self._resolve_day(day))

    def _review(self, d: date) -> None:
        if d < self.today and not conflicts_on(d, self.resource_type, self._list_bookings(), self.tz):
            return
        self.selected_day = d

    def clear_selection(self) -> None:
        self.selected_day = None

    # --- submission ---

    def submit(
        self,
        draft: BookingDraft,
        create_booking: Callable[[BookingDraft], ServiceRequest],
    ) -> tuple[ServiceRequest, list[ServiceRequest]]:
        """Create a booking, returning it with the same-day bookings it clashes with.

        Conflicts are recomputed from the store right before creation, never
        taken from the moment the form was opened.
        """
        if not self.is_write_capable:
            raise ValidationFailure("Read-only callers cannot create bookings")
        if draft.resource_type != self.resource_type.value:
            raise ValidationFailure(
                f"Draft is for {draft.resource_type}, not {self.resource_type.value}",
                field="resource_type",
            )
        day = local_day(draft.schedule_at, self.tz)
        if day is not None and day < self.today:
            raise ValidationFailure("Cannot create a booking on a past date", field="schedule_at")

        conflicts = self.conflicts_for(draft)
        booking = create_booking(draft)
        if conflicts:
            logger.info(
                "booking_created_with_conflicts",
                booking_id=booking.id,
                resource_type=self.resource_type.value,
                conflict_ids=[c.id for c in conflicts],
            )
        return booking, conflicts
