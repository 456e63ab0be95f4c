from __future__ import annotations

import calendar
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable
from zoneinfo import ZoneInfo

from sipeter.core.errors import ValidationFailure
from sipeter.models.service_request import ServiceRequest
from sipeter.services.availability_service import is_active, local_day

_YEAR_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


@dataclass(frozen=True, order=True)
class YearMonth:
    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValidationFailure(f"Invalid month: {self.month}", field="month")

    @classmethod
    def from_date(cls, d: date) -> "YearMonth":
        return cls(d.year, d.month)

    @classmethod
    def parse(cls, text: str) -> "YearMonth":
        m = _YEAR_MONTH_RE.match(text or "")
        if not m:
            raise ValidationFailure("Month must look like YYYY-MM", field="month")
        return cls(int(m.group(1)), int(m.group(2)))

    def shift(self, months: int) -> "YearMonth":
        index = self.year * 12 + (self.month - 1) + months
        return YearMonth(index // 12, index % 12 + 1)

    def months_since(self, other: "YearMonth") -> int:
        return (self.year - other.year) * 12 + (self.month - other.month)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def days_in_month(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    @property
    def leading_padding(self) -> int:
        # 0=Sunday..6=Saturday
        return (self.first_day.weekday() + 1) % 7

    def day(self, day_number: int) -> date:
        return date(self.year, self.month, day_number)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass
class DayCell:
    day_number: int | None
    date: date | None = None
    bookings: list[ServiceRequest] = field(default_factory=list)
    is_today: bool = False
    is_past: bool = False

    @property
    def is_padding(self) -> bool:
        return self.day_number is None

    @property
    def has_bookings(self) -> bool:
        return bool(self.bookings)

    @property
    def is_selectable(self) -> bool:
        # past days stay clickable only when there is history to review
        if self.is_padding:
            return False
        return not self.is_past or self.has_bookings


def bookings_by_day(bookings: Iterable[ServiceRequest], tz: ZoneInfo) -> dict[date, list[ServiceRequest]]:
    grouped: dict[date, list[ServiceRequest]] = {}
    for b in bookings:
        if not is_active(b):
            continue
        d = local_day(b.schedule_at, tz)
        if d is None:
            continue
        grouped.setdefault(d, []).append(b)
    return grouped


def build_month_grid(
    year_month: YearMonth,
    bookings: Iterable[ServiceRequest],
    *,
    today: date,
    tz: ZoneInfo,
) -> list[DayCell]:
    """Padding cells for the weekday offset of day 1, then one cell per day."""
    grouped = bookings_by_day(bookings, tz)

    cells = [DayCell(day_number=None) for _ in range(year_month.leading_padding)]
    for n in range(1, year_month.days_in_month + 1):
        d = year_month.day(n)
        cells.append(
            DayCell(
                day_number=n,
                date=d,
                bookings=grouped.get(d, []),
                is_today=d == today,
                is_past=d < today,
            )
        )
    return cells
