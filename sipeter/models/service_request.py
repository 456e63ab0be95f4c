from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from sipeter.db.base import Base
from sipeter.models._mixins import TimestampMixin


class ServiceCategory(str, Enum):
    CLEAN_WATER = "CLEAN_WATER"
    WASTE_WATER = "WASTE_WATER"
    ELECTRICAL = "ELECTRICAL"
    AIR_CONDITIONING = "AIR_CONDITIONING"
    VEHICLE = "VEHICLE"
    VENUE = "VENUE"


class ResourceType(str, Enum):
    """The two bookable categories."""

    VENUE = "VENUE"
    VEHICLE = "VEHICLE"


class RequestStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"


class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


TERMINAL_STATUSES = frozenset({RequestStatus.COMPLETED.value, RequestStatus.REJECTED.value})

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    RequestStatus.PENDING.value: frozenset({RequestStatus.IN_PROGRESS.value, RequestStatus.REJECTED.value}),
    RequestStatus.IN_PROGRESS.value: frozenset({RequestStatus.COMPLETED.value}),
    RequestStatus.COMPLETED.value: frozenset(),
    RequestStatus.REJECTED.value: frozenset(),
}


class ServiceRequest(Base, TimestampMixin):
    __tablename__ = "service_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # insertion counter, breaks ties when sorting by schedule; unique so that
    # two writers racing for the same value cannot both commit
    seq: Mapped[int] = mapped_column(Integer, nullable=False, unique=True, index=True)

    category: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    requester_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    location: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    # Venue only
    activity_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # Vehicle only
    destination: Mapped[str | None] = mapped_column(String(255), nullable=True)

    participant_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # local wall-clock time in the portal timezone, naive
    schedule_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, index=True)

    status: Mapped[str] = mapped_column(String(32), nullable=False, default=RequestStatus.PENDING.value)  # PENDING/IN_PROGRESS/COMPLETED/REJECTED
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default=Priority.MEDIUM.value)  # Low/Medium/High

    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @property
    def resource_type(self) -> ResourceType | None:
        try:
            return ResourceType(self.category)
        except ValueError:
            return None
