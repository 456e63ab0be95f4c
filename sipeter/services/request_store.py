from __future__ import annotations

from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sipeter.core.config import get_settings
from sipeter.core.errors import ValidationFailure
from sipeter.core.logging import get_logger
from sipeter.models.service_request import (
    ALLOWED_TRANSITIONS,
    RequestStatus,
    ResourceType,
    ServiceRequest,
)
from sipeter.schemas.booking import BookingDraft, RequestUpdate, TicketCreate, VehicleBookingDraft, VenueBookingDraft
from sipeter.services.availability_service import conflicts_on
from sipeter.services.venue_service import get_active_venue_by_name

logger = get_logger(__name__)

UTC = ZoneInfo("UTC")

# attempts at claiming a free seq before giving up
_SEQ_ATTEMPTS = 5

_BOOKING_ONLY_FIELDS = ("activity_name", "destination", "participant_count", "schedule_at")

# public board: work in progress first, then the queue, then finished work
_BOARD_ORDER = case(
    {
        RequestStatus.IN_PROGRESS.value: 1,
        RequestStatus.PENDING.value: 2,
        RequestStatus.COMPLETED.value: 3,
    },
    value=ServiceRequest.status,
    else_=4,
)


def _next_seq(db: Session) -> int:
    return (db.execute(select(func.max(ServiceRequest.seq))).scalar() or 0) + 1


def _insert(db: Session, record: ServiceRequest) -> ServiceRequest:
    """Commit a new record under the next free ``seq``.

    ``seq`` is unique, so a concurrent writer that read the same maximum makes
    one of the two commits fail; the loser re-reads the maximum and tries again.
    """
    for attempt in range(1, _SEQ_ATTEMPTS + 1):
        record.seq = _next_seq(db)
        db.add(record)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            if attempt == _SEQ_ATTEMPTS:
                raise
            logger.warning("seq_taken", seq=record.seq, attempt=attempt)
            continue
        db.refresh(record)
        return record


def _to_local_wall_clock(value: datetime, tz: ZoneInfo) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(tz).replace(tzinfo=None)
    return value


def _require_text(value: str | None, field: str, label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationFailure(f"{label} is required", field=field)
    return text


def _require_schedule(value: datetime | None, *, now: datetime, tz: ZoneInfo) -> datetime:
    if value is None:
        raise ValidationFailure("Schedule date is required", field="schedule_at")
    schedule_at = _to_local_wall_clock(value, tz)
    if schedule_at.date() < _to_local_wall_clock(now, tz).date():
        raise ValidationFailure("Cannot create a booking on a past date", field="schedule_at")
    return schedule_at


def _require_facility(db: Session, value: str | None) -> str:
    location = _require_text(value, "location", "Facility")
    if get_active_venue_by_name(db, location) is None:
        raise ValidationFailure(f"Unknown facility: {location}", field="location")
    return location


def list_bookings(db: Session, resource_type: ResourceType | str) -> list[ServiceRequest]:
    """All bookings of one resource type, any status, in insertion order."""
    rt = ResourceType(resource_type)
    q = select(ServiceRequest).where(ServiceRequest.category == rt.value).order_by(ServiceRequest.seq.asc())
    return list(db.execute(q).scalars().all())


def list_requests(db: Session, *, category: str | None = None, status: str | None = None) -> list[ServiceRequest]:
    q = select(ServiceRequest)
    if category:
        q = q.where(ServiceRequest.category == category)
    if status:
        q = q.where(ServiceRequest.status == status)
    q = q.order_by(ServiceRequest.seq.desc())
    return list(db.execute(q.limit(1000)).scalars().all())


def list_board(db: Session, *, category: str | None = None) -> list[ServiceRequest]:
    """Requests on the public status board: everything but rejected ones, newest first within a status."""
    q = select(ServiceRequest).where(ServiceRequest.status != RequestStatus.REJECTED.value)
    if category:
        q = q.where(ServiceRequest.category == category)
    q = q.order_by(_BOARD_ORDER, ServiceRequest.seq.desc())
    return list(db.execute(q.limit(1000)).scalars().all())


def list_agenda(db: Session, *, today: date) -> list[ServiceRequest]:
    """Venue and vehicle bookings scheduled from the start of ``today`` on, soonest first."""
    q = (
        select(ServiceRequest)
        .where(ServiceRequest.category.in_([rt.value for rt in ResourceType]))
        .where(ServiceRequest.status != RequestStatus.REJECTED.value)
        .where(ServiceRequest.schedule_at >= datetime.combine(today, time.min))
        .order_by(ServiceRequest.schedule_at.asc(), ServiceRequest.seq.asc())
    )
    return list(db.execute(q).scalars().all())


def count_by_status(db: Session) -> dict[str, int]:
    rows = db.execute(select(ServiceRequest.status, func.count()).group_by(ServiceRequest.status)).all()
    return {status: n for status, n in rows}


def get_request(db: Session, request_id: str) -> ServiceRequest | None:
    return db.get(ServiceRequest, request_id)


def create_booking(db: Session, draft: BookingDraft, *, now: datetime | None = None) -> ServiceRequest:
    settings = get_settings()
    tz = ZoneInfo(settings.timezone)
    if now is None:
        now = datetime.now(tz=UTC)

    requester_name = _require_text(draft.requester_name, "requester_name", "Requester name")
    schedule_at = _require_schedule(draft.schedule_at, now=now, tz=tz)

    booking = ServiceRequest(
        category=draft.resource_type,
        requester_name=requester_name,
        description=draft.description or "",
        participant_count=draft.participant_count,
        schedule_at=schedule_at,
        priority=draft.priority.value,
        status=RequestStatus.PENDING.value,
        submitted_at=now.astimezone(UTC),
    )

    if isinstance(draft, VenueBookingDraft):
        booking.activity_name = _require_text(draft.activity_name, "activity_name", "Activity name")
        booking.location = _require_facility(db, draft.location)
    elif isinstance(draft, VehicleBookingDraft):
        booking.destination = _require_text(draft.destination, "destination", "Destination")
        booking.location = settings.vehicle_origin

    _insert(db, booking)

    logger.info(
        "booking_created",
        booking_id=booking.id,
        resource_type=booking.category,
        schedule_at=booking.schedule_at.isoformat(),
    )
    return booking


def create_ticket(db: Session, payload: TicketCreate, *, now: datetime | None = None) -> ServiceRequest:
    if now is None:
        now = datetime.now(tz=UTC)

    ticket = ServiceRequest(
        category=payload.category,
        requester_name=_require_text(payload.requester_name, "requester_name", "Requester name"),
        description=_require_text(payload.description, "description", "Description"),
        location=payload.location or "",
        priority=payload.priority.value,
        status=RequestStatus.PENDING.value,
        submitted_at=now.astimezone(UTC),
    )
    _insert(db, ticket)

    logger.info("ticket_created", request_id=ticket.id, category=ticket.category)
    return ticket


def update_request(
    db: Session,
    request_id: str,
    payload: RequestUpdate,
    *,
    now: datetime | None = None,
) -> tuple[ServiceRequest, list[ServiceRequest]] | None:
    """Edit the fields sent in ``payload``. Returns None when the id is unknown.

    Bookings go through the same checks as ``create_booking``. The past-date
    rule only applies when the schedule actually moves, so an old booking can
    still have its description corrected. The second element of the result is
    the other active same-day bookings at the schedule after the edit.
    """
    settings = get_settings()
    tz = ZoneInfo(settings.timezone)
    if now is None:
        now = datetime.now(tz=UTC)

    record = db.get(ServiceRequest, request_id)
    if record is None:
        logger.info("update_unknown_id", request_id=request_id)
        return None

    data = payload.model_dump(exclude_unset=True)
    rt = record.resource_type

    if "requester_name" in data:
        data["requester_name"] = _require_text(data["requester_name"], "requester_name", "Requester name")
    if "priority" in data:
        if data["priority"] is None:
            raise ValidationFailure("Priority is required", field="priority")
        data["priority"] = data["priority"].value

    if rt is None:
        for key in _BOOKING_ONLY_FIELDS:
            if data.get(key) is not None:
                raise ValidationFailure(f"{key} only applies to bookings", field=key)
            data.pop(key, None)
        if "description" in data:
            data["description"] = _require_text(data["description"], "description", "Description")
        if "location" in data:
            data["location"] = data["location"] or ""
    else:
        if "description" in data:
            data["description"] = data["description"] or ""
        if "schedule_at" in data:
            moved = data["schedule_at"]
            if moved is None or _to_local_wall_clock(moved, tz) != record.schedule_at:
                data["schedule_at"] = _require_schedule(moved, now=now, tz=tz)
            else:
                data["schedule_at"] = record.schedule_at

        if rt == ResourceType.VENUE:
            if data.get("destination") is not None:
                raise ValidationFailure("destination only applies to vehicle bookings", field="destination")
            data.pop("destination", None)
            if "activity_name" in data:
                data["activity_name"] = _require_text(data["activity_name"], "activity_name", "Activity name")
            if "location" in data:
                data["location"] = _require_facility(db, data["location"])
        else:
            if data.get("activity_name") is not None:
                raise ValidationFailure("activity_name only applies to venue bookings", field="activity_name")
            data.pop("activity_name", None)
            # vehicles always leave from the configured origin
            data.pop("location", None)
            if "destination" in data:
                data["destination"] = _require_text(data["destination"], "destination", "Destination")

    for k, v in data.items():
        setattr(record, k, v)
    db.commit()
    db.refresh(record)

    logger.info("request_updated", request_id=record.id, fields=sorted(data.keys()))

    if rt is None:
        return record, []
    conflicts = [b for b in conflicts_on(record.schedule_at, rt, list_bookings(db, rt), tz) if b.id != record.id]
    if conflicts:
        logger.info(
            "booking_updated_with_conflicts",
            booking_id=record.id,
            resource_type=rt.value,
            conflict_ids=[c.id for c in conflicts],
        )
    return record, conflicts


def update_booking_status(db: Session, request_id: str, new_status: RequestStatus | str) -> ServiceRequest | None:
    """Apply an operator decision. Returns None when the id is unknown.

    PENDING -> IN_PROGRESS | REJECTED, IN_PROGRESS -> COMPLETED. Re-applying the
    current status is a no-op.
    """
    target = RequestStatus(new_status).value
    record = db.get(ServiceRequest, request_id)
    if record is None:
        logger.info("status_update_unknown_id", request_id=request_id)
        return None

    current = record.status
    if target == current:
        return record
    if target not in ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise ValidationFailure(f"Cannot change status from {current} to {target}", field="status")

    record.status = target
    db.commit()
    db.refresh(record)

    logger.info("status_changed", request_id=record.id, old_status=current, new_status=target)
    return record


def delete_request(db: Session, request_id: str) -> bool:
    record = db.get(ServiceRequest, request_id)
    if record is None:
        return False
    db.delete(record)
    db.commit()

    logger.info("request_deleted", request_id=request_id)
    return True
