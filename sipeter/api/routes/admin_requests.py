from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from sipeter.core.deps import get_db, get_now, require_operator
from sipeter.schemas.booking import RequestUpdate, RequestUpdated, ServiceRequestOut, StatusUpdate, TicketCreate
from sipeter.services.request_store import (
    create_ticket,
    delete_request,
    get_request,
    list_requests,
    update_booking_status,
    update_request,
)

router = APIRouter()


@router.get("/requests", response_model=list[ServiceRequestOut])
def admin_list_requests(
    category: str | None = None,
    status: str | None = None,
    db: Session = Depends(get_db),
    operator=Depends(require_operator),
):
    return list_requests(db, category=category, status=status)


@router.get("/requests/{request_id}", response_model=ServiceRequestOut)
def admin_get_request(request_id: str, db: Session = Depends(get_db), operator=Depends(require_operator)):
    r = get_request(db, request_id)
    if not r:
        raise HTTPException(status_code=404, detail="Not found")
    return r


@router.post("/tickets", response_model=ServiceRequestOut)
def admin_create_ticket(
    payload: TicketCreate,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    operator=Depends(require_operator),
):
    return create_ticket(db, payload, now=now)


@router.patch("/requests/{request_id}", response_model=RequestUpdated)
def admin_update_request(
    request_id: str,
    payload: RequestUpdate,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    operator=Depends(require_operator),
):
    result = update_request(db, request_id, payload, now=now)
    if result is None:
        raise HTTPException(status_code=404, detail="Not found")
    r, conflicts = result
    return RequestUpdated(
        request=ServiceRequestOut.model_validate(r),
        conflicts=[ServiceRequestOut.model_validate(c) for c in conflicts],
    )


@router.patch("/requests/{request_id}/status", response_model=ServiceRequestOut)
def admin_update_status(
    request_id: str,
    payload: StatusUpdate,
    db: Session = Depends(get_db),
    operator=Depends(require_operator),
):
    r = update_booking_status(db, request_id, payload.status)
    if r is None:
        raise HTTPException(status_code=404, detail="Not found")
    return r


@router.delete("/requests/{request_id}")
def admin_delete_request(request_id: str, db: Session = Depends(get_db), operator=Depends(require_operator)):
    if not delete_request(db, request_id):
        raise HTTPException(status_code=404, detail="Not found")
    return {"ok": True}
