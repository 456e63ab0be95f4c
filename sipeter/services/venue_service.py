from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from sipeter.models.venue import Venue


def list_venues(db: Session, *, active_only: bool = True) -> list[Venue]:
    q = select(Venue).order_by(Venue.sort_order, Venue.name)
    if active_only:
        q = q.where(Venue.active == True)
    return list(db.execute(q).scalars().all())


def get_active_venue_by_name(db: Session, name: str) -> Venue | None:
    return db.execute(select(Venue).where(Venue.name == name, Venue.active == True)).scalar_one_or_none()


def seed_venues(db: Session, names: Iterable[str]) -> int:
    """Insert any missing facility names, keeping the configured order. Returns the number added."""
    existing = set(db.execute(select(Venue.name)).scalars().all())
    added = 0
    for order, name in enumerate(names):
        if name in existing:
            continue
        db.add(Venue(name=name, sort_order=order, active=True))
        added += 1
    if added:
        db.commit()
    return added
