from __future__ import annotations

from pydantic import BaseModel


class VenueOut(BaseModel):
    id: str
    name: str
    sort_order: int
    active: bool

    class Config:
        from_attributes = True
