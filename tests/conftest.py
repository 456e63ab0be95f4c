"""
Test configuration and fixtures.

"Today" is pinned to 2024-11-10 (a Sunday) in the Asia/Jakarta timezone.
"""
from datetime import date, datetime
from itertools import count
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import sipeter.models  # noqa: F401
from sipeter.core.config import get_settings
from sipeter.core.deps import get_db, get_now
from sipeter.db.base import Base
from sipeter.main import create_app
from sipeter.models.service_request import RequestStatus, ServiceRequest
from sipeter.services.venue_service import seed_venues

TZ = ZoneInfo("Asia/Jakarta")
TODAY = date(2024, 11, 10)
NOW = datetime(2024, 11, 10, 8, 30, tzinfo=TZ)


# ============================================================================
# IN-MEMORY BOOKINGS
# ============================================================================

@pytest.fixture
def make_booking():
    """Build detached ServiceRequest rows; the core only reads attributes."""
    seq = count(1)

    def _make(category="VENUE", schedule_at=None, status=RequestStatus.PENDING.value, **extra):
        n = next(seq)
        return ServiceRequest(
            id=extra.pop("id", f"b{n}"),
            seq=n,
            category=category,
            requester_name=extra.pop("requester_name", f"Requester {n}"),
            description=extra.pop("description", ""),
            location=extra.pop("location", "Aula Lantai III" if category == "VENUE" else "Kantor Pusat"),
            schedule_at=schedule_at,
            status=status,
            priority=extra.pop("priority", "Medium"),
            submitted_at=NOW,
            **extra,
        )

    return _make


# ============================================================================
# DATABASE
# ============================================================================

@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    seed_venues(session, get_settings().venue_facilities)
    yield session
    session.close()


# ============================================================================
# HTTP
# ============================================================================

@pytest.fixture
def client(db):
    app = create_app()

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: NOW
    with TestClient(app) as c:
        yield c


@pytest.fixture
def operator_headers():
    return {"X-Operator-Token": get_settings().operator_token}
