"""
HTTP tests for the public board and the admin booking routes
Run with: pytest tests/test_api.py -v
"""
import json
from datetime import datetime

import httpx

from sipeter.core.deps import get_gemini_client
from sipeter.schemas.booking import VenueBookingDraft
from sipeter.services.analysis_service import (
    EMPTY_ANSWER_MESSAGE,
    MISSING_KEY_MESSAGE,
    NOTHING_TO_ANALYZE_MESSAGE,
    SERVICE_ERROR_MESSAGE,
)
from sipeter.services.gemini_client import GeminiClient
from sipeter.services.request_store import create_booking

from tests.conftest import TZ

# earlier clock used to seed bookings that are in the past by NOW
LAST_WEEK = datetime(2024, 11, 3, 8, 0, tzinfo=TZ)


def _venue_fields(**overrides):
    data = {
        "requester_name": "Divisi Humas",
        "activity_name": "Rapat Koordinasi",
        "location": "Aula Lantai III",
    }
    data.update(overrides)
    return data


def _venue_payload(**overrides):
    data = {
        "resource_type": "VENUE",
        "requester_name": "Divisi Humas",
        "activity_name": "Rapat Umum Pemegang Saham",
        "location": "Aula Lantai III",
        "participant_count": 150,
        "schedule_at": "2024-11-15T09:00:00",
        "priority": "High",
    }
    data.update(overrides)
    return data


def _vehicle_payload(**overrides):
    data = {
        "resource_type": "VEHICLE",
        "requester_name": "Sekretariat",
        "destination": "Bandung",
        "participant_count": 4,
        "schedule_at": "2024-11-15T07:00:00",
    }
    data.update(overrides)
    return data


class TestPublic:
    def test_health(self, client):
        assert client.get("/health").json()["ok"] is True

    def test_venues(self, client):
        res = client.get("/api/public/venues")

        assert res.status_code == 200
        assert [v["name"] for v in res.json()][:2] == ["Aula Lantai III", "Ruang Sidang Lantai II"]

    def test_calendar_defaults_to_current_month(self, client):
        res = client.get("/api/public/calendar/VENUE")
        body = res.json()

        assert res.status_code == 200
        assert body["month"] == "2024-11"
        assert body["today"] == "2024-11-10"
        assert body["can_go_previous"] is False
        assert body["previous_month"] is None
        assert body["next_month"] == "2024-12"
        assert len(body["cells"]) == 5 + 30
        assert body["selected_day"] is None

    def test_calendar_month_is_clamped(self, client):
        assert client.get("/api/public/calendar/VEHICLE?month=2023-01").json()["month"] == "2024-11"
        body = client.get("/api/public/calendar/VEHICLE?month=2026-01").json()
        assert body["month"] == "2025-11"
        assert body["can_go_next"] is False

    def test_bad_month_is_400(self, client):
        res = client.get("/api/public/calendar/VENUE?month=11-2024")

        assert res.status_code == 400
        assert res.json()["field"] == "month"

    def test_unknown_resource_type_is_422(self, client):
        assert client.get("/api/public/calendar/BOAT").status_code == 422

    def test_conflicts_without_candidate_is_empty(self, client):
        res = client.get("/api/public/conflicts/VENUE")

        assert res.status_code == 200
        assert res.json() == []


class TestAdminBookings:
    def test_requires_operator_token(self, client):
        assert client.post("/api/admin/bookings", json=_venue_payload()).status_code == 401
        res = client.post("/api/admin/bookings", json=_venue_payload(), headers={"X-Operator-Token": "wrong"})
        assert res.status_code == 401

    def test_same_day_booking_is_allowed_but_flagged(self, client, operator_headers):
        first = client.post("/api/admin/bookings", json=_venue_payload(), headers=operator_headers)
        assert first.status_code == 200
        assert first.json()["conflicts"] == []
        assert first.json()["booking"]["status"] == "PENDING"

        second = client.post(
            "/api/admin/bookings",
            json=_venue_payload(schedule_at="2024-11-15T14:00:00", requester_name="Fakultas"),
            headers=operator_headers,
        )
        assert second.status_code == 200
        assert [c["id"] for c in second.json()["conflicts"]] == [first.json()["booking"]["id"]]

    def test_vehicle_and_venue_do_not_conflict(self, client, operator_headers):
        client.post("/api/admin/bookings", json=_venue_payload(), headers=operator_headers)
        res = client.post("/api/admin/bookings", json=_vehicle_payload(), headers=operator_headers)

        assert res.json()["conflicts"] == []
        assert res.json()["booking"]["location"] == "Kantor Pusat"

    def test_missing_requester_is_400(self, client, operator_headers):
        res = client.post("/api/admin/bookings", json=_venue_payload(requester_name=""), headers=operator_headers)

        assert res.status_code == 400
        assert res.json()["field"] == "requester_name"

    def test_past_date_is_400(self, client, operator_headers):
        res = client.post(
            "/api/admin/bookings", json=_venue_payload(schedule_at="2024-11-09T09:00:00"), headers=operator_headers
        )

        assert res.status_code == 400
        assert res.json()["field"] == "schedule_at"

    def test_select_future_day_seeds_draft(self, client, operator_headers):
        client.post("/api/admin/bookings", json=_venue_payload(), headers=operator_headers)

        res = client.post("/api/admin/calendar/VENUE/select?day=2024-11-15", headers=operator_headers)
        body = res.json()

        assert res.status_code == 200
        assert body["selected_day"] == "2024-11-15"
        assert body["draft"]["schedule_at"] == "2024-11-15T09:00:00"
        assert body["draft"]["location"] == "Aula Lantai III"
        assert len(body["conflicts"]) == 1

    def test_select_past_day_is_400(self, client, operator_headers):
        res = client.post("/api/admin/calendar/VEHICLE/select?day=2024-11-09", headers=operator_headers)

        assert res.status_code == 400

    def test_public_selection_of_past_day_does_not_fail(self, client):
        res = client.get("/api/public/calendar/VEHICLE?day=2024-11-09")

        assert res.status_code == 200
        assert res.json()["selected_day"] is None

    def test_calendar_lists_and_filters_bookings(self, client, operator_headers):
        client.post("/api/admin/bookings", json=_venue_payload(schedule_at="2024-11-20T09:00:00"), headers=operator_headers)
        client.post("/api/admin/bookings", json=_venue_payload(schedule_at="2024-11-15T13:00:00"), headers=operator_headers)

        body = client.get("/api/public/calendar/VENUE").json()
        assert [b["schedule_at"] for b in body["bookings"]] == ["2024-11-15T13:00:00", "2024-11-20T09:00:00"]
        cell = next(c for c in body["cells"] if c["day_number"] == 20)
        assert cell["has_bookings"] is True

        body = client.get("/api/public/calendar/VENUE?day=2024-11-20").json()
        assert body["selected_day"] == "2024-11-20"
        assert [b["schedule_at"] for b in body["bookings"]] == ["2024-11-20T09:00:00"]


class TestAdminRequests:
    def test_rejected_booking_stops_conflicting(self, client, operator_headers):
        created = client.post("/api/admin/bookings", json=_vehicle_payload(), headers=operator_headers).json()
        booking_id = created["booking"]["id"]
        assert len(client.get("/api/public/conflicts/VEHICLE?at=2024-11-15T12:00:00").json()) == 1

        res = client.patch(f"/api/admin/requests/{booking_id}/status", json={"status": "REJECTED"}, headers=operator_headers)

        assert res.status_code == 200
        assert res.json()["status"] == "REJECTED"
        assert client.get("/api/public/conflicts/VEHICLE?at=2024-11-15T12:00:00").json() == []
        assert client.get("/api/public/calendar/VEHICLE").json()["bookings"] == []

    def test_unknown_id_is_404(self, client, operator_headers):
        res = client.patch("/api/admin/requests/nope/status", json={"status": "REJECTED"}, headers=operator_headers)
        assert res.status_code == 404
        assert client.get("/api/admin/requests/nope", headers=operator_headers).status_code == 404
        assert client.delete("/api/admin/requests/nope", headers=operator_headers).status_code == 404

    def test_illegal_transition_is_400(self, client, operator_headers):
        booking_id = client.post("/api/admin/bookings", json=_venue_payload(), headers=operator_headers).json()["booking"]["id"]

        res = client.patch(f"/api/admin/requests/{booking_id}/status", json={"status": "COMPLETED"}, headers=operator_headers)

        assert res.status_code == 400

    def test_tickets_and_listing(self, client, operator_headers):
        ticket = client.post(
            "/api/admin/tickets",
            json={"category": "CLEAN_WATER", "requester_name": "Siti Aminah", "description": "Kran air patah"},
            headers=operator_headers,
        )
        assert ticket.status_code == 200
        assert ticket.json()["schedule_at"] is None

        listing = client.get("/api/admin/requests?category=CLEAN_WATER", headers=operator_headers).json()
        assert [r["id"] for r in listing] == [ticket.json()["id"]]

    def test_delete_request(self, client, operator_headers):
        booking_id = client.post("/api/admin/bookings", json=_venue_payload(), headers=operator_headers).json()["booking"]["id"]

        assert client.delete(f"/api/admin/requests/{booking_id}", headers=operator_headers).json() == {"ok": True}
        assert client.get(f"/api/admin/requests/{booking_id}", headers=operator_headers).status_code == 404


class TestEditRequest:
    def test_moving_onto_an_occupied_day_returns_conflicts(self, client, operator_headers):
        occupied = client.post(
            "/api/admin/bookings", json=_venue_payload(schedule_at="2024-11-20T13:00:00"), headers=operator_headers
        ).json()["booking"]
        moving = client.post("/api/admin/bookings", json=_venue_payload(), headers=operator_headers).json()["booking"]

        res = client.patch(
            f"/api/admin/requests/{moving['id']}",
            json={"schedule_at": "2024-11-20T08:00:00", "activity_name": "Rapat Pleno"},
            headers=operator_headers,
        )

        assert res.status_code == 200
        body = res.json()
        assert body["request"]["schedule_at"] == "2024-11-20T08:00:00"
        assert body["request"]["activity_name"] == "Rapat Pleno"
        assert [c["id"] for c in body["conflicts"]] == [occupied["id"]]

    def test_move_to_past_date_is_400(self, client, operator_headers):
        booking_id = client.post("/api/admin/bookings", json=_venue_payload(), headers=operator_headers).json()["booking"]["id"]

        res = client.patch(
            f"/api/admin/requests/{booking_id}", json={"schedule_at": "2024-11-09T09:00:00"}, headers=operator_headers
        )

        assert res.status_code == 400
        assert res.json()["field"] == "schedule_at"

    def test_unknown_facility_is_400(self, client, operator_headers):
        booking_id = client.post("/api/admin/bookings", json=_venue_payload(), headers=operator_headers).json()["booking"]["id"]

        res = client.patch(f"/api/admin/requests/{booking_id}", json={"location": "Lapangan"}, headers=operator_headers)

        assert res.status_code == 400
        assert res.json()["field"] == "location"

    def test_unknown_id_is_404(self, client, operator_headers):
        res = client.patch("/api/admin/requests/nope", json={"description": "x"}, headers=operator_headers)
        assert res.status_code == 404

    def test_requires_operator_token(self, client):
        assert client.patch("/api/admin/requests/nope", json={"description": "x"}).status_code == 401


class TestAdminCalendarDay:
    def test_past_day_with_bookings_can_be_reviewed(self, client, db, operator_headers):
        old = create_booking(db, VenueBookingDraft(**_venue_fields(schedule_at=datetime(2024, 11, 5, 9, 0))), now=LAST_WEEK)

        res = client.get("/api/admin/calendar/VENUE?day=2024-11-05", headers=operator_headers)

        assert res.status_code == 200
        body = res.json()
        assert body["selected_day"] == "2024-11-05"
        assert [b["id"] for b in body["bookings"]] == [old.id]

    def test_past_day_without_bookings_is_ignored(self, client, operator_headers):
        res = client.get("/api/admin/calendar/VEHICLE?day=2024-11-09", headers=operator_headers)

        assert res.status_code == 200
        assert res.json()["selected_day"] is None

    def test_future_day_filters_the_list(self, client, operator_headers):
        client.post("/api/admin/bookings", json=_vehicle_payload(schedule_at="2024-11-15T07:00:00"), headers=operator_headers)
        client.post("/api/admin/bookings", json=_vehicle_payload(schedule_at="2024-11-18T07:00:00"), headers=operator_headers)

        body = client.get("/api/admin/calendar/VEHICLE?day=2024-11-18", headers=operator_headers).json()

        assert body["selected_day"] == "2024-11-18"
        assert [b["schedule_at"] for b in body["bookings"]] == ["2024-11-18T07:00:00"]

    def test_day_picks_the_month(self, client, operator_headers):
        body = client.get("/api/admin/calendar/VENUE?day=2024-12-03", headers=operator_headers).json()

        assert body["month"] == "2024-12"
        assert body["selected_day"] == "2024-12-03"


class TestPublicStatusBoard:
    def test_board_order_and_rejected_hidden(self, client, operator_headers):
        ids = [
            client.post("/api/admin/bookings", json=_venue_payload(), headers=operator_headers).json()["booking"]["id"]
            for _ in range(3)
        ]
        client.patch(f"/api/admin/requests/{ids[0]}/status", json={"status": "REJECTED"}, headers=operator_headers)
        client.patch(f"/api/admin/requests/{ids[2]}/status", json={"status": "IN_PROGRESS"}, headers=operator_headers)

        board = client.get("/api/public/requests").json()

        assert [r["id"] for r in board] == [ids[2], ids[1]]
        assert client.get("/api/public/requests?category=VEHICLE").json() == []

    def test_agenda_lists_upcoming_bookings(self, client, db, operator_headers):
        create_booking(db, VenueBookingDraft(**_venue_fields(schedule_at=datetime(2024, 11, 9, 9, 0))), now=LAST_WEEK)
        client.post("/api/admin/bookings", json=_vehicle_payload(schedule_at="2024-11-18T07:00:00"), headers=operator_headers)
        client.post("/api/admin/bookings", json=_venue_payload(schedule_at="2024-11-10T07:00:00"), headers=operator_headers)

        agenda = client.get("/api/public/agenda").json()

        assert [(r["category"], r["schedule_at"]) for r in agenda] == [
            ("VENUE", "2024-11-10T07:00:00"),
            ("VEHICLE", "2024-11-18T07:00:00"),
        ]

    def test_summary_counts(self, client, operator_headers):
        ids = [
            client.post("/api/admin/bookings", json=_venue_payload(), headers=operator_headers).json()["booking"]["id"]
            for _ in range(3)
        ]
        for booking_id in ids[:2]:
            client.patch(f"/api/admin/requests/{booking_id}/status", json={"status": "IN_PROGRESS"}, headers=operator_headers)
        client.patch(f"/api/admin/requests/{ids[0]}/status", json={"status": "COMPLETED"}, headers=operator_headers)

        assert client.get("/api/public/summary").json() == {"completed": 1, "in_progress": 1}


class TestAnalysis:
    """Gemini calls go to an httpx.MockTransport; nothing leaves the process."""

    def _use_gemini(self, client, handler):
        transport = httpx.MockTransport(handler)
        client.app.dependency_overrides[get_gemini_client] = lambda: GeminiClient(
            "test-key", model="gemini-2.5-flash", transport=transport
        )

    def _open_ticket(self, client, operator_headers):
        client.post(
            "/api/admin/tickets",
            json={"category": "AIR_CONDITIONING", "requester_name": "Budi", "description": "AC ruang rapat bocor", "priority": "High"},
            headers=operator_headers,
        )

    def test_missing_key(self, client, operator_headers):
        client.app.dependency_overrides[get_gemini_client] = lambda: None

        res = client.post("/api/admin/analysis", headers=operator_headers)

        assert res.status_code == 200
        assert res.json() == {"summary": MISSING_KEY_MESSAGE, "analyzed_count": 0}

    def test_nothing_open_skips_the_call(self, client, operator_headers):
        calls = []
        self._use_gemini(client, lambda request: calls.append(request) or httpx.Response(200, json={}))

        res = client.post("/api/admin/analysis", headers=operator_headers)

        assert res.json()["summary"] == NOTHING_TO_ANALYZE_MESSAGE
        assert calls == []

    def test_summary_from_the_model(self, client, operator_headers):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "Prioritaskan perbaikan AC."}]}}]})

        self._use_gemini(client, handler)
        self._open_ticket(client, operator_headers)

        res = client.post("/api/admin/analysis", headers=operator_headers)

        assert res.json() == {"summary": "Prioritaskan perbaikan AC.", "analyzed_count": 1}
        assert seen[0].url.path == "/v1beta/models/gemini-2.5-flash:generateContent"
        assert seen[0].url.params["key"] == "test-key"
        assert "AC ruang rapat bocor" in json.loads(seen[0].content)["contents"][0]["parts"][0]["text"]

    def test_service_error(self, client, operator_headers):
        self._use_gemini(client, lambda request: httpx.Response(503, json={"error": "unavailable"}))
        self._open_ticket(client, operator_headers)

        res = client.post("/api/admin/analysis", headers=operator_headers)

        assert res.status_code == 200
        assert res.json()["summary"] == SERVICE_ERROR_MESSAGE

    def test_empty_answer(self, client, operator_headers):
        self._use_gemini(client, lambda request: httpx.Response(200, json={"candidates": []}))
        self._open_ticket(client, operator_headers)

        assert client.post("/api/admin/analysis", headers=operator_headers).json()["summary"] == EMPTY_ANSWER_MESSAGE

    def test_requires_operator_token(self, client):
        assert client.post("/api/admin/analysis").status_code == 401
