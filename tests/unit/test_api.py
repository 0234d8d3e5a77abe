"""
HTTP tests for the FastAPI application.
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from templebook.enums import Role
from templebook.models import Booking

API = "/api/v1"


def _utc_today():
    return datetime.now(timezone.utc).date()


def _book(client, headers, temple, visit_date, count=2):
    return client.post(f"{API}/bookings/", headers=headers, json={
        "temple_id": temple.id,
        "time_slot_id": temple.slot_ids[0],
        "visit_date": visit_date.isoformat(),
        "ticket_count": count,
    })


class TestMeta:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestAuth:
    def test_register_login_and_me(self, client):
        response = client.post(f"{API}/auth/register", json={
            "name": "Asha",
            "email": "asha@example.com",
            "password": "secret123",
            "phone": "+91 9000000001",
        })
        assert response.status_code == 201
        assert response.json()["role"] == "USER"
        assert response.json()["is_approved"] is True
        assert "password" not in response.json()

        login = client.post(f"{API}/auth/login", json={"email": "asha@example.com", "password": "secret123"})
        assert login.status_code == 200
        token = login.json()["access_token"]
        assert login.json()["token_type"] == "bearer"

        me = client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["email"] == "asha@example.com"

    def test_temple_board_registers_unapproved(self, client):
        response = client.post(f"{API}/auth/register", json={
            "name": "Board", "email": "board@example.com", "password": "secret123", "role": "TEMPLE_BOARD"
        })
        assert response.status_code == 201
        assert response.json()["is_approved"] is False

    def test_superuser_cannot_self_register(self, client):
        response = client.post(f"{API}/auth/register", json={
            "name": "Root", "email": "root@example.com", "password": "secret123", "role": "SUPERUSER"
        })
        assert response.status_code == 400

    def test_duplicate_email(self, client):
        body = {"name": "Asha", "email": "dup@example.com", "password": "secret123"}
        assert client.post(f"{API}/auth/register", json=body).status_code == 201
        response = client.post(f"{API}/auth/register", json=body)
        assert response.status_code == 400
        assert response.json()["detail"] == "Email already registered"

    def test_wrong_password(self, client, visitor):
        response = client.post(f"{API}/auth/login", json={"email": "user1@example.com", "password": "wrong-pass"})
        assert response.status_code == 401

    def test_missing_token(self, client):
        assert client.get(f"{API}/bookings/").status_code == 401

    def test_garbage_token(self, client):
        response = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401


class TestApprovalFlow:
    def test_board_acts_only_after_approval(self, client, make_user, superuser, auth_headers):
        pending = make_user(Role.TEMPLE_BOARD, is_approved=False)
        temple = {
            "name": "Meenakshi Amman Temple",
            "city": "Madurai",
            "daily_ticket_limit": 600,
            "ticket_price": "20",
            "time_slots": [{"start_time": "06:00", "end_time": "08:00", "capacity": 100}],
        }

        refused = client.post(f"{API}/temples/", headers=auth_headers(pending), json=temple)
        assert refused.status_code == 403
        assert refused.json() == {"detail": "Your account is pending approval", "code": "permission_denied"}

        listed = client.get(f"{API}/admin/users", headers=auth_headers(superuser), params={"pending": "true"})
        assert [u["id"] for u in listed.json()] == [pending.user_id]

        approved = client.post(
            f"{API}/admin/approve",
            headers=auth_headers(superuser),
            json={"user_id": pending.user_id, "is_approved": True},
        )
        assert approved.status_code == 200
        assert approved.json()["message"] == "User approved successfully"
        assert approved.json()["user"]["is_approved"] is True

        # Approval is read from the database on every request, so the old token now works
        created = client.post(f"{API}/temples/", headers=auth_headers(pending), json=temple)
        assert created.status_code == 201
        assert created.json()["owner_id"] == pending.user_id
        assert len(created.json()["time_slots"]) == 1

    def test_admin_endpoints_require_superuser(self, client, board, auth_headers):
        assert client.get(f"{API}/admin/stats", headers=auth_headers(board)).status_code == 403


class TestTemples:
    def test_list_and_get(self, client, temple):
        listed = client.get(f"{API}/temples/")
        assert [t["id"] for t in listed.json()] == [temple.id]

        detail = client.get(f"{API}/temples/{temple.id}")
        assert detail.json()["time_slots"][0]["id"] == temple.slot_ids[0]

    def test_unknown_temple(self, client):
        response = client.get(f"{API}/temples/999")
        assert response.status_code == 404
        assert response.json()["detail"] == "Temple not found or inactive"

    def test_invalid_slot_window(self, client, temple, board, auth_headers):
        response = client.post(
            f"{API}/temples/{temple.id}/slots",
            headers=auth_headers(board),
            json={"start_time": "10:00", "end_time": "09:00", "capacity": 5},
        )
        assert response.status_code == 422

    def test_update_and_deactivate(self, client, temple, board, auth_headers):
        updated = client.put(f"{API}/temples/{temple.id}", headers=auth_headers(board), json={"ticket_price": "75"})
        assert Decimal(updated.json()["ticket_price"]) == Decimal("75")

        deleted = client.delete(f"{API}/temples/{temple.id}", headers=auth_headers(board))
        assert deleted.json()["is_active"] is False
        assert client.get(f"{API}/temples/{temple.id}").status_code == 404

    @pytest.mark.parametrize("field", ["name", "daily_ticket_limit", "ticket_price", "is_active"])
    def test_null_for_required_column_is_rejected(self, client, temple, board, auth_headers, field):
        response = client.put(f"{API}/temples/{temple.id}", headers=auth_headers(board), json={field: None})

        assert response.status_code == 422
        detail = client.get(f"{API}/temples/{temple.id}").json()
        assert Decimal(detail["ticket_price"]) == Decimal("50")
        assert detail["daily_ticket_limit"] == 10

    def test_null_for_optional_column_clears_it(self, client, temple, board, auth_headers):
        response = client.put(f"{API}/temples/{temple.id}", headers=auth_headers(board), json={"city": None})

        assert response.status_code == 200
        assert response.json()["city"] is None

    def test_availability(self, client, temple, visitor, auth_headers, visit_date):
        _book(client, auth_headers(visitor), temple, visit_date, count=2)

        response = client.get(f"{API}/temples/{temple.id}/availability", params={"visit_date": visit_date.isoformat()})

        body = response.json()
        assert body["daily_limit"] == 10
        assert body["daily_booked"] == 2
        assert body["daily_available"] == 8
        assert body["slots"][0]["available"] == 4


class TestBookingFlow:
    def test_book_then_verify_twice(self, client, codec, temple, visitor, board, auth_headers, visit_date):
        created = _book(client, auth_headers(visitor), temple, visit_date, count=2)
        assert created.status_code == 201
        booking = created.json()
        assert booking["status"] == "CONFIRMED"
        assert Decimal(booking["total_amount"]) == Decimal("100")
        assert booking["booking_number"].startswith("TBK-")
        assert booking["ticket_image"].startswith("data:image/png;base64,")
        assert booking["time_slot"] == "09:00 - 11:00"

        first = client.post(f"{API}/bookings/verify", headers=auth_headers(board), json={"token": booking["ticket_token"]})
        assert first.status_code == 200
        assert first.json()["message"] == "Booking verified successfully"
        assert first.json()["already_verified"] is False
        assert first.json()["verified_by"]["id"] == board.user_id
        assert first.json()["booking"]["status"] == "VERIFIED"
        # Operators never receive the ticket itself
        assert first.json()["booking"]["ticket_token"] is None

        second = client.post(f"{API}/bookings/verify", headers=auth_headers(board), json={"token": booking["ticket_token"]})
        assert second.status_code == 200
        assert second.json()["already_verified"] is True
        assert second.json()["verified_at"] == first.json()["verified_at"]

    def test_capacity_rejection(self, client, temple, visitor, auth_headers, visit_date):
        assert _book(client, auth_headers(visitor), temple, visit_date, count=5).status_code == 201

        response = _book(client, auth_headers(visitor), temple, visit_date, count=4)

        assert response.status_code == 409
        assert response.json() == {
            "detail": "Time slot capacity reached, only 1 left",
            "code": "capacity_exceeded",
            "scope": "slot",
            "available": 1,
            "limit": 6,
        }

    def test_tampered_ticket(self, client, temple, visitor, board, auth_headers, visit_date):
        token = _book(client, auth_headers(visitor), temple, visit_date).json()["ticket_token"]
        tampered = token[:-1] + ("0" if token[-1] != "0" else "1")

        response = client.post(f"{API}/bookings/verify", headers=auth_headers(board), json={"token": tampered})

        assert response.status_code == 400
        assert response.json() == {"detail": "Invalid or tampered ticket", "code": "invalid_ticket"}

    def test_foreign_operator(self, client, temple, visitor, other_board, auth_headers, visit_date):
        token = _book(client, auth_headers(visitor), temple, visit_date).json()["ticket_token"]

        response = client.post(f"{API}/bookings/verify", headers=auth_headers(other_board), json={"token": token})

        assert response.status_code == 403

    def test_past_date_is_rejected(self, client, temple, visitor, auth_headers):
        response = _book(client, auth_headers(visitor), temple, _utc_today() - timedelta(days=1))
        assert response.status_code == 422

    def test_board_cannot_book(self, client, temple, board, auth_headers, visit_date):
        response = _book(client, auth_headers(board), temple, visit_date)
        assert response.status_code == 403
        assert response.json()["detail"] == "Only users can create bookings"

    def test_list_get_and_cancel(self, client, temple, visitor, board, auth_headers, visit_date):
        number = _book(client, auth_headers(visitor), temple, visit_date).json()["booking_number"]

        mine = client.get(f"{API}/bookings/", headers=auth_headers(visitor)).json()
        assert [b["booking_number"] for b in mine] == [number]
        assert mine[0]["ticket_token"] is not None

        seen_by_board = client.get(f"{API}/bookings/", headers=auth_headers(board), params={"temple_id": temple.id}).json()
        assert seen_by_board[0]["ticket_token"] is None

        detail = client.get(f"{API}/bookings/{number}", headers=auth_headers(visitor))
        assert detail.json()["temple_name"] == "Shri Test Temple"

        cancelled = client.post(f"{API}/bookings/{number}/cancel", headers=auth_headers(visitor))
        assert cancelled.json()["status"] == "CANCELLED"

        again = client.post(f"{API}/bookings/{number}/cancel", headers=auth_headers(visitor))
        assert again.status_code == 409
        assert again.json()["code"] == "invalid_booking_state"

        filtered = client.get(f"{API}/bookings/", headers=auth_headers(visitor), params={"status": "CONFIRMED"})
        assert filtered.json() == []

    def test_unknown_booking(self, client, visitor, auth_headers):
        response = client.get(f"{API}/bookings/TBK-NOPE-000000", headers=auth_headers(visitor))
        assert response.status_code == 404


class TestAdmin:
    def test_stats_and_expiry(self, client, session_factory, temple, visitor, superuser, auth_headers, visit_date):
        number = _book(client, auth_headers(visitor), temple, visit_date, count=3).json()["booking_number"]

        stats = client.get(f"{API}/admin/stats", headers=auth_headers(superuser)).json()
        assert stats["stats"]["total_bookings"] == 1
        assert Decimal(stats["stats"]["total_revenue"]) == Decimal("150")
        assert {"status": "CONFIRMED", "count": 1} in stats["bookings_by_status"]

        # A booking for a later day is left alone
        not_yet = client.post(f"{API}/admin/bookings/expire", headers=auth_headers(superuser), json={})
        assert not_yet.json()["expired"] == 0

        session = session_factory()
        try:
            session.query(Booking).filter(Booking.booking_number == number).update(
                {"visit_date": _utc_today() - timedelta(days=2)}
            )
            session.commit()
        finally:
            session.close()

        expired = client.post(f"{API}/admin/bookings/expire", headers=auth_headers(superuser), json={})
        assert expired.json()["expired"] == 1

        stats = client.get(f"{API}/admin/stats", headers=auth_headers(superuser)).json()
        assert Decimal(stats["stats"]["total_revenue"]) == Decimal("0")

    def test_expire_defaults_to_today(self, client, superuser, auth_headers):
        response = client.post(f"{API}/admin/bookings/expire", headers=auth_headers(superuser), json={})
        assert response.json() == {"expired": 0, "before": _utc_today().isoformat()}

    def test_future_cutoff_is_rejected(self, client, temple, visitor, superuser, auth_headers, visit_date):
        number = _book(client, auth_headers(visitor), temple, visit_date).json()["booking_number"]

        response = client.post(
            f"{API}/admin/bookings/expire",
            headers=auth_headers(superuser),
            json={"before": (visit_date + timedelta(days=1)).isoformat()},
        )

        assert response.status_code == 422
        assert response.json()["field"] == "before"
        detail = client.get(f"{API}/bookings/{number}", headers=auth_headers(visitor))
        assert detail.json()["status"] == "CONFIRMED"

    @pytest.mark.parametrize("role", ["USER", "TEMPLE_BOARD"])
    def test_user_listing_by_role(self, client, superuser, visitor, board, auth_headers, role):
        users = client.get(f"{API}/admin/users", headers=auth_headers(superuser), params={"role": role}).json()
        assert {u["role"] for u in users} == {role}
