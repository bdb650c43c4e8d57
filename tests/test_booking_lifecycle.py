import pytest

from models import db
from models.booking import Booking
from tests.conftest import days_from_today


@pytest.fixture
def booking_id(book):
    return book(userId=1, dietitianId=10, time="10:00").get_json()["data"]["id"]


def test_get_booking(client, booking_id):
    resp = client.get(f"/api/bookings/{booking_id}")
    assert resp.status_code == 200
    assert resp.get_json()["data"]["id"] == booking_id


def test_get_booking_bad_and_missing_ids(client):
    assert client.get("/api/bookings/abc").status_code == 400
    assert client.get("/api/bookings/9999").status_code == 404


@pytest.mark.parametrize("target", ["completed", "no-show", "cancelled"])
def test_confirmed_moves_to_any_terminal_status(client, booking_id, target):
    resp = client.patch(f"/api/bookings/{booking_id}/status", json={"status": target})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["status"] == target


def test_invalid_status_value(client, booking_id):
    resp = client.patch(f"/api/bookings/{booking_id}/status", json={"status": "pending"})
    assert resp.status_code == 400
    assert "Must be one of" in resp.get_json()["message"]


def test_terminal_status_is_final(client, booking_id):
    client.patch(f"/api/bookings/{booking_id}/status", json={"status": "completed"})

    resp = client.patch(f"/api/bookings/{booking_id}/status", json={"status": "confirmed"})
    assert resp.status_code == 400
    assert "completed" in resp.get_json()["message"]
    assert db.session.get(Booking, booking_id).status == "completed"


def test_status_update_unknown_booking(client):
    resp = client.patch("/api/bookings/4242/status", json={"status": "completed"})
    assert resp.status_code == 404


def test_cancel(client, booking_id):
    resp = client.delete(f"/api/bookings/{booking_id}")
    assert resp.status_code == 200
    assert resp.get_json()["data"]["status"] == "cancelled"


@pytest.mark.parametrize("status", ["completed", "cancelled", "no-show"])
def test_cancel_terminal_booking_fails_and_keeps_status(client, booking_id, status):
    client.patch(f"/api/bookings/{booking_id}/status", json={"status": status})

    resp = client.delete(f"/api/bookings/{booking_id}")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == f"Cannot cancel a {status} booking"
    assert db.session.get(Booking, booking_id).status == status


def test_cancel_missing_booking(client):
    assert client.delete("/api/bookings/777").status_code == 404


def test_reschedule_moves_slot_and_keeps_status(client, booking_id):
    new_date = days_from_today(3)
    resp = client.patch(f"/api/bookings/{booking_id}/reschedule", json={"date": new_date, "time": "17:30"})
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["date"] == new_date
    assert data["time"] == "17:30"
    assert data["status"] == "confirmed"


def test_reschedule_onto_own_slot_is_allowed(client, booking_id):
    booking = db.session.get(Booking, booking_id)
    resp = client.patch(
        f"/api/bookings/{booking_id}/reschedule",
        json={"date": booking.date.strftime("%Y-%m-%d"), "time": booking.time},
    )
    assert resp.status_code == 200


def test_reschedule_into_booked_slot(client, book, booking_id):
    date = days_from_today(2)
    book(userId=2, dietitianId=10, time="11:00", email="u2@example.com")

    resp = client.patch(f"/api/bookings/{booking_id}/reschedule", json={"date": date, "time": "11:00"})
    assert resp.status_code == 400
    assert "already booked" in resp.get_json()["message"]


def test_reschedule_into_users_other_appointment(client, book, booking_id):
    date = days_from_today(2)
    book(userId=1, dietitianId=20, dietitianName="Dr. Kabir Shah", time="13:00")

    resp = client.patch(f"/api/bookings/{booking_id}/reschedule", json={"date": date, "time": "13:00"})
    assert resp.status_code == 400
    assert "Dr. Kabir Shah" in resp.get_json()["message"]


def test_reschedule_into_blocked_slot(client, booking_id):
    date = days_from_today(4)
    client.post("/api/dietitians/10/block-slot", json={"date": date, "time": "14:00"})

    resp = client.patch(f"/api/bookings/{booking_id}/reschedule", json={"date": date, "time": "14:00"})
    assert resp.status_code == 400
    assert "blocked" in resp.get_json()["message"]


def test_reschedule_validation(client, booking_id):
    assert client.patch(f"/api/bookings/{booking_id}/reschedule", json={"date": days_from_today(2)}).status_code == 400
    assert client.patch(
        f"/api/bookings/{booking_id}/reschedule", json={"date": days_from_today(-1), "time": "10:00"}
    ).status_code == 400
    assert client.patch(
        "/api/bookings/5555/reschedule", json={"date": days_from_today(2), "time": "10:00"}
    ).status_code == 404


def test_reschedule_cancelled_booking(client, booking_id):
    client.delete(f"/api/bookings/{booking_id}")
    resp = client.patch(f"/api/bookings/{booking_id}/reschedule", json={"date": days_from_today(5), "time": "10:00"})
    assert resp.status_code == 400
    assert "cancelled" in resp.get_json()["message"]


def test_list_user_and_dietitian_bookings(client, book):
    book(userId=1, dietitianId=10, time="09:00")
    book(userId=1, dietitianId=20, time="09:30")
    cancelled = book(userId=1, dietitianId=10, time="10:30").get_json()["data"]["id"]
    client.delete(f"/api/bookings/{cancelled}")

    resp = client.get("/api/bookings/user/1")
    assert resp.status_code == 200
    assert resp.get_json()["count"] == 3

    resp = client.get("/api/bookings/user/1?status=confirmed&sort=date")
    assert resp.get_json()["count"] == 2

    resp = client.get("/api/bookings/dietitian/10")
    assert resp.get_json()["count"] == 2

    assert client.get("/api/bookings/user/abc").status_code == 400
    assert client.get("/api/bookings/dietitian/abc").status_code == 400
    assert client.get("/api/bookings/user/1?sort=bogus").status_code == 400


@pytest.mark.parametrize("time", ["10:15", "06:30", "21:00"])
def test_reschedule_rejects_times_off_the_slot_grid(client, booking_id, time):
    resp = client.patch(f"/api/bookings/{booking_id}/reschedule", json={"date": days_from_today(3), "time": time})
    assert resp.status_code == 400
    assert db.session.get(Booking, booking_id).time == "10:00"


def test_oversized_booking_id_is_invalid(client):
    resp = client.get("/api/bookings/99999999999999999999999")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Invalid booking ID"
