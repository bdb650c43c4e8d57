from tests.conftest import days_from_today


def test_slot_query_partitions_the_day(client, book):
    date = days_from_today(2)
    book(userId=1, dietitianId=10, time="10:00", date=date)
    book(userId=2, dietitianId=10, time="11:00", date=date, email="u2@example.com")
    book(userId=1, dietitianId=20, time="12:00", date=date, dietitianName="Dr. Kabir Shah")
    client.post("/api/dietitians/10/block-slot", json={"date": date, "time": "14:00"})

    resp = client.get(f"/api/bookings/dietitian/10/booked-slots?date={date}&userId=1")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["bookedSlots"] == ["11:00"]
    assert body["userBookings"] == ["10:00"]
    assert body["blockedSlots"] == ["14:00"]
    assert body["userConflictingTimes"] == ["10:00", "12:00"]
    for taken in ("10:00", "11:00", "12:00", "14:00"):
        assert taken not in body["availableSlots"]
    assert "09:00" in body["availableSlots"]
    assert not set(body["bookedSlots"]) & set(body["userBookings"])


def test_anonymous_caller_sees_everything_as_booked(client, book):
    date = days_from_today(2)
    book(userId=1, dietitianId=10, time="10:00", date=date)

    for user_param in ("", "null", "undefined"):
        body = client.get(f"/api/bookings/dietitian/10/booked-slots?date={date}&userId={user_param}").get_json()
        assert body["bookedSlots"] == ["10:00"]
        assert body["userBookings"] == []
        assert body["userConflictingTimes"] == []


def test_slot_query_requires_date(client):
    assert client.get("/api/bookings/dietitian/10/booked-slots").status_code == 400
    assert client.get("/api/bookings/dietitian/10/booked-slots?date=tomorrow").status_code == 400


def test_user_booked_slots_across_dietitians(client, book):
    date = days_from_today(2)
    book(userId=1, dietitianId=10, time="10:00", date=date)
    book(userId=1, dietitianId=20, time="12:00", date=date, dietitianName="Dr. Kabir Shah")

    body = client.get(f"/api/bookings/user/1/booked-slots?date={date}").get_json()
    assert body["bookedSlots"] == [
        {"time": "10:00", "dietitianName": "Dr. Meera Iyer"},
        {"time": "12:00", "dietitianName": "Dr. Kabir Shah"},
    ]
    assert client.get("/api/bookings/user/1/booked-slots").status_code == 400


def test_block_and_unblock(client, book):
    date = days_from_today(3)
    resp = client.post("/api/dietitians/10/block-slot", json={"date": date, "time": "14:00", "reason": "Clinic"})
    assert resp.status_code == 201

    again = client.post("/api/dietitians/10/block-slot", json={"date": date, "time": "14:00"})
    assert again.status_code == 409

    book(date=date, time="15:00")
    booked = client.post("/api/dietitians/10/block-slot", json={"date": date, "time": "15:00"})
    assert booked.status_code == 409
    assert "already booked" in booked.get_json()["message"]

    assert client.post("/api/dietitians/10/unblock-slot", json={"date": date, "time": "14:00"}).status_code == 200
    assert client.post("/api/dietitians/10/unblock-slot", json={"date": date, "time": "14:00"}).status_code == 404


def test_block_slot_validation(client):
    assert client.post("/api/dietitians/10/block-slot", json={"time": "10:00"}).status_code == 400
    assert client.post("/api/dietitians/x/block-slot", json={"date": days_from_today(1), "time": "10:00"}).status_code == 400
    assert client.post("/api/dietitians/10/block-slot", json={"date": days_from_today(1), "time": "1pm"}).status_code == 400


def test_slot_board(client, book):
    date = days_from_today(2)
    book(userId=1, dietitianId=10, time="10:00", date=date)
    book(userId=1, dietitianId=20, time="12:00", date=date, dietitianName="Dr. Kabir Shah")
    book(userId=2, dietitianId=10, time="11:00", date=date, email="u2@example.com")
    client.post("/api/dietitians/10/block-slot", json={"date": date, "time": "14:00"})

    body = client.get(f"/api/dietitians/10/slots?date={date}&userId=1").get_json()
    board = {s["time"]: s for s in body["slots"]}

    assert board["10:00"]["status"] == "booked_with_this_dietitian"
    assert board["10:00"]["isUserBooking"] is True
    assert board["12:00"]["status"] == "you_are_booked"
    assert board["12:00"]["dietitianName"] == "Dr. Kabir Shah"
    assert board["09:00"]["status"] == "available"
    assert "11:00" not in board
    assert "14:00" not in board


def test_slot_board_requires_date(client):
    assert client.get("/api/dietitians/10/slots").status_code == 400


def test_block_slot_must_be_on_the_grid(client):
    date = days_from_today(1)
    for time in ("10:15", "03:00"):
        resp = client.post("/api/dietitians/10/block-slot", json={"date": date, "time": time})
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "Time must be a consultation slot within working hours"
