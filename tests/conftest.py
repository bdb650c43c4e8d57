from datetime import date, timedelta
from itertools import count

import pytest

from app import create_app
from config import TestConfig
from models import db
from models.subscription import Subscription

_payment_seq = count(1)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def days_from_today(days: int) -> str:
    return (date.today() + timedelta(days=days)).strftime("%Y-%m-%d")


def booking_payload(**overrides):
    payload = {
        "userId": 1,
        "username": "Asha Rao",
        "email": "asha@example.com",
        "userPhone": "+91 90000 00001",
        "dietitianId": 10,
        "dietitianName": "Dr. Meera Iyer",
        "dietitianEmail": "meera@example.com",
        "dietitianSpecialization": "Sports nutrition",
        "date": days_from_today(2),
        "time": "10:00",
        "consultationType": "Online",
        "amount": 799,
        "paymentMethod": "upi",
        "paymentId": f"pay_{next(_payment_seq):06d}",
    }
    payload.update(overrides)
    return payload


def add_subscription(user_id: int, plan: str, cycle: str = "monthly", active: bool = True):
    sub = Subscription(user_id=user_id, plan_type=plan, billing_cycle=cycle)
    if active:
        sub.activate()
    db.session.add(sub)
    db.session.commit()
    return sub


@pytest.fixture
def book(client):
    """POST a booking built from booking_payload(**overrides); returns the response."""
    def _book(**overrides):
        return client.post("/api/bookings/create", json=booking_payload(**overrides))
    return _book
