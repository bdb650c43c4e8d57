from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import text

from models.db import db

ACTIVE_STATUSES = ("confirmed", "completed")
BOOKING_STATUSES = ("confirmed", "cancelled", "completed", "no-show")
TERMINAL_STATUSES = ("cancelled", "completed", "no-show")

CONSULTATION_TYPES = ("Online", "In-person")
PAYMENT_METHODS = ("card", "netbanking", "upi", "emi", "UPI", "Credit Card", "PayPal")

_ACTIVE_ONLY = text("status IN ('confirmed', 'completed')")


@dataclass(frozen=True)
class PartySnapshot:
    """Names and contact details of both parties as they were at booking time."""

    username: str
    email: str
    dietitian_name: str
    dietitian_email: str
    user_phone: Optional[str] = None
    user_address: Optional[str] = None
    dietitian_phone: Optional[str] = None
    dietitian_specialization: Optional[str] = None


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, nullable=False, index=True)
    dietitian_id = db.Column(db.Integer, nullable=False, index=True)

    # snapshot, not a join: stays accurate if a profile changes later
    username = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False, index=True)
    user_phone = db.Column(db.String(30), nullable=True)
    user_address = db.Column(db.String(255), nullable=True)
    dietitian_name = db.Column(db.String(120), nullable=False)
    dietitian_email = db.Column(db.String(255), nullable=False)
    dietitian_phone = db.Column(db.String(30), nullable=True)
    dietitian_specialization = db.Column(db.String(120), nullable=True)

    date = db.Column(db.DateTime, nullable=False, index=True)  # UTC midnight
    time = db.Column(db.String(5), nullable=False)              # HH:MM
    consultation_type = db.Column(db.String(20), nullable=False)

    amount = db.Column(db.Float, nullable=False)
    payment_method = db.Column(db.String(30), nullable=False)
    payment_id = db.Column(db.String(255), nullable=False, unique=True)
    payment_status = db.Column(db.String(20), nullable=False, default="completed")

    status = db.Column(db.String(20), nullable=False, default="confirmed")
    # status values: confirmed, cancelled, completed, no-show

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        # One active booking per dietitian slot and per client slot
        db.Index(
            "uq_bookings_dietitian_slot_active",
            "dietitian_id", "date", "time",
            unique=True,
            sqlite_where=_ACTIVE_ONLY,
            postgresql_where=_ACTIVE_ONLY,
        ),
        db.Index(
            "uq_bookings_user_slot_active",
            "user_id", "date", "time",
            unique=True,
            sqlite_where=_ACTIVE_ONLY,
            postgresql_where=_ACTIVE_ONLY,
        ),
    )

    @property
    def party_snapshot(self) -> PartySnapshot:
        return PartySnapshot(
            username=self.username,
            email=self.email,
            dietitian_name=self.dietitian_name,
            dietitian_email=self.dietitian_email,
            user_phone=self.user_phone,
            user_address=self.user_address,
            dietitian_phone=self.dietitian_phone,
            dietitian_specialization=self.dietitian_specialization,
        )

    @party_snapshot.setter
    def party_snapshot(self, snapshot: PartySnapshot):
        self.username = snapshot.username
        self.email = snapshot.email
        self.dietitian_name = snapshot.dietitian_name
        self.dietitian_email = snapshot.dietitian_email
        self.user_phone = snapshot.user_phone
        self.user_address = snapshot.user_address
        self.dietitian_phone = snapshot.dietitian_phone
        self.dietitian_specialization = snapshot.dietitian_specialization

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "username": self.username,
            "email": self.email,
            "userPhone": self.user_phone,
            "userAddress": self.user_address,
            "dietitianId": self.dietitian_id,
            "dietitianName": self.dietitian_name,
            "dietitianEmail": self.dietitian_email,
            "dietitianPhone": self.dietitian_phone,
            "dietitianSpecialization": self.dietitian_specialization,
            "date": self.date.strftime("%Y-%m-%d"),
            "time": self.time,
            "consultationType": self.consultation_type,
            "amount": self.amount,
            "paymentMethod": self.payment_method,
            "paymentId": self.payment_id,
            "paymentStatus": self.payment_status,
            "status": self.status,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
