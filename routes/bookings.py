import logging
import math
import re
from datetime import datetime

from flask import Blueprint, g, jsonify, request
from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import (
    BOOKING_STATUSES,
    CONSULTATION_TYPES,
    PAYMENT_METHODS,
    Booking,
    PartySnapshot,
)
from security.subscription_gate import caller_id_from_body, check_booking_limit, evaluate_booking_limits
from utils.audit import log_event
from utils.booking_queries import (
    find_blocked_slot,
    find_dietitian_conflict,
    find_user_conflict,
    get_dietitian_day_slots,
    get_user_day_slots,
)
from utils.notifications import notify_booking_created
from utils.slots import is_slot_time, is_valid_time, normalize_user_id, parse_booking_date, parse_id, utc_today

logger = logging.getLogger(__name__)

bookings_bp = Blueprint("bookings", __name__, url_prefix="/api/bookings")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

REQUIRED_CREATE_FIELDS = [
    "userId", "username", "email",
    "dietitianId", "dietitianName", "dietitianEmail",
    "date", "time", "consultationType",
    "amount", "paymentMethod", "paymentId",
]

# confirmed is the only state with a way out
STATUS_TRANSITIONS = {
    "confirmed": {"cancelled", "completed", "no-show"},
}

SORT_FIELDS = {
    "createdAt": Booking.created_at.asc(),
    "-createdAt": Booking.created_at.desc(),
    "date": Booking.date.asc(),
    "-date": Booking.date.desc(),
    "updatedAt": Booking.updated_at.asc(),
    "-updatedAt": Booking.updated_at.desc(),
}

BOOKED_WITH_DIETITIAN_MSG = "This time slot is already booked with this dietitian. Please select another slot."
BLOCKED_MSG = "This time slot is blocked by the dietitian. Please select another slot."
PAYMENT_USED_MSG = "This payment ID has already been used"
OFF_GRID_MSG = "Time must be a consultation slot within working hours"


def _fail(message, status_code, **extra):
    return jsonify(success=False, message=message, **extra), status_code


def _missing(data, name):
    value = data.get(name)
    return value is None or (isinstance(value, str) and not value.strip())


def _clean(data, name):
    value = data.get(name)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _parse_future_date(date_str):
    """(datetime, None) or (None, error response)."""
    try:
        day = parse_booking_date(date_str)
    except ValueError:
        return None, _fail("Invalid date format. Use YYYY-MM-DD", 400)
    if day < utc_today():
        return None, _fail("Booking date must be today or in the future", 400)
    return day, None


def _user_conflict_message(conflict, time):
    return (
        f"You already have an appointment with {conflict.dietitian_name} at {time} on this date. "
        f"Please select a different time slot."
    )


def _list_bookings(column, owner_id):
    status = request.args.get("status")
    sort = request.args.get("sort", "-createdAt")
    order = SORT_FIELDS.get(sort)
    if order is None:
        return _fail(f"Invalid sort. Must be one of: {', '.join(SORT_FIELDS)}", 400)

    q = Booking.query.filter(column == owner_id)
    if status:
        q = q.filter(Booking.status == status)

    rows = q.order_by(order, Booking.id.desc()).all()
    return jsonify(success=True, data=[b.to_dict() for b in rows], count=len(rows)), 200


def _get_booking_or_error(booking_id):
    parsed = parse_id(booking_id)
    if parsed is None:
        return None, _fail("Invalid booking ID", 400)
    booking = db.session.get(Booking, parsed)
    if not booking:
        return None, _fail("Booking not found", 404)
    return booking, None


# ---------- CLIENTS: pre-flight plan check ----------
@bookings_bp.post("/check-limits")
def check_limits():
    data = request.get_json(silent=True) or {}
    user_id, failure = caller_id_from_body(data)
    if failure:
        return failure

    allowance = evaluate_booking_limits(user_id, data.get("date"))
    if not allowance.allowed:
        return jsonify(allowance.rejection.to_dict()), 403

    limits = allowance.info.limits
    return jsonify(
        success=True,
        planType=allowance.info.plan_type,
        hasSubscription=allowance.info.has_subscription,
        currentCount=allowance.bookings_this_month,
        limit=limits["monthlyBookings"],
        advanceBookingDays=limits["advanceBookingDays"],
    ), 200


# ---------- CLIENTS: book a consultation (after payment) ----------
@bookings_bp.post("/create")
@check_booking_limit
def create_booking():
    data = request.get_json(silent=True) or {}

    missing = [name for name in REQUIRED_CREATE_FIELDS if _missing(data, name)]
    if missing:
        logger.warning("Booking request missing fields: %s", missing)
        return _fail(f"Missing required fields: {', '.join(missing)}", 400)

    user_id = parse_id(data.get("userId"))
    if user_id is None:
        return _fail("Invalid user ID", 400)
    dietitian_id = parse_id(data.get("dietitianId"))
    if dietitian_id is None:
        return _fail("Invalid dietitian ID", 400)

    email = _clean(data, "email").lower()
    if not EMAIL_RE.match(email):
        return _fail("Invalid email format", 400)

    time = _clean(data, "time")
    if not is_valid_time(time):
        return _fail("Time must be in HH:MM format", 400)
    if not is_slot_time(time):
        return _fail(OFF_GRID_MSG, 400)

    consultation_type = _clean(data, "consultationType")
    if consultation_type not in CONSULTATION_TYPES:
        return _fail(f"Invalid consultation type. Must be one of: {', '.join(CONSULTATION_TYPES)}", 400)

    payment_method = _clean(data, "paymentMethod")
    if payment_method not in PAYMENT_METHODS:
        return _fail(f"Invalid payment method. Must be one of: {', '.join(PAYMENT_METHODS)}", 400)

    try:
        amount = float(data.get("amount"))
    except (TypeError, ValueError):
        return _fail("Amount must be a number", 400)
    if not math.isfinite(amount):
        return _fail("Amount must be a number", 400)
    if amount < 0:
        return _fail("Amount cannot be negative", 400)

    day, failure = _parse_future_date(data.get("date"))
    if failure:
        return failure

    payment_id = _clean(data, "paymentId")
    if Booking.query.filter_by(payment_id=payment_id).first():
        return _fail(PAYMENT_USED_MSG, 400)

    user_conflict = find_user_conflict(user_id, day, time)
    if user_conflict:
        log_event("BOOKING_FAIL_CONFLICT", user_id=user_id, entity="booking", entity_id=user_conflict.id,
                  metadata={"reason": "user", "date": data.get("date"), "time": time})
        return _fail(
            _user_conflict_message(user_conflict, time),
            409,
            conflictingBooking={
                "dietitianName": user_conflict.dietitian_name,
                "time": user_conflict.time,
                "date": user_conflict.date.strftime("%Y-%m-%d"),
            },
        )

    if find_dietitian_conflict(dietitian_id, day, time):
        log_event("BOOKING_FAIL_CONFLICT", user_id=user_id, entity="dietitian", entity_id=dietitian_id,
                  metadata={"reason": "dietitian", "date": data.get("date"), "time": time})
        return _fail(BOOKED_WITH_DIETITIAN_MSG, 409)

    if find_blocked_slot(dietitian_id, day, time):
        return _fail(BLOCKED_MSG, 409)

    booking = Booking(
        user_id=user_id,
        dietitian_id=dietitian_id,
        date=day,
        time=time,
        consultation_type=consultation_type,
        amount=amount,
        payment_method=payment_method,
        payment_id=payment_id,
        payment_status="completed",
        status="confirmed",
    )
    booking.party_snapshot = PartySnapshot(
        username=_clean(data, "username"),
        email=email,
        dietitian_name=_clean(data, "dietitianName"),
        dietitian_email=_clean(data, "dietitianEmail").lower(),
        user_phone=_clean(data, "userPhone"),
        user_address=_clean(data, "userAddress"),
        dietitian_phone=_clean(data, "dietitianPhone"),
        dietitian_specialization=_clean(data, "dietitianSpecialization"),
    )
    db.session.add(booking)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        # lost a race: either the payment id or one of the active-slot indexes
        if Booking.query.filter_by(payment_id=payment_id).first():
            return _fail(PAYMENT_USED_MSG, 400)
        if not (find_dietitian_conflict(dietitian_id, day, time) or find_user_conflict(user_id, day, time)):
            raise
        log_event("BOOKING_FAIL_CONFLICT", user_id=user_id, entity="dietitian", entity_id=dietitian_id,
                  metadata={"reason": "constraint", "date": data.get("date"), "time": time})
        return _fail(BOOKED_WITH_DIETITIAN_MSG, 409)

    log_event("BOOKING_CREATE", user_id=user_id, entity="booking", entity_id=booking.id,
              metadata={"dietitian_id": dietitian_id, "date": data.get("date"), "time": time,
                        "plan": getattr(g, "subscription_info", {}).get("planType")})

    try:
        notify_booking_created(booking)
    except Exception:
        logger.exception("Booking %s created but confirmation emails failed", booking.id)

    return jsonify(success=True, message="Booking created successfully", data=booking.to_dict()), 201


# ---------- CLIENTS: my bookings ----------
@bookings_bp.get("/user/<user_id>")
def user_bookings(user_id):
    owner_id = parse_id(user_id)
    if owner_id is None:
        return _fail("Invalid user ID", 400)
    return _list_bookings(Booking.user_id, owner_id)


@bookings_bp.get("/user/<user_id>/booked-slots")
def user_booked_slots(user_id):
    date_str = request.args.get("date")
    owner_id = parse_id(user_id)
    if owner_id is None or not date_str:
        return _fail("User ID and date are required", 400)
    try:
        day = parse_booking_date(date_str)
    except ValueError:
        return _fail("Invalid date format. Use YYYY-MM-DD", 400)

    return jsonify(
        success=True,
        bookedSlots=get_user_day_slots(owner_id, day),
        date=day.strftime("%Y-%m-%d"),
    ), 200


# ---------- DIETITIANS: their bookings and day view ----------
@bookings_bp.get("/dietitian/<dietitian_id>")
def dietitian_bookings(dietitian_id):
    owner_id = parse_id(dietitian_id)
    if owner_id is None:
        return _fail("Invalid dietitian ID", 400)
    return _list_bookings(Booking.dietitian_id, owner_id)


@bookings_bp.get("/dietitian/<dietitian_id>/booked-slots")
def dietitian_booked_slots(dietitian_id):
    date_str = request.args.get("date")
    owner_id = parse_id(dietitian_id)
    if owner_id is None or not date_str:
        return _fail("Dietitian ID and date are required", 400)
    try:
        day = parse_booking_date(date_str)
    except ValueError:
        return _fail("Invalid date format. Use YYYY-MM-DD", 400)

    slots = get_dietitian_day_slots(owner_id, day, normalize_user_id(request.args.get("userId")))
    return jsonify(
        success=True,
        bookedSlots=slots.booked_slots,
        userBookings=slots.user_bookings,
        userConflictingTimes=slots.user_conflicting_times,
        blockedSlots=slots.blocked_slots,
        availableSlots=slots.available_slots,
        date=day.strftime("%Y-%m-%d"),
    ), 200


# ---------- ANY PARTY: single booking ----------
@bookings_bp.get("/<booking_id>")
def get_booking(booking_id):
    booking, failure = _get_booking_or_error(booking_id)
    if failure:
        return failure
    return jsonify(success=True, data=booking.to_dict()), 200


# ---------- DIETITIANS: mark completed / no-show / cancelled ----------
@bookings_bp.patch("/<booking_id>/status")
def update_booking_status(booking_id):
    data = request.get_json(silent=True) or {}
    status = data.get("status")
    if not status or status not in BOOKING_STATUSES:
        return _fail(f"Invalid status. Must be one of: {', '.join(BOOKING_STATUSES)}", 400)

    booking, failure = _get_booking_or_error(booking_id)
    if failure:
        return failure

    if booking.status == status:
        return _fail(f"Booking is already {status}", 400)
    if status not in STATUS_TRANSITIONS.get(booking.status, set()):
        return _fail(f"Cannot change status of a {booking.status} booking", 400)

    previous = booking.status
    booking.status = status
    booking.updated_at = datetime.utcnow()
    db.session.commit()

    log_event("BOOKING_STATUS_UPDATE", user_id=booking.dietitian_id, entity="booking", entity_id=booking.id,
              metadata={"from": previous, "to": status})
    return jsonify(success=True, message="Booking status updated successfully", data=booking.to_dict()), 200


# ---------- CLIENTS: cancel ----------
@bookings_bp.delete("/<booking_id>")
def cancel_booking(booking_id):
    booking, failure = _get_booking_or_error(booking_id)
    if failure:
        return failure

    if booking.is_terminal:
        return _fail(f"Cannot cancel a {booking.status} booking", 400)

    booking.status = "cancelled"
    booking.updated_at = datetime.utcnow()
    db.session.commit()

    log_event("BOOKING_CANCEL", user_id=booking.user_id, entity="booking", entity_id=booking.id)
    return jsonify(success=True, message="Booking cancelled successfully", data=booking.to_dict()), 200


# ---------- CLIENTS: move to another date/time ----------
@bookings_bp.patch("/<booking_id>/reschedule")
def reschedule_booking(booking_id):
    data = request.get_json(silent=True) or {}
    date_str = data.get("date")
    time = (data.get("time") or "").strip() if isinstance(data.get("time"), str) else None
    if not date_str or not time:
        return _fail("Date and time are required", 400)
    if not is_valid_time(time):
        return _fail("Time must be in HH:MM format", 400)
    if not is_slot_time(time):
        return _fail(OFF_GRID_MSG, 400)

    day, failure = _parse_future_date(date_str)
    if failure:
        return failure

    booking, failure = _get_booking_or_error(booking_id)
    if failure:
        return failure

    if booking.is_terminal:
        return _fail(f"Cannot reschedule a {booking.status} booking", 400)

    if find_blocked_slot(booking.dietitian_id, day, time):
        return _fail(BLOCKED_MSG, 400)

    if find_dietitian_conflict(booking.dietitian_id, day, time, exclude_id=booking.id):
        return _fail(BOOKED_WITH_DIETITIAN_MSG, 400)

    user_conflict = find_user_conflict(booking.user_id, day, time, exclude_id=booking.id)
    if user_conflict:
        return _fail(_user_conflict_message(user_conflict, time), 400)

    previous = {"date": booking.date.strftime("%Y-%m-%d"), "time": booking.time}
    booking.date = day
    booking.time = time
    booking.updated_at = datetime.utcnow()

    booking_id, user_id, dietitian_id = booking.id, booking.user_id, booking.dietitian_id
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        if not (find_dietitian_conflict(dietitian_id, day, time, exclude_id=booking_id)
                or find_user_conflict(user_id, day, time, exclude_id=booking_id)):
            raise
        return _fail(BOOKED_WITH_DIETITIAN_MSG, 400)

    log_event("BOOKING_RESCHEDULE", user_id=booking.user_id, entity="booking", entity_id=booking.id,
              metadata={"from": previous, "to": {"date": date_str, "time": time}})
    return jsonify(success=True, message="Booking rescheduled successfully", data=booking.to_dict()), 200
