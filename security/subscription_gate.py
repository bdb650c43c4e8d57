from dataclasses import dataclass
from datetime import date, datetime
from functools import wraps
from typing import Optional

from flask import g, jsonify, request

from models.booking import ACTIVE_STATUSES, Booking
from utils.audit import log_event
from utils.plan_limits import SubscriptionInfo, get_user_subscription, is_unlimited
from utils.slots import local_today, parse_booking_date, parse_id


@dataclass
class LimitRejection:
    message: str
    plan_type: str
    current_count: Optional[int] = None
    limit: Optional[int] = None
    max_advance_days: Optional[int] = None
    attempted_days: Optional[int] = None

    def to_dict(self):
        out = {
            "success": False,
            "message": self.message,
            "limitReached": True,
            "planType": self.plan_type,
        }
        if self.max_advance_days is not None:
            out["maxAdvanceDays"] = self.max_advance_days
            out["attemptedDays"] = self.attempted_days
        else:
            out["currentCount"] = self.current_count
            out["limit"] = self.limit
        return out


@dataclass
class BookingAllowance:
    info: SubscriptionInfo
    bookings_this_month: Optional[int] = None
    rejection: Optional[LimitRejection] = None

    @property
    def allowed(self) -> bool:
        return self.rejection is None


def count_bookings_this_month(user_id: int, today: date) -> int:
    start_of_month = datetime(today.year, today.month, 1)
    return (
        Booking.query
        .filter(
            Booking.user_id == user_id,
            Booking.created_at >= start_of_month,
            Booking.status.in_(ACTIVE_STATUSES),
        )
        .count()
    )


def evaluate_booking_limits(user_id: int, date_str, today: Optional[date] = None) -> BookingAllowance:
    """
    Monthly booking count first, then the advance-booking window.
    Callers without a paid subscription are not limited at all; existing
    free accounts kept booking before plans existed and still may.
    """
    today = today or local_today()
    info = get_user_subscription(user_id)

    if not info.has_subscription or info.plan_type == "free":
        return BookingAllowance(info=SubscriptionInfo("free", info.limits, False))

    limits = info.limits
    used = count_bookings_this_month(user_id, today)
    monthly = limits["monthlyBookings"]
    if not is_unlimited(monthly) and used >= monthly:
        return BookingAllowance(info, used, LimitRejection(
            message=(
                f"Monthly booking limit reached. Your {info.plan_type} plan allows "
                f"{monthly} bookings per month. Upgrade for more bookings!"
            ),
            plan_type=info.plan_type,
            current_count=used,
            limit=monthly,
        ))

    try:
        booking_day = parse_booking_date(date_str).date()
    except ValueError:
        # malformed dates are rejected by the booking handler itself
        return BookingAllowance(info, used)

    days_ahead = (booking_day - today).days
    window = limits["advanceBookingDays"]
    if not is_unlimited(window) and days_ahead > window:
        return BookingAllowance(info, used, LimitRejection(
            message=(
                f"Your {info.plan_type} plan allows booking up to {window} days in advance. "
                f"Upgrade to book further ahead!"
            ),
            plan_type=info.plan_type,
            max_advance_days=window,
            attempted_days=days_ahead,
        ))

    return BookingAllowance(info, used)


def caller_id_from_body(data):
    raw = data.get("userId")
    if raw in (None, ""):
        return None, (jsonify(success=False, message="User ID is required"), 400)
    user_id = parse_id(raw)
    if user_id is None:
        return None, (jsonify(success=False, message="Invalid user ID"), 400)
    return user_id, None


def check_booking_limit(fn):
    """
    Usage: @check_booking_limit on a booking-creation view.
    Rejects with 403 and an upgrade payload when the caller's plan is exhausted;
    otherwise leaves the resolved plan on g.subscription_info.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        data = request.get_json(silent=True) or {}
        user_id, failure = caller_id_from_body(data)
        if failure:
            return failure

        allowance = evaluate_booking_limits(user_id, data.get("date"))
        if not allowance.allowed:
            log_event(
                "BOOKING_FAIL_LIMIT",
                user_id=user_id,
                entity="subscription",
                metadata=allowance.rejection.to_dict(),
            )
            return jsonify(allowance.rejection.to_dict()), 403

        g.subscription_info = {
            "planType": allowance.info.plan_type,
            "limits": allowance.info.limits,
            "hasSubscription": allowance.info.has_subscription,
            "bookingsThisMonth": allowance.bookings_this_month,
        }
        return fn(*args, **kwargs)
    return wrapper
