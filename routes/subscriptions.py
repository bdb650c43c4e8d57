from flask import Blueprint, jsonify, request

from security.subscription_gate import count_bookings_this_month
from utils.counters import check_and_increment_daily, get_daily_count
from utils.plan_limits import PLAN_LIMITS, get_user_subscription, remaining
from utils.slots import local_today, normalize_user_id, parse_id

subscriptions_bp = Blueprint("subscriptions", __name__, url_prefix="/api/subscriptions")


def _chatbot_identifier(user_id, session_id):
    if user_id is not None:
        return f"user:{user_id}"
    if session_id:
        return f"session:{session_id}"
    return "anonymous"


@subscriptions_bp.get("/<user_id>/status")
def subscription_status(user_id):
    owner_id = parse_id(user_id)
    if owner_id is None:
        return jsonify(success=False, message="Invalid user ID"), 400

    info = get_user_subscription(owner_id)
    limits = info.limits
    today = local_today()

    bookings_used = count_bookings_this_month(owner_id, today)
    chatbot_used = get_daily_count(_chatbot_identifier(owner_id, None), today)

    return jsonify(
        success=True,
        subscription={
            "planType": info.plan_type,
            "hasSubscription": info.has_subscription,
            "limits": limits,
            "endsAt": info.subscription.subscription_end_date.isoformat() if info.subscription else None,
            "usage": {
                "bookings": {
                    "used": bookings_used,
                    "limit": limits["monthlyBookings"],
                    "remaining": remaining(limits["monthlyBookings"], bookings_used),
                },
                "chatbot": {
                    "used": chatbot_used,
                    "limit": limits["chatbotDailyQueries"],
                    "remaining": remaining(limits["chatbotDailyQueries"], chatbot_used),
                },
            },
        },
    ), 200


@subscriptions_bp.post("/chatbot/consume")
def consume_chatbot_query():
    """Count one chatbot query against the caller's daily allowance."""
    data = request.get_json(silent=True) or {}
    user_id = normalize_user_id(data.get("userId"))
    session_id = (data.get("sessionId") or "").strip() or None

    if user_id is None:
        plan_type, limits = "free", PLAN_LIMITS["free"]
    else:
        info = get_user_subscription(user_id)
        plan_type, limits = info.plan_type, info.limits

    limit = limits["chatbotDailyQueries"]
    allowed, used = check_and_increment_daily(_chatbot_identifier(user_id, session_id), limit)
    if not allowed:
        return jsonify(
            success=False,
            message=(
                f"Daily chatbot query limit reached. Your {plan_type} plan allows "
                f"{limit} queries per day. Upgrade for more queries!"
            ),
            limitReached=True,
            currentCount=used,
            limit=limit,
            planType=plan_type,
        ), 403

    return jsonify(
        success=True,
        planType=plan_type,
        queriesUsedToday=used,
        queriesRemaining=remaining(limit, used),
    ), 200
