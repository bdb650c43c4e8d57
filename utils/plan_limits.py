"""
Subscription plan limits and lookup of a user's effective plan.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from models import db
from models.subscription import Subscription

logger = logging.getLogger(__name__)

UNLIMITED = -1

# -1 means unlimited
PLAN_LIMITS = {
    "free": {
        "monthlyBookings": 0,
        "advanceBookingDays": 0,
        "chatbotDailyQueries": 5,
    },
    "basic": {
        "monthlyBookings": 2,
        "advanceBookingDays": 3,
        "chatbotDailyQueries": 20,
    },
    "premium": {
        "monthlyBookings": 8,
        "advanceBookingDays": 7,
        "chatbotDailyQueries": 50,
    },
    "ultimate": {
        "monthlyBookings": 20,
        "advanceBookingDays": 21,
        "chatbotDailyQueries": UNLIMITED,
    },
}


@dataclass
class SubscriptionInfo:
    plan_type: str
    limits: dict
    has_subscription: bool
    subscription: Optional[Subscription] = field(default=None, repr=False)


def get_plan_limits(plan: Optional[str]) -> dict:
    """Limits for a plan name; unknown or empty plans get the free limits."""
    if not plan:
        return PLAN_LIMITS["free"]
    return PLAN_LIMITS.get(plan.lower(), PLAN_LIMITS["free"])


def is_unlimited(limit: int) -> bool:
    return limit == UNLIMITED


def remaining(limit: int, used: int) -> int:
    if is_unlimited(limit):
        return UNLIMITED
    return max(0, limit - used)


def get_user_subscription(user_id) -> SubscriptionInfo:
    """
    Resolve the caller's effective plan from their latest active subscription.
    No active subscription (or a failed lookup) means the free plan.
    """
    try:
        subscription = Subscription.find_active(user_id)
    except Exception:
        logger.exception("Subscription lookup failed for user %s; treating as free", user_id)
        db.session.rollback()
        subscription = None

    if subscription is None:
        return SubscriptionInfo("free", PLAN_LIMITS["free"], False)

    return SubscriptionInfo(
        subscription.plan_type,
        get_plan_limits(subscription.plan_type),
        True,
        subscription,
    )
