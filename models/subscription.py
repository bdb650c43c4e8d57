from datetime import datetime

from dateutil.relativedelta import relativedelta

from models.db import db

PLAN_TYPES = ("basic", "premium", "ultimate")
BILLING_CYCLES = ("monthly", "yearly")


class Subscription(db.Model):
    __tablename__ = "subscriptions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=False, index=True)

    plan_type = db.Column(db.String(20), nullable=False)        # basic, premium, ultimate
    billing_cycle = db.Column(db.String(10), nullable=False, default="monthly")

    payment_status = db.Column(db.String(20), nullable=False, default="pending")
    # payment_status values: pending, processing, success, failed, refunded
    is_active = db.Column(db.Boolean, default=False, nullable=False)

    subscription_start_date = db.Column(db.DateTime, nullable=True)
    subscription_end_date = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    @classmethod
    def find_active(cls, user_id: int):
        """Most recent paid subscription that has not expired, or None."""
        return (
            cls.query
            .filter(
                cls.user_id == user_id,
                cls.payment_status == "success",
                cls.is_active.is_(True),
                cls.subscription_end_date >= datetime.utcnow(),
            )
            .order_by(cls.created_at.desc(), cls.id.desc())
            .first()
        )

    def activate(self, now=None):
        now = now or datetime.utcnow()
        if self.billing_cycle == "yearly":
            end = now + relativedelta(years=1)
        else:
            end = now + relativedelta(months=1)

        self.subscription_start_date = now
        self.subscription_end_date = end
        self.is_active = True
        self.payment_status = "success"
        return self

    def deactivate(self):
        self.is_active = False
        return self
