from datetime import date, datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError

from models import db
from models.query_counter import QueryCounter


def _evict_stale(today: date):
    QueryCounter.query.filter(QueryCounter.day < today).delete(synchronize_session=False)


def get_daily_count(identifier: str, today: Optional[date] = None) -> int:
    today = today or date.today()
    row = QueryCounter.query.filter_by(identifier=identifier, day=today).first()
    return row.count if row else 0


def check_and_increment_daily(identifier: str, limit: int, today: Optional[date] = None) -> tuple[bool, int]:
    """
    Returns (allowed, used_today).
    Fixed window per identifier per calendar day; limit -1 is unlimited.
    Counters from previous days are evicted on every call.
    """
    today = today or date.today()
    _evict_stale(today)

    row = QueryCounter.query.filter_by(identifier=identifier, day=today).first()
    if not row:
        row = QueryCounter(identifier=identifier, day=today, count=0)
        db.session.add(row)
        try:
            db.session.flush()
        except IntegrityError:
            # another request created today's row first
            db.session.rollback()
            row = QueryCounter.query.filter_by(identifier=identifier, day=today).first()

    if limit != -1 and row.count >= limit:
        db.session.commit()
        return False, row.count

    row.count += 1
    row.updated_at = datetime.utcnow()
    db.session.commit()
    return True, row.count
