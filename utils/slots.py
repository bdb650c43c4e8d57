import re
from datetime import date, datetime, timedelta

from flask import current_app, has_app_context

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

_ANONYMOUS_IDS = {"", "null", "undefined", "none"}

# signed 64-bit, the widest INTEGER column on SQLite and Postgres
MAX_ID = 2**63 - 1


def parse_booking_date(date_str: str) -> datetime:
    """
    Parse "YYYY-MM-DD" into a naive datetime at UTC midnight.
    Raises ValueError for any other shape or an impossible calendar day.
    """
    if not isinstance(date_str, str) or not DATE_RE.match(date_str.strip()):
        raise ValueError("Invalid date format. Use YYYY-MM-DD")
    year, month, day = (int(p) for p in date_str.strip().split("-"))
    return datetime(year, month, day)


def day_bounds(day: datetime):
    start = datetime(day.year, day.month, day.day)
    return start, start + timedelta(days=1)


def is_valid_time(value) -> bool:
    return isinstance(value, str) and TIME_RE.match(value) is not None


def is_slot_time(value) -> bool:
    """True only for a start time on the working-hours grid."""
    return is_valid_time(value) and value in working_slots()


def utc_today() -> datetime:
    now = datetime.utcnow()
    return datetime(now.year, now.month, now.day)


def local_today() -> date:
    return date.today()


def normalize_user_id(value):
    """Query-string user ids: missing, "null", "undefined" or garbage mean anonymous."""
    if value is None:
        return None
    text = str(value).strip()
    if text.lower() in _ANONYMOUS_IDS:
        return None
    try:
        parsed = int(text)
    except ValueError:
        return None
    return parsed if 0 < parsed <= MAX_ID else None


def parse_id(value):
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return parsed if 0 < parsed <= MAX_ID else None


def working_slots(start_hour=None, end_hour=None, step_minutes=None):
    """All bookable HH:MM times of a working day, end hour included."""
    cfg = current_app.config if has_app_context() else {}
    if start_hour is None:
        start_hour = cfg.get("WORKING_HOURS_START", 9)
    if end_hour is None:
        end_hour = cfg.get("WORKING_HOURS_END", 20)
    if step_minutes is None:
        step_minutes = cfg.get("SLOT_MINUTES", 30)

    slots = []
    minutes = start_hour * 60
    while minutes <= end_hour * 60:
        slots.append(f"{minutes // 60:02d}:{minutes % 60:02d}")
        minutes += step_minutes
    return slots
