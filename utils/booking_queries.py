"""
Read-side booking queries: who holds which slot on a given day.

A slot is identified by the pair (date at UTC midnight, "HH:MM" time), so
every lookup filters on the day range [start, end) plus the time string.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from models.booking import ACTIVE_STATUSES, Booking
from models.blocked_slot import BlockedSlot
from utils.slots import day_bounds, working_slots


@dataclass
class DaySlots:
    date: datetime
    booked_slots: List[str] = field(default_factory=list)
    user_bookings: List[str] = field(default_factory=list)
    blocked_slots: List[str] = field(default_factory=list)
    user_conflicting_times: List[str] = field(default_factory=list)
    available_slots: List[str] = field(default_factory=list)


def _active_on_day(day: datetime):
    start, end = day_bounds(day)
    return Booking.query.filter(
        Booking.date >= start,
        Booking.date < end,
        Booking.status.in_(ACTIVE_STATUSES),
    )


def find_user_conflict(user_id: int, day: datetime, time: str, exclude_id: Optional[int] = None):
    """Active booking the user already holds at (day, time) with any dietitian."""
    q = _active_on_day(day).filter(Booking.user_id == user_id, Booking.time == time)
    if exclude_id is not None:
        q = q.filter(Booking.id != exclude_id)
    return q.first()


def find_dietitian_conflict(dietitian_id: int, day: datetime, time: str, exclude_id: Optional[int] = None):
    """Active booking the dietitian already holds at (day, time) with any user."""
    q = _active_on_day(day).filter(Booking.dietitian_id == dietitian_id, Booking.time == time)
    if exclude_id is not None:
        q = q.filter(Booking.id != exclude_id)
    return q.first()


def find_blocked_slot(dietitian_id: int, day: datetime, time: str):
    return BlockedSlot.query.filter_by(
        dietitian_id=dietitian_id,
        date=day.strftime("%Y-%m-%d"),
        time=time,
    ).first()


def get_dietitian_day_slots(dietitian_id: int, day: datetime, user_id: Optional[int] = None) -> DaySlots:
    """
    Partition one dietitian's day into slots booked by others, slots the
    requesting user holds, blocked slots and what is left available.
    Without a user id every booking counts as someone else's.
    """
    rows = (
        _active_on_day(day)
        .filter(Booking.dietitian_id == dietitian_id)
        .order_by(Booking.time.asc())
        .all()
    )

    result = DaySlots(date=day)
    for b in rows:
        if user_id is not None and b.user_id == user_id:
            result.user_bookings.append(b.time)
        else:
            result.booked_slots.append(b.time)

    blocked = (
        BlockedSlot.query
        .filter_by(dietitian_id=dietitian_id, date=day.strftime("%Y-%m-%d"))
        .order_by(BlockedSlot.time.asc())
        .all()
    )
    result.blocked_slots = [s.time for s in blocked]

    if user_id is not None:
        result.user_conflicting_times = [
            b.time
            for b in _active_on_day(day).filter(Booking.user_id == user_id).order_by(Booking.time.asc()).all()
        ]

    taken = set(result.booked_slots) | set(result.user_bookings) | set(result.blocked_slots) | set(result.user_conflicting_times)
    result.available_slots = [t for t in working_slots() if t not in taken]
    return result


def get_user_day_slots(user_id: int, day: datetime):
    rows = (
        _active_on_day(day)
        .filter(Booking.user_id == user_id)
        .order_by(Booking.time.asc())
        .all()
    )
    return [{"time": b.time, "dietitianName": b.dietitian_name} for b in rows]


def get_dietitian_slot_board(dietitian_id: int, day: datetime, user_id: Optional[int] = None):
    """
    Status of every working-hours slot for a booking screen. Slots taken by
    other clients or blocked by the dietitian are left out.
    """
    user_booked = {}
    if user_id is not None:
        for b in _active_on_day(day).filter(Booking.user_id == user_id).all():
            user_booked[b.time] = b

    dietitian_booked = {
        b.time: b
        for b in _active_on_day(day).filter(Booking.dietitian_id == dietitian_id).all()
    }
    blocked = {
        s.time
        for s in BlockedSlot.query.filter_by(dietitian_id=dietitian_id, date=day.strftime("%Y-%m-%d")).all()
    }

    board = []
    for t in working_slots():
        status = "available"
        dietitian_name = None
        is_user_booking = False

        if t in user_booked:
            mine = dietitian_booked.get(t)
            if mine is not None and mine.user_id == user_id:
                status = "booked_with_this_dietitian"
                is_user_booking = True
            else:
                status = "you_are_booked"
                dietitian_name = user_booked[t].dietitian_name
        elif t in dietitian_booked:
            status = "booked"
        elif t in blocked:
            status = "blocked"

        if status in ("booked", "blocked"):
            continue
        board.append({
            "time": t,
            "status": status,
            "dietitianName": dietitian_name,
            "isUserBooking": is_user_booking,
        })
    return board
