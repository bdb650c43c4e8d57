from flask import Blueprint, jsonify, request
from sqlalchemy.exc import IntegrityError

from models import db
from models.blocked_slot import BlockedSlot
from utils.audit import log_event
from utils.booking_queries import find_blocked_slot, find_dietitian_conflict, get_dietitian_slot_board
from utils.slots import is_slot_time, is_valid_time, normalize_user_id, parse_booking_date, parse_id

dietitians_bp = Blueprint("dietitians", __name__, url_prefix="/api/dietitians")


def _slot_request(dietitian_id, data):
    """(dietitian_id, day, time, None) or (None, None, None, error response)."""
    owner_id = parse_id(dietitian_id)
    if owner_id is None:
        return None, None, None, (jsonify(success=False, message="Invalid dietitian ID"), 400)

    date_str = data.get("date")
    time = data.get("time")
    if not date_str or not time:
        return None, None, None, (jsonify(success=False, message="Date and time are required"), 400)
    try:
        day = parse_booking_date(date_str)
    except ValueError:
        return None, None, None, (jsonify(success=False, message="Invalid date format. Use YYYY-MM-DD"), 400)
    if not is_valid_time(time):
        return None, None, None, (jsonify(success=False, message="Time must be in HH:MM format"), 400)
    if not is_slot_time(time):
        return None, None, None, (
            jsonify(success=False, message="Time must be a consultation slot within working hours"), 400
        )
    return owner_id, day, time, None


# ---------- CLIENTS: booking screen for one dietitian ----------
@dietitians_bp.get("/<dietitian_id>/slots")
def dietitian_slots(dietitian_id):
    owner_id = parse_id(dietitian_id)
    if owner_id is None:
        return jsonify(success=False, message="Invalid dietitian ID"), 400

    date_str = request.args.get("date")
    if not date_str:
        return jsonify(success=False, message="Date parameter is required"), 400
    try:
        day = parse_booking_date(date_str)
    except ValueError:
        return jsonify(success=False, message="Invalid date format. Use YYYY-MM-DD"), 400

    board = get_dietitian_slot_board(owner_id, day, normalize_user_id(request.args.get("userId")))
    return jsonify(success=True, slots=board, date=day.strftime("%Y-%m-%d")), 200


# ---------- DIETITIANS: manual unavailability ----------
@dietitians_bp.post("/<dietitian_id>/block-slot")
def block_slot(dietitian_id):
    data = request.get_json(silent=True) or {}
    owner_id, day, time, failure = _slot_request(dietitian_id, data)
    if failure:
        return failure

    if find_dietitian_conflict(owner_id, day, time):
        return jsonify(success=False, message="Cannot block a slot that is already booked"), 409
    if find_blocked_slot(owner_id, day, time):
        return jsonify(success=False, message="Slot is already blocked"), 409

    reason = (data.get("reason") or "").strip() or "Manually blocked"
    slot = BlockedSlot(dietitian_id=owner_id, date=day.strftime("%Y-%m-%d"), time=time, reason=reason)
    db.session.add(slot)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        # uq_blocked_slot_once
        return jsonify(success=False, message="Slot is already blocked"), 409

    log_event("SLOT_BLOCK", user_id=owner_id, entity="blocked_slot", entity_id=slot.id,
              metadata={"date": slot.date, "time": time})
    return jsonify(success=True, message="Slot blocked successfully", id=slot.id), 201


@dietitians_bp.post("/<dietitian_id>/unblock-slot")
def unblock_slot(dietitian_id):
    data = request.get_json(silent=True) or {}
    owner_id, day, time, failure = _slot_request(dietitian_id, data)
    if failure:
        return failure

    slot = find_blocked_slot(owner_id, day, time)
    if not slot:
        return jsonify(success=False, message="Slot was not blocked"), 404

    slot_id = slot.id
    db.session.delete(slot)
    db.session.commit()

    log_event("SLOT_UNBLOCK", user_id=owner_id, entity="blocked_slot", entity_id=slot_id,
              metadata={"date": day.strftime("%Y-%m-%d"), "time": time})
    return jsonify(success=True, message="Slot unblocked successfully"), 200
