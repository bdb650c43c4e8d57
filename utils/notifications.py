import logging

from flask import current_app

from models.booking import Booking
from utils.emailer import send_email

logger = logging.getLogger(__name__)


def _booking_lines(booking: Booking):
    snap = booking.party_snapshot
    lines = [
        f"Dietitian: {snap.dietitian_name}",
    ]
    if snap.dietitian_specialization:
        lines.append(f"Specialization: {snap.dietitian_specialization}")
    lines += [
        f"Date: {booking.date.strftime('%A, %B %d, %Y')}",
        f"Time: {booking.time}",
        f"Consultation type: {booking.consultation_type}",
        f"Amount paid: {booking.amount}",
        f"Payment ID: {booking.payment_id}",
        f"Booking ID: {booking.id}",
    ]
    return lines


def build_user_confirmation(booking: Booking):
    snap = booking.party_snapshot
    body = "\n".join(
        [f"Hello {snap.username},", "", "Your consultation has been booked.", ""]
        + _booking_lines(booking)
        + ["", "Please be available 5 minutes before the consultation.", "", "The NutriConnect Team"]
    )
    return "Booking Confirmed - NutriConnect", body


def build_dietitian_notification(booking: Booking):
    snap = booking.party_snapshot
    client = [f"Client: {snap.username}", f"Client email: {snap.email}"]
    if snap.user_phone:
        client.append(f"Client phone: {snap.user_phone}")
    body = "\n".join(
        [f"Hello {snap.dietitian_name},", "", "A new consultation has been booked with you.", ""]
        + client
        + [f"Date: {booking.date.strftime('%A, %B %d, %Y')}", f"Time: {booking.time}",
           f"Consultation type: {booking.consultation_type}", f"Booking ID: {booking.id}"]
    )
    return "New Booking - NutriConnect", body


def notify_booking_created(booking: Booking) -> int:
    """
    Email the client and the dietitian about a new booking.
    Returns how many messages went out. Failures are logged, never raised
    by the transport; callers still guard against template errors.
    """
    if not current_app.config.get("BOOKING_NOTIFICATIONS_ENABLED", True):
        return 0

    sent = 0
    for to_email, (subject, body) in (
        (booking.email, build_user_confirmation(booking)),
        (booking.dietitian_email, build_dietitian_notification(booking)),
    ):
        ok, err = send_email(to_email, subject, body)
        if ok:
            sent += 1
        else:
            logger.warning("Booking %s notification to %s not sent: %s", booking.id, to_email, err)
    return sent
