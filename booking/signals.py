"""
signals.py
----------
Domain events emitted by BookingManager after the write has committed.

Receivers (see notifications/signals.py) fan them out to the salon's live
dashboard and, for same-day slots, to the salon's push audience.

Every event is sent with keyword arguments:
- booking_created:   salon_id, appointment_id, user_id, staff_id, staff_name,
                     start_time, end_time, services_count, price, push
- booking_cancelled: salon_id, appointment_id, user_id, start_time, late,
                     strikes, push
- status_updated:    salon_id, appointment_id, user_id, status
"""

import logging

from django.dispatch import Signal

logger = logging.getLogger(__name__)

booking_created = Signal()
booking_cancelled = Signal()
status_updated = Signal()


def emit(signal, sender, **payload):
    """
    Deliver an event to every receiver. A failing receiver is logged and
    skipped; it never reaches the caller.
    """
    for receiver, result in signal.send_robust(sender=sender, **payload):
        if isinstance(result, Exception):
            logger.warning(
                "Event receiver %s failed for appointment %s: %s",
                getattr(receiver, "__name__", receiver), payload.get("appointment_id"), result,
            )
