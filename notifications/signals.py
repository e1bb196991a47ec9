# notifications/signals.py
#
# Purpose:
# - Deliver the booking engine's domain events.
#   * every event: a "live" Notification row for the salon dashboard feed
#   * same-day bookings/cancellations: a "push" alert e-mailed to the salon
#   * status updates: also a "live" row for the customer
#
# Notes:
# - Uses DEFAULT_FROM_EMAIL from settings.
# - Works with either console backend (dev) or SMTP (demo/prod).
# - Never lets a delivery failure reach the booking request (logs instead).
#
import logging

from django.conf import settings
from django.core.mail import send_mail
from django.dispatch import receiver

from booking.models import Salon
from booking.signals import booking_cancelled, booking_created, status_updated
from notifications.models import Notification

logger = logging.getLogger(__name__)


def _fmt(dt) -> str:
    return dt.strftime("%Y-%m-%d at %H:%M")


def _record(event_type, message, payload, salon_id=None, user_id=None, channel=Notification.LIVE, sent=True):
    return Notification.objects.create(
        salon_id=salon_id,
        user_id=user_id,
        event_type=event_type,
        channel=channel,
        message=message,
        payload=payload,
        sent=sent,
    )


def _push_to_salon(salon_id, event_type, subject: str, body: str, payload: dict):
    """
    Send a same-day alert to the salon's push audience.

    We never let an exception bubble up and break the request.
    """
    salon = Salon.objects.filter(pk=salon_id).first()
    to_email = getattr(salon, "email", "")
    if not to_email:
        logger.info("Salon %s has no push audience; skipping %s", salon_id, event_type)
        return None

    sent = True
    try:
        send_mail(
            subject=subject,
            message=body,
            from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
            recipient_list=[to_email],
            fail_silently=False,  # raise so we can log; we still catch it below
        )
    except Exception as e:
        sent = False
        logger.warning("Push delivery to salon %s failed: %s", salon_id, e)

    return _record(event_type, body, payload, salon_id=salon_id, channel=Notification.PUSH, sent=sent)


@receiver(booking_created)
def booking_created_notifications(sender, salon_id, appointment_id, start_time, push=False, **kwargs):
    """
    New booking: always on the salon's live feed; pushed only when the slot is today.
    """
    kwargs.pop("signal", None)
    staff_name = kwargs.get("staff_name") or "any specialist"
    payload = {"appointment_id": appointment_id, "start_time": start_time, "push": push, **kwargs}
    message = f"New booking #{appointment_id} on {_fmt(start_time)} with {staff_name}."

    _record("booking_created", message, payload, salon_id=salon_id)

    if push:
        _push_to_salon(
            salon_id,
            "booking_created",
            "New booking today",
            f"You have a new booking on {_fmt(start_time)}.",
            payload,
        )


@receiver(booking_cancelled)
def booking_cancelled_notifications(sender, salon_id, appointment_id, start_time, late=False, push=False, **kwargs):
    """
    Customer cancellation: live feed always; pushed only when the slot was today.
    """
    kwargs.pop("signal", None)
    payload = {"appointment_id": appointment_id, "start_time": start_time, "late": late, "push": push, **kwargs}
    label = "Late cancellation" if late else "Cancellation"
    message = f"{label}: booking #{appointment_id} on {_fmt(start_time)} was cancelled."

    _record("booking_cancelled", message, payload, salon_id=salon_id)

    if push:
        _push_to_salon(
            salon_id,
            "booking_cancelled",
            f"{label} today",
            f"An appointment on {_fmt(start_time)} was cancelled.",
            payload,
        )


@receiver(status_updated)
def status_updated_notifications(sender, salon_id, appointment_id, user_id, status, **kwargs):
    """Status change: salon feed and the customer's feed."""
    payload = {"appointment_id": appointment_id, "status": status}
    message = f"Appointment #{appointment_id} is now {status}."

    _record("status_updated", message, payload, salon_id=salon_id)
    _record("status_updated", message, payload, user_id=user_id)
