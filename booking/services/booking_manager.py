"""
booking_manager.py
------------------
Coordinates booking creation, customer cancellation and salon status changes.

Booking (one transaction):
1) lock the salon row so concurrent bookings for the same salon run one at a time
2) re-run AvailabilityEngine.check_slot against live data
3) "any staff": name the first free specialist (StaffAllocator)
4) insert the Appointment header and its service lines
5) after commit: emit booking_created

Cancellation:
- only Scheduled appointments, only by the customer who booked
- inside the notice window the cancellation still happens, plus one strike

Events are emitted with transaction.on_commit, so a failed write never
notifies anyone and a failed notification never undoes a write.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Optional

from django.db import transaction
from django.utils import timezone

from configmgr.conf import get_int

from ..exceptions import (
    AlreadyFinalized,
    BookingValidationError,
    NoStaffAvailable,
    NotAllowed,
    SlotUnavailable,
)
from ..models import Appointment, AppointmentServiceLine, ClientProfile, Salon
from ..signals import booking_cancelled, booking_created, emit, status_updated
from .availability_engine import AvailabilityEngine
from .rule_store import AvailabilityRuleStore
from .staff_allocator import StaffAllocator

logger = logging.getLogger(__name__)


@dataclass
class CancellationResult:
    cancelled: bool
    strike_issued: bool
    new_strike_count: Optional[int] = None


@dataclass
class StatusUpdateResult:
    appointment: Appointment
    strike_issued: bool = False
    new_strike_count: Optional[int] = None


def _is_same_day(start_time, now) -> bool:
    return start_time.date() == now.date()


class BookingManager:
    STAFF_SETTABLE_STATUSES = (Appointment.COMPLETED, Appointment.ABSENT, Appointment.CANCELLED)

    def __init__(self):
        self.availability = AvailabilityEngine()

    def _resolve_lines(self, salon, service_lines):
        """
        service_lines: iterable of {"service": Service, "price": Decimal or None}.
        Missing prices fall back to the catalog price.
        """
        lines = []
        seen = set()
        for item in service_lines or []:
            service = item["service"]
            if service.salon_id != salon.pk:
                raise BookingValidationError(f'Service "{service.name}" is not offered by this salon.')
            if not service.active:
                raise BookingValidationError(f'Service "{service.name}" is not currently available.')
            if service.pk in seen:
                raise BookingValidationError(f'Service "{service.name}" was selected twice.')
            seen.add(service.pk)
            price = item.get("price")
            lines.append((service, Decimal(service.price if price is None else price)))

        if not lines:
            raise BookingValidationError("At least one service must be selected.")
        return lines

    @transaction.atomic
    def book(self, salon, user, staff, service_lines, start_time, end_time, total_price=None, now=None):
        """
        Create a Scheduled appointment after re-validating the slot.

        Args:
            salon: Salon instance
            user: the authenticated customer (User instance)
            staff: Staff instance, or None for "any staff"
            service_lines: [{"service": Service, "price": Decimal|None}, ...]
            start_time / end_time: naive local datetimes, [start, end)
            total_price: optional client-declared total; must equal the line sum
            now: override of the current time (tests)

        Raises:
            BookingValidationError, SlotUnavailable, NoStaffAvailable
        """
        now = now or timezone.now()

        if end_time <= start_time:
            raise BookingValidationError("End time must be after start time.")
        if staff is not None and staff.salon_id != salon.pk:
            raise BookingValidationError("The selected staff member does not work at this salon.")

        lines = self._resolve_lines(salon, service_lines)
        total_duration = sum(service.duration_minutes for service, _ in lines)
        line_total = sum((price for _, price in lines), Decimal("0"))
        if total_price is not None and Decimal(total_price) != line_total:
            raise BookingValidationError("The total price does not match the selected services.")

        # Serialize bookings per salon: check and insert must not interleave.
        Salon.objects.select_for_update().get(pk=salon.pk)

        decision = self.availability.check_slot(salon, staff, start_time, end_time, total_duration, now=now)
        if not decision.ok:
            raise SlotUnavailable(decision.reason, code=decision.code)

        assigned = staff
        if assigned is None:
            store = AvailabilityRuleStore(salon)
            if store.has_staff():
                assigned = StaffAllocator(store).pick_free_staff(start_time, end_time)
                if assigned is None:
                    raise NoStaffAvailable("Sorry, no specialist is available to complete this booking at this time.")

        appointment = Appointment.objects.create(
            salon=salon,
            user=user,
            staff=assigned,
            service=lines[0][0],
            start_time=start_time,
            end_time=end_time,
            status=Appointment.SCHEDULED,
            price=line_total,
        )
        AppointmentServiceLine.objects.bulk_create(
            [AppointmentServiceLine(appointment=appointment, service=service, price=price) for service, price in lines]
        )

        payload = {
            "salon_id": salon.pk,
            "appointment_id": appointment.pk,
            "user_id": user.pk,
            "staff_id": assigned.pk if assigned else None,
            "staff_name": assigned.name if assigned else None,
            "start_time": start_time,
            "end_time": end_time,
            "services_count": len(lines),
            "price": line_total,
            "push": _is_same_day(start_time, now),
        }
        transaction.on_commit(lambda: emit(booking_created, sender=Appointment, **payload))

        logger.info(
            "Booked appointment %s salon=%s staff=%s %s-%s",
            appointment.pk, salon.pk, payload["staff_id"], start_time, end_time,
        )
        return appointment

    @transaction.atomic
    def cancel(self, appointment, user, now=None) -> CancellationResult:
        """
        Customer cancellation.
        Inside the notice window (CANCELLATION_NOTICE_HOURS) it still cancels,
        but issues one strike and reports the new total.
        """
        now = now or timezone.now()
        user_id = getattr(user, "pk", user)
        appointment = Appointment.objects.select_for_update().get(pk=appointment.pk)

        if not appointment.is_scheduled:
            raise AlreadyFinalized(appointment.status)
        if appointment.user_id != user_id:
            raise NotAllowed("You are not allowed to cancel this appointment.")

        notice = timedelta(hours=get_int("CANCELLATION_NOTICE_HOURS"))
        late = appointment.start_time - now < notice

        appointment.status = Appointment.CANCELLED
        appointment.cancellation_time = now
        appointment.save(update_fields=["status", "cancellation_time"])

        strikes = ClientProfile.issue_strike(user_id) if late else None

        payload = {
            "salon_id": appointment.salon_id,
            "appointment_id": appointment.pk,
            "user_id": user_id,
            "start_time": appointment.start_time,
            "late": late,
            "strikes": strikes,
            "push": _is_same_day(appointment.start_time, now),
        }
        transaction.on_commit(lambda: emit(booking_cancelled, sender=Appointment, **payload))

        logger.info("Cancelled appointment %s late=%s strikes=%s", appointment.pk, late, strikes)
        return CancellationResult(cancelled=True, strike_issued=late, new_strike_count=strikes)

    @transaction.atomic
    def update_status(self, appointment, status) -> StatusUpdateResult:
        """
        Salon-side transition out of Scheduled: Completed, Absent (adds a strike)
        or Cancelled. Never back to Scheduled.
        """
        if status not in self.STAFF_SETTABLE_STATUSES:
            raise BookingValidationError("Invalid status provided.")

        appointment = Appointment.objects.select_for_update().get(pk=appointment.pk)
        if not appointment.is_scheduled:
            raise AlreadyFinalized(appointment.status)

        appointment.status = status
        update_fields = ["status"]
        if status == Appointment.CANCELLED:
            appointment.cancellation_time = timezone.now()
            update_fields.append("cancellation_time")
        appointment.save(update_fields=update_fields)

        result = StatusUpdateResult(appointment=appointment)
        if status == Appointment.ABSENT:
            result.strike_issued = True
            result.new_strike_count = ClientProfile.issue_strike(appointment.user_id)

        payload = {
            "salon_id": appointment.salon_id,
            "appointment_id": appointment.pk,
            "user_id": appointment.user_id,
            "status": status,
        }
        transaction.on_commit(lambda: emit(status_updated, sender=Appointment, **payload))

        logger.info("Appointment %s marked %s", appointment.pk, status)
        return result
