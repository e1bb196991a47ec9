# booking/tests/helpers.py
#
# Small builders shared by the booking, scheduling and notifications tests.
# Dates are fixed far in the future; 2030-01-07 is a Monday (weekday index 1).

from datetime import date, datetime, time
from decimal import Decimal

from django.contrib.auth.models import User

from booking.models import Appointment, Salon, Service, Staff
from scheduling.models import OperatingSchedule

MONDAY = date(2030, 1, 7)
SATURDAY = date(2030, 1, 12)


def at(hour, minute=0, day=MONDAY):
    return datetime.combine(day, time(hour, minute))


def make_user(username="client", **extra):
    return User.objects.create_user(username=username, password="pass12345", **extra)


def make_salon(name="Studio", owner=None, opening=time(9, 0), closing=time(18, 0), closed=(6,), email="salon@example.com"):
    salon = Salon.objects.create(name=name, owner=owner, email=email)
    if opening is not None:
        OperatingSchedule.objects.create(
            salon=salon, opening_time=opening, closing_time=closing, closed_weekdays=list(closed)
        )
    return salon


def make_service(salon, name="Haircut", minutes=30, price="100.00", active=True):
    return Service.objects.create(
        salon=salon, name=name, duration_minutes=minutes, price=Decimal(price), active=active
    )


def make_staff(salon, *names):
    return [Staff.objects.create(salon=salon, name=name) for name in names]


def make_appointment(salon, user, service, start, end, staff=None, status=Appointment.SCHEDULED):
    return Appointment.objects.create(
        salon=salon,
        user=user,
        staff=staff,
        service=service,
        start_time=start,
        end_time=end,
        status=status,
        price=service.price,
    )
