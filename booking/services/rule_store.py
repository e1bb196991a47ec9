"""
rule_store.py
-------------
Read-only view over everything that decides whether a salon can take a booking:
- OperatingSchedule (one per salon, may be missing)
- ClosureModification rows matching a date (once) or its weekday (recurring)
- Break rows (every day)
- Staff roster
- Scheduled appointments

The engine never writes through this class.
"""

from django.db.models import Q

from scheduling.models import Break, ClosureModification, OperatingSchedule

from ..models import Appointment, Staff
from .slot_utils import weekday_index


class AvailabilityRuleStore:
    def __init__(self, salon):
        self.salon = salon

    def schedule(self):
        return OperatingSchedule.objects.filter(salon=self.salon).first()

    def modifications_on(self, day):
        """Closures that apply on 'day': one-off ones for that date plus recurring ones for its weekday."""
        weekday = weekday_index(day)
        candidates = ClosureModification.objects.filter(salon=self.salon).filter(
            Q(date=day) | Q(weekday_index=weekday)
        ).order_by("id")
        return [mod for mod in candidates if mod.recurrence.matches(day, weekday)]

    def breaks(self):
        return list(Break.objects.filter(salon=self.salon))

    def staff(self):
        return list(Staff.objects.filter(salon=self.salon).order_by("id"))

    def has_staff(self) -> bool:
        return Staff.objects.filter(salon=self.salon).exists()

    def overlapping_scheduled(self, start, end):
        """
        Scheduled appointments whose [start_time, end_time) overlaps [start, end).
        Compared on absolute datetimes, so a booking that crosses midnight is
        seen from both calendar days.
        """
        return Appointment.objects.filter(
            salon=self.salon,
            status=Appointment.SCHEDULED,
            start_time__lt=end,
            end_time__gt=start,
        )
