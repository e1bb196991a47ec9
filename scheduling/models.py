# scheduling/models.py
#
# Purpose:
# - The availability rules a salon maintains: base hours, dated/recurring
#   closures, and recurring daily breaks.
#
# Notes:
# - Closed weekdays and recurring closures use 0 = Sunday ... 6 = Saturday.
# - staff = NULL on a Break or ClosureModification means "applies to the whole salon".
# - Interval comparisons use the overnight minute convention from
#   booking.services.slot_utils so 23:00-01:00 is a valid interval.
#
from django.core.exceptions import ValidationError
from django.db import models

from booking.services.slot_utils import OVERNIGHT_LAST_HOUR, to_minutes
from .rules import Once, Recurring, Scope


def _validate_weekdays(value):
    if not isinstance(value, list) or any(
        not isinstance(d, int) or isinstance(d, bool) or not 0 <= d <= 6 for d in value
    ):
        raise ValidationError("closed_weekdays must be a list of weekday indices 0-6.")


class OperatingSchedule(models.Model):
    """
    Base operating hours for a salon. One row per salon.
    closing_time <= opening_time describes an overnight schedule (e.g. 22:00-02:00).
    """
    salon = models.OneToOneField(
        "booking.Salon",
        on_delete=models.CASCADE,
        related_name="schedule",
    )
    opening_time = models.TimeField()
    closing_time = models.TimeField()
    closed_weekdays = models.JSONField(default=list, blank=True, validators=[_validate_weekdays])

    def __str__(self):
        return f"{self.salon}: {self.opening_time:%H:%M}-{self.closing_time:%H:%M}"

    @property
    def is_overnight(self) -> bool:
        return self.closing_time <= self.opening_time

    def clean(self):
        if self.opening_time is None or self.closing_time is None:
            return
        if self.opening_time == self.closing_time:
            raise ValidationError("Opening and closing time cannot be the same.")
        # 00:00-06:59 counts as the following day (see slot_utils.to_minutes).
        if self.opening_time.hour <= OVERNIGHT_LAST_HOUR:
            raise ValidationError("Opening time must be 07:00 or later.")
        if to_minutes(self.closing_time) <= to_minutes(self.opening_time):
            raise ValidationError("An overnight schedule must close by 06:59.")


class ClosureModification(models.Model):
    """
    A temporary deviation from the base schedule.

    - kind "once" uses 'date'; kind "recurring" uses 'weekday_index'.
    - closure_type "full_day" closes the whole salon and carries no times.
    - closure_type "interval" blocks [interval_start, interval_end).
    """
    ONCE = "once"
    RECURRING = "recurring"
    KIND_CHOICES = [
        (ONCE, "Once"),
        (RECURRING, "Recurring"),
    ]

    FULL_DAY = "full_day"
    INTERVAL = "interval"
    CLOSURE_CHOICES = [
        (FULL_DAY, "Full day"),
        (INTERVAL, "Interval"),
    ]

    salon = models.ForeignKey("booking.Salon", on_delete=models.CASCADE, related_name="closures")
    kind = models.CharField(max_length=10, choices=KIND_CHOICES)
    date = models.DateField(null=True, blank=True)
    weekday_index = models.PositiveSmallIntegerField(null=True, blank=True)
    closure_type = models.CharField(max_length=10, choices=CLOSURE_CHOICES)
    interval_start = models.TimeField(null=True, blank=True)
    interval_end = models.TimeField(null=True, blank=True)
    staff = models.ForeignKey(
        "booking.Staff",
        on_delete=models.CASCADE,
        related_name="closures",
        null=True,
        blank=True,
    )
    reason = models.CharField(max_length=200, default="Manual block")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["salon_id", "id"]

    def __str__(self):
        when = self.date if self.kind == self.ONCE else f"weekday {self.weekday_index}"
        return f"{self.salon}: {self.closure_type} closure on {when}"

    @property
    def scope(self) -> Scope:
        return Scope(self.staff_id)

    @property
    def recurrence(self):
        if self.kind == self.ONCE:
            return Once(self.date)
        return Recurring(self.weekday_index)

    def clean(self):
        if self.kind == self.ONCE:
            if self.date is None:
                raise ValidationError("A one-off closure needs a date.")
        elif self.kind == self.RECURRING:
            if self.weekday_index is None or not 0 <= self.weekday_index <= 6:
                raise ValidationError("A recurring closure needs a weekday index 0-6.")

        if self.closure_type == self.FULL_DAY:
            if self.interval_start is not None or self.interval_end is not None:
                raise ValidationError("A full-day closure must not carry times.")
            if self.staff_id is not None:
                raise ValidationError("A full-day closure applies to the whole salon.")
        elif self.closure_type == self.INTERVAL:
            if self.interval_start is None or self.interval_end is None:
                raise ValidationError("An interval closure needs a start and end time.")
            if to_minutes(self.interval_start) >= to_minutes(self.interval_end):
                raise ValidationError("Closure start must be before its end.")


class Break(models.Model):
    """
    A recurring daily break (every day, not date-scoped).
    """
    salon = models.ForeignKey("booking.Salon", on_delete=models.CASCADE, related_name="breaks")
    staff = models.ForeignKey(
        "booking.Staff",
        on_delete=models.CASCADE,
        related_name="breaks",
        null=True,
        blank=True,
    )
    start_time = models.TimeField()
    end_time = models.TimeField()
    reason = models.CharField(max_length=200, blank=True)

    class Meta:
        ordering = ["salon_id", "start_time"]

    def __str__(self):
        who = self.staff.name if self.staff_id else "all staff"
        return f"{self.salon}: break {self.start_time:%H:%M}-{self.end_time:%H:%M} ({who})"

    @property
    def scope(self) -> Scope:
        return Scope(self.staff_id)

    def clean(self):
        if self.start_time is None or self.end_time is None:
            return
        if to_minutes(self.start_time) >= to_minutes(self.end_time):
            raise ValidationError("Break start must be before its end.")
