"""
availability_engine.py
----------------------
Decides whether a proposed slot (salon, staff or "any staff", [start, end),
total service duration) can be booked.

Checks, in order (first failure wins, nothing is written):
1) duration integrity: end - start must equal the declared service duration
2) schedule configured, salon not closed on that weekday
3) slot inside operating hours (overnight-aware minutes, see slot_utils)
4) not in the past; today's slots start at the next grid boundary after now + lead time
5) full-day closures
6) interval closures scoped to the whole salon or to the requested staff
7) daily breaks, same scoping
8) direct conflict with the requested staff's Scheduled appointments
9) for "any staff": capacity across the roster (StaffAllocator)

Rejections are ordinary outcomes, returned as SlotDecision(ok=False, ...),
never raised.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta

from django.utils import timezone

from configmgr.conf import get_int
from scheduling.models import ClosureModification

from .rule_store import AvailabilityRuleStore
from .slot_utils import (
    earliest_bookable_start,
    generate_slot_starts,
    minutes_to_datetime,
    overlaps,
    to_minutes,
    to_slot_minutes,
    weekday_index,
)
from .staff_allocator import StaffAllocator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotDecision:
    ok: bool
    code: str = "ok"
    reason: str = "The slot is available."

    def __bool__(self):
        return self.ok


ACCEPT = SlotDecision(ok=True)


def reject(code: str, reason: str) -> SlotDecision:
    return SlotDecision(ok=False, code=code, reason=reason)


def _staff_id(staff_selector):
    """Accept a Staff instance, a staff id, or None / 0 for "any staff"."""
    if staff_selector is None:
        return None
    staff_id = getattr(staff_selector, "pk", staff_selector)
    return int(staff_id) or None


class AvailabilityEngine:
    def _schedule_bounds(self, schedule):
        """(open, close) in slot minutes, or None if either bound is unreadable."""
        open_minutes = to_minutes(schedule.opening_time)
        close_minutes = to_minutes(schedule.closing_time)
        if not open_minutes or not close_minutes:
            return None
        return open_minutes, close_minutes

    def _blocking_closure(self, modifications, staff_id, start_minutes, end_minutes):
        for mod in modifications:
            if mod.closure_type != ClosureModification.INTERVAL:
                continue
            mod_start = to_minutes(mod.interval_start)
            mod_end = to_minutes(mod.interval_end)
            if not mod_start or not mod_end:
                logger.warning("Skipping unreadable closure #%s", mod.pk)
                continue
            if mod.scope.applies_to(staff_id) and overlaps(start_minutes, end_minutes, mod_start, mod_end):
                return mod
        return None

    def _blocking_break(self, breaks, staff_id, start_minutes, end_minutes):
        for item in breaks:
            break_start = to_minutes(item.start_time)
            break_end = to_minutes(item.end_time)
            if not break_start or not break_end:
                logger.warning("Skipping unreadable break #%s", item.pk)
                continue
            if item.scope.applies_to(staff_id) and overlaps(start_minutes, end_minutes, break_start, break_end):
                return item
        return None

    def check_slot(self, salon, staff_selector, start_time, end_time, total_duration, now=None) -> SlotDecision:
        decision = self._check_slot(salon, _staff_id(staff_selector), start_time, end_time, total_duration, now)
        if not decision.ok:
            logger.info(
                "Slot rejected salon=%s staff=%s %s-%s code=%s",
                salon.pk, _staff_id(staff_selector) or "any", start_time, end_time, decision.code,
            )
        return decision

    def _check_slot(self, salon, staff_id, start_time, end_time, total_duration, now):
        now = now or timezone.now()
        store = AvailabilityRuleStore(salon)

        start_minutes = to_slot_minutes(start_time)
        end_minutes = to_slot_minutes(end_time)

        # 1) Duration integrity
        if (
            end_minutes - start_minutes != total_duration
            or end_time - start_time != timedelta(minutes=total_duration)
        ):
            return reject("duration_mismatch", "The service duration does not match the selected time range.")

        schedule = store.schedule()
        bounds = self._schedule_bounds(schedule) if schedule is not None else None
        if bounds is None:
            return reject("schedule_missing", "The salon schedule is not configured.")
        open_minutes, close_minutes = bounds

        day = start_time.date()

        # 2) Closed weekday
        if weekday_index(day) in (schedule.closed_weekdays or []):
            return reject("closed_weekday", "The salon is closed on this day.")

        # 3) Operating hours
        if start_minutes < open_minutes or end_minutes > close_minutes:
            return reject("outside_hours", "The appointment is outside working hours.")

        # 4) Past slots and minimum lead time. Compared on datetimes so a
        #    request made just after midnight is not measured against 24:xx.
        if start_time < now:
            return reject("past_slot", "Cannot book an appointment in the past.")
        earliest = earliest_bookable_start(
            now, get_int("BOOKING_LEAD_MINUTES"), get_int("SLOT_GRANULARITY_MINUTES")
        )
        if start_time < earliest:
            return reject("past_slot", "This time is too soon to book today.")

        modifications = store.modifications_on(day)

        # 5) Full-day closures (salon-wide by construction)
        if any(mod.closure_type == ClosureModification.FULL_DAY for mod in modifications):
            return reject("full_day_closure", "The salon is closed on this day due to special circumstances.")

        # 6) Interval closures
        if self._blocking_closure(modifications, staff_id, start_minutes, end_minutes):
            return reject("interval_closure", "The selected time is unavailable due to special circumstances.")

        # 7) Breaks
        if self._blocking_break(store.breaks(), staff_id, start_minutes, end_minutes):
            return reject("break", "The selected time overlaps a break.")

        # 8) Direct conflict for a concrete staff member
        if staff_id is not None:
            if store.overlapping_scheduled(start_time, end_time).filter(staff_id=staff_id).exists():
                return reject("staff_unavailable", "The staff member is unavailable at this time - another appointment exists.")
            return ACCEPT

        # 9) Capacity for "any staff"
        if not StaffAllocator(store).has_capacity(start_time, end_time):
            if store.has_staff():
                return reject("no_capacity", "No staff members are available at this time.")
            return reject("slot_taken", "The selected time is unavailable.")

        return ACCEPT

    def available_slots(self, salon, day, total_duration, staff_selector=None, now=None):
        """
        All grid starts on 'day' that check_slot would accept for a booking of
        total_duration minutes.
        """
        schedule = AvailabilityRuleStore(salon).schedule()
        bounds = self._schedule_bounds(schedule) if schedule is not None else None
        if bounds is None or total_duration <= 0:
            return []

        open_minutes, close_minutes = bounds
        results = []
        for minutes in generate_slot_starts(
            open_minutes, close_minutes, total_duration, get_int("SLOT_GRANULARITY_MINUTES")
        ):
            start = minutes_to_datetime(day, minutes)
            end = start + timedelta(minutes=total_duration)
            if self.check_slot(salon, staff_selector, start, end, total_duration, now=now):
                results.append({"start_time": start.isoformat(), "end_time": end.isoformat()})
        return results

    def salon_status(self, salon, now=None) -> str:
        """
        Live status for discovery listings: "open", "closing_soon",
        "opening_soon" or "closed".
        Uses plain minutes of the day and handles overnight schedules explicitly.
        """
        now = now or timezone.now()
        store = AvailabilityRuleStore(salon)
        schedule = store.schedule()
        if schedule is None:
            return "closed"
        if weekday_index(now.date()) in (schedule.closed_weekdays or []):
            return "closed"
        if any(mod.closure_type == ClosureModification.FULL_DAY for mod in store.modifications_on(now.date())):
            return "closed"

        soon = get_int("SOON_WINDOW_MINUTES")
        current = now.hour * 60 + now.minute
        open_minutes = schedule.opening_time.hour * 60 + schedule.opening_time.minute
        close_minutes = schedule.closing_time.hour * 60 + schedule.closing_time.minute

        if close_minutes <= open_minutes:
            is_open = current >= open_minutes or current < close_minutes
            if is_open:
                until_close = (24 * 60 - current) + close_minutes if current >= open_minutes else close_minutes - current
                return "closing_soon" if until_close <= soon else "open"
        else:
            is_open = open_minutes <= current < close_minutes
            if is_open:
                return "closing_soon" if close_minutes - current <= soon else "open"

        until_open = open_minutes - current
        if 0 < until_open <= soon:
            return "opening_soon"
        return "closed"
