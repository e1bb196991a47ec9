"""
rules.py
--------
Small value types shared by the rule models and the availability engine.

- Scope: who a break or closure applies to (the whole salon, or one staff member).
- Once / Recurring: when a closure applies (one date, or one weekday every week).

Weekday indices follow the salon dashboard: 0 = Sunday ... 6 = Saturday.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class Scope:
    """staff_id=None means the rule covers every staff member (salon-wide)."""
    staff_id: Optional[int] = None

    @property
    def is_salon_wide(self) -> bool:
        return self.staff_id is None

    def applies_to(self, staff_id: Optional[int]) -> bool:
        """
        staff_id is the requested staff, or None for an "any staff" request.
        An "any staff" request is only held back by salon-wide rules.
        """
        if self.is_salon_wide:
            return True
        return staff_id is not None and self.staff_id == staff_id


@dataclass(frozen=True)
class Once:
    date: date

    def matches(self, day: date, weekday: int) -> bool:
        return self.date == day


@dataclass(frozen=True)
class Recurring:
    weekday: int

    def matches(self, day: date, weekday: int) -> bool:
        return self.weekday == weekday
