"""
staff_allocator.py
------------------
"Any staff" handling.

Two separate questions:
1) has_capacity: is *some* specialist free for [start, end)? (count based)
2) pick_free_staff: which specialist gets the booking? (first free in id order)

Known approximation:
- has_capacity counts free staff against unassigned overlapping appointments.
  It does not track which staff an unassigned booking will end up with, so it
  can pass while pick_free_staff still finds nobody. BookingManager treats that
  as "no specialist available" and writes nothing.
"""

import logging

logger = logging.getLogger(__name__)


class StaffAllocator:
    def __init__(self, store):
        self.store = store

    def _busy_staff_ids(self, start, end):
        return set(
            self.store.overlapping_scheduled(start, end)
            .filter(staff__isnull=False)
            .values_list("staff_id", flat=True)
        )

    def generic_overlap_count(self, start, end) -> int:
        """Unassigned Scheduled appointments overlapping the slot."""
        return self.store.overlapping_scheduled(start, end).filter(staff__isnull=True).count()

    def available_staff_count(self, start, end, roster=None) -> int:
        roster = self.store.staff() if roster is None else roster
        busy = self._busy_staff_ids(start, end)
        return sum(1 for member in roster if member.id not in busy)

    def has_capacity(self, start, end) -> bool:
        """
        With a roster: free staff must outnumber unassigned overlapping bookings.
        Without one: the salon is a single resource, blocked by any unassigned overlap.
        """
        roster = self.store.staff()
        generic = self.generic_overlap_count(start, end)
        if not roster:
            return generic == 0

        available = self.available_staff_count(start, end, roster=roster)
        logger.debug(
            "Capacity salon=%s %s-%s available=%s generic=%s",
            self.store.salon.pk, start, end, available, generic,
        )
        return available > generic

    def is_staff_free(self, staff, start, end) -> bool:
        return not self.store.overlapping_scheduled(start, end).filter(staff=staff).exists()

    def pick_free_staff(self, start, end):
        """
        First staff member (by id) with no Scheduled appointment assigned to them
        that overlaps the slot. None if everybody is busy.
        """
        for member in self.store.staff():
            if self.is_staff_free(member, start, end):
                return member
        return None
