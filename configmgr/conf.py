"""
conf.py
-------
Policy constants for the scheduling engine.

Lookup order:
1) configmgr.SystemSetting row with the same key (runtime override)
2) Django settings attribute
3) DEFAULTS below
"""

import logging

from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULTS = {
    "CANCELLATION_NOTICE_HOURS": 3,
    "BOOKING_LEAD_MINUTES": 30,
    "SLOT_GRANULARITY_MINUTES": 30,
    "STRIKE_LIMIT": 3,
    "SOON_WINDOW_MINUTES": 60,
}


def get_int(key: str) -> int:
    default = int(getattr(settings, key, DEFAULTS[key]))

    from .models import SystemSetting

    row = SystemSetting.objects.filter(key=key).first()
    if row is None:
        return default
    try:
        value = int(row.value.strip())
    except (TypeError, ValueError):
        logger.warning("Ignoring unparseable setting %s=%r", key, row.value)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive setting %s=%r", key, row.value)
        return default
    return value
