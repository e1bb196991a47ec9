from django.db import models


class SystemSetting(models.Model):
    """
    Simple key/value settings store.
    Overrides the booking policy defaults from Django settings.
    Example keys:
      - CANCELLATION_NOTICE_HOURS (e.g., '3')
      - BOOKING_LEAD_MINUTES (e.g., '30')
      - SLOT_GRANULARITY_MINUTES (e.g., '30')
    """
    key = models.CharField(max_length=100, unique=True)
    value = models.CharField(max_length=200)

    def __str__(self):
        return f"{self.key}={self.value}"
