# notifications/models.py
#
# Purpose:
# - Record every delivery of a scheduling event (booking created/cancelled,
#   status updated) to a salon's live dashboard, its push audience, or a customer.
#
# Design:
# - 'channel' is "live" (dashboard feed) or "push" (same-day alerts).
# - 'sent' indicates delivery attempt result.
#
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models


class Notification(models.Model):
    LIVE = "live"
    PUSH = "push"
    CHANNEL_CHOICES = [
        (LIVE, "Live dashboard"),
        (PUSH, "Push"),
    ]

    salon = models.ForeignKey(
        "booking.Salon",
        on_delete=models.CASCADE,
        related_name="notifications",
        null=True,
        blank=True,
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
        null=True,
        blank=True,
    )
    event_type = models.CharField(max_length=40)
    channel = models.CharField(max_length=10, choices=CHANNEL_CHOICES, default=LIVE)
    message = models.TextField()
    payload = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    created_at = models.DateTimeField(auto_now_add=True)
    sent = models.BooleanField(default=False)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:
        target = self.salon or self.user or "nobody"
        return f"{self.event_type} ({self.channel}) to {target} at {self.created_at:%Y-%m-%d %H:%M}"
