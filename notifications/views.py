from rest_framework import generics
from rest_framework.permissions import IsAuthenticated
from rest_framework import serializers

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ["id", "salon", "event_type", "channel", "message", "payload", "sent", "created_at"]


class NotificationFeedView(generics.ListAPIView):
    """
    GET /api/notifications/            -> the caller's own feed
    GET /api/notifications/?salon=ID   -> a salon's live feed (owner only)
    """
    serializer_class = NotificationSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        user = self.request.user
        salon_id = self.request.query_params.get("salon")
        if salon_id:
            if not salon_id.isdigit():
                return Notification.objects.none()
            return Notification.objects.filter(salon_id=salon_id, salon__owner=user, channel=Notification.LIVE)
        return Notification.objects.filter(user=user)
