# scheduling/views.py
#
# Purpose:
# - Salon owners maintain the rules the availability engine reads:
#   * GET/PUT /api/scheduling/schedule/{salon_id}/   base hours + closed weekdays
#   * /api/scheduling/breaks/?salon=ID               recurring daily breaks
#   * /api/scheduling/closures/?salon=ID             one-off / recurring closures
# - Reads are public (the booking page needs them); writes are owner-only.
#
import logging

from django.shortcuts import get_object_or_404
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticatedOrReadOnly
from rest_framework.response import Response
from rest_framework.views import APIView

from booking.models import Salon
from booking.permissions import IsSalonOwnerOrReadOnly, SalonScopedMixin, owns_salon

from .models import Break, ClosureModification, OperatingSchedule
from .serializers import BreakSerializer, ClosureModificationSerializer, OperatingScheduleSerializer

logger = logging.getLogger(__name__)


class OperatingScheduleView(APIView):
    permission_classes = [IsAuthenticatedOrReadOnly]

    def get(self, request, salon_id):
        schedule = get_object_or_404(OperatingSchedule, salon_id=salon_id)
        return Response(OperatingScheduleSerializer(schedule).data)

    def put(self, request, salon_id):
        """Create or replace the salon's base schedule."""
        salon = get_object_or_404(Salon, pk=salon_id)
        if not owns_salon(request.user, salon):
            return Response({"detail": "Only the salon owner can do that."}, status=status.HTTP_403_FORBIDDEN)

        schedule = OperatingSchedule.objects.filter(salon=salon).first()
        serializer = OperatingScheduleSerializer(schedule, data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.save(salon=salon)

        logger.info("Schedule for salon %s set to %s", salon.pk, serializer.data)
        code = status.HTTP_200_OK if schedule else status.HTTP_201_CREATED
        return Response(serializer.data, status=code)


class BreakViewSet(SalonScopedMixin, viewsets.ModelViewSet):
    serializer_class = BreakSerializer
    permission_classes = [IsSalonOwnerOrReadOnly]

    def get_queryset(self):
        return self.filter_by_salon(Break.objects.select_related("staff"))


class ClosureModificationViewSet(SalonScopedMixin, viewsets.ModelViewSet):
    serializer_class = ClosureModificationSerializer
    permission_classes = [IsSalonOwnerOrReadOnly]

    def get_queryset(self):
        return self.filter_by_salon(ClosureModification.objects.select_related("staff"))
