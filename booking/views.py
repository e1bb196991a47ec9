# booking/views.py
#
# Purpose:
# - APIs for Salons, Services, Staff and Appointments.
# - Booking, cancellation and salon status updates go through BookingManager.
# - Availability endpoint lists bookable starts for a day.
# - Permissions:
#   * Catalog/roster writes are limited to the salon owner (or Django staff).
#   * Booking and cancelling require an authenticated customer.
#   * Status updates are salon-side (owner only).
#
import logging

from django.db import DatabaseError
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.dateparse import parse_date

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import SAFE_METHODS, IsAuthenticated
from rest_framework.response import Response

from configmgr.conf import get_int

from .exceptions import BookingError
from .models import Appointment, Salon, Service, Staff
from .permissions import IsSalonOwnerOrReadOnly, SalonScopedMixin, owns_salon
from .serializers import (
    AppointmentSerializer,
    BookingRequestSerializer,
    SalonSerializer,
    ServiceSerializer,
    StaffSerializer,
    StatusUpdateSerializer,
)
from .services.availability_engine import AvailabilityEngine
from .services.booking_manager import BookingManager

logger = logging.getLogger(__name__)


def _error(exc: BookingError) -> Response:
    return Response({"detail": exc.message, "code": exc.code}, status=exc.status_code)


def _server_error(what: str) -> Response:
    logger.exception("Database error during %s", what)
    return Response(
        {"detail": f"Database error during {what}.", "code": "server_error"},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


# -------------------- ViewSets --------------------
class SalonViewSet(viewsets.ModelViewSet):
    queryset = Salon.objects.all().order_by("id")
    serializer_class = SalonSerializer
    permission_classes = [IsSalonOwnerOrReadOnly]

    def perform_create(self, serializer):
        serializer.save(owner=self.request.user)

    @action(detail=True, methods=["get"], url_path="status")
    def live_status(self, request, pk=None):
        """GET /api/salons/{id}/status/ -> open | closing_soon | opening_soon | closed"""
        salon = self.get_object()
        return Response({"salon": salon.pk, "status": AvailabilityEngine().salon_status(salon)})


class ServiceViewSet(SalonScopedMixin, viewsets.ModelViewSet):
    """
    Service catalog:
    - Anyone can list active services (?salon=ID).
    - Only the salon owner can create/update/delete services.
    """
    serializer_class = ServiceSerializer
    permission_classes = [IsSalonOwnerOrReadOnly]

    def get_queryset(self):
        qs = self.filter_by_salon(Service.objects.all().order_by("id"))
        if self.request.method in SAFE_METHODS and self.action == "list":
            return qs.filter(active=True)
        return qs


class StaffViewSet(SalonScopedMixin, viewsets.ModelViewSet):
    serializer_class = StaffSerializer
    permission_classes = [IsSalonOwnerOrReadOnly]

    def get_queryset(self):
        return self.filter_by_salon(Staff.objects.all().order_by("id"))


class AppointmentViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Endpoints:
    - POST   /api/appointments/                 book
    - POST   /api/appointments/{id}/cancel/     customer cancellation (notice window + strikes)
    - POST   /api/appointments/{id}/status/     salon marks Completed / Absent / Cancelled
    - GET    /api/appointments/availability/    bookable starts for a day
    - GET    /api/appointments/?filter=upcoming|past                                  customer's own
    - GET    /api/appointments/?salon=ID&filter=today|upcoming|completed|past|cancelled  salon dashboard
    """
    serializer_class = AppointmentSerializer
    permission_classes = [IsAuthenticated]
    manager = BookingManager()

    SALON_FILTERS = ("today", "upcoming", "completed", "past", "cancelled")
    USER_FILTERS = ("upcoming", "past")

    def get_permissions(self):
        if self.action == "availability":
            return []
        return super().get_permissions()

    def _visible(self):
        user = self.request.user
        qs = Appointment.objects.select_related("staff", "service").prefetch_related("lines__service")
        if user.is_staff:
            return qs
        return qs.filter(user=user) | qs.filter(salon__owner=user)

    def get_queryset(self):
        qs = self._visible()
        if self.action != "list":
            return qs

        now = timezone.now()
        flt = (self.request.query_params.get("filter") or "").strip()
        salon_id = (self.request.query_params.get("salon") or "").strip()

        if salon_id:
            salon = get_object_or_404(Salon, pk=salon_id) if salon_id.isdigit() else None
            if salon is None or not owns_salon(self.request.user, salon):
                return Appointment.objects.none()
            qs = Appointment.objects.filter(salon=salon).select_related("staff", "service").prefetch_related("lines__service")
            if flt == "today":
                return qs.filter(start_time__date=now.date(), status=Appointment.SCHEDULED).order_by("start_time")
            if flt == "upcoming":
                return qs.filter(start_time__gt=now, status=Appointment.SCHEDULED).order_by("start_time")
            if flt == "completed":
                return qs.filter(status__in=[Appointment.COMPLETED, Appointment.ABSENT]).order_by("-start_time")
            if flt == "past":
                return qs.filter(start_time__lte=now).exclude(
                    status__in=[Appointment.CANCELLED, Appointment.COMPLETED]
                ).order_by("-start_time")
            if flt == "cancelled":
                return qs.filter(status=Appointment.CANCELLED).order_by("-start_time")
            return qs.order_by("-start_time")

        qs = qs.filter(user=self.request.user)
        if flt == "upcoming":
            return qs.filter(start_time__gt=now, status=Appointment.SCHEDULED).order_by("start_time")
        if flt == "past":
            return qs.filter(start_time__lte=now).order_by("-start_time")
        return qs.order_by("-start_time")

    def list(self, request, *args, **kwargs):
        flt = (request.query_params.get("filter") or "").strip()
        allowed = self.SALON_FILTERS if request.query_params.get("salon") else self.USER_FILTERS
        if flt and flt not in allowed:
            return Response({"detail": "Invalid filter.", "code": "invalid"}, status=status.HTTP_400_BAD_REQUEST)
        return super().list(request, *args, **kwargs)

    def create(self, request, *args, **kwargs):
        """
        Book a slot:
        - Requires: salon, start_time, end_time and services[] (or legacy service + price).
        - Optional: staff (0 / null = any staff), price (must equal the line total).
        - The slot is re-validated server-side; the client's own check is never trusted.
        """
        serializer = BookingRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            appointment = self.manager.book(
                salon=data["salon"],
                user=request.user,
                staff=data["staff"],
                service_lines=data["service_lines"],
                start_time=data["start_time"],
                end_time=data["end_time"],
                total_price=data.get("price") if data.get("services") else None,
            )
        except BookingError as e:
            return _error(e)
        except DatabaseError:
            return _server_error("booking")

        out = AppointmentSerializer(appointment)
        return Response(
            {"appointment_id": appointment.pk, "services_count": len(data["service_lines"]), **out.data},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        """
        Customer cancellation. Late cancellations (inside the notice window) still
        go through but add a strike; the new total is returned.
        """
        appointment = get_object_or_404(Appointment, pk=pk)
        try:
            result = self.manager.cancel(appointment, request.user)
        except BookingError as e:
            return _error(e)
        except DatabaseError:
            return _server_error("cancellation")

        body = {
            "cancelled": result.cancelled,
            "strike_issued": result.strike_issued,
            "detail": "Appointment cancelled.",
        }
        if result.strike_issued:
            body["new_strike_count"] = result.new_strike_count
            body["detail"] = (
                "Appointment cancelled. A strike was added to your account because the "
                f"cancellation was late (strikes: {result.new_strike_count}/{get_int('STRIKE_LIMIT')})."
            )
        return Response(body, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):
        """Salon-side: mark a Scheduled appointment Completed, Absent or Cancelled."""
        appointment = get_object_or_404(Appointment.objects.select_related("salon"), pk=pk)
        if not owns_salon(request.user, appointment.salon):
            return Response(
                {"detail": "Only the salon can change this appointment.", "code": "not_allowed"},
                status=status.HTTP_403_FORBIDDEN,
            )

        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            result = self.manager.update_status(appointment, serializer.validated_data["status"])
        except BookingError as e:
            return _error(e)
        except DatabaseError:
            return _server_error("status update")

        body = {"ok": True, "status": result.appointment.status, "strike_issued": result.strike_issued}
        if result.strike_issued:
            body["new_strike_count"] = result.new_strike_count
        return Response(body, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="availability")
    def availability(self, request):
        """
        GET /api/appointments/availability/?salon=ID&date=YYYY-MM-DD&services=1,2[&staff=ID]
        staff omitted or 0 means any staff.
        """
        salon_id = (request.query_params.get("salon") or "").strip()
        date_raw = (request.query_params.get("date") or "").strip()
        services_raw = (request.query_params.get("services") or "").strip()
        staff_raw = (request.query_params.get("staff") or "0").strip()

        if not salon_id or not date_raw or not services_raw:
            return Response(
                {"detail": "Missing 'salon', 'date' or 'services'."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            day = parse_date(date_raw.split("T", 1)[0])
        except ValueError:
            day = None
        if day is None:
            return Response(
                {"detail": "Invalid date format. Use YYYY-MM-DD."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            service_ids = [int(s) for s in services_raw.split(",") if s.strip()]
            staff_id = int(staff_raw or 0)
        except ValueError:
            return Response({"detail": "Invalid service or staff id."}, status=status.HTTP_400_BAD_REQUEST)

        salon = get_object_or_404(Salon, pk=salon_id) if salon_id.isdigit() else None
        if salon is None:
            return Response({"detail": "Invalid salon id."}, status=status.HTTP_400_BAD_REQUEST)

        services = list(Service.objects.filter(salon=salon, pk__in=service_ids, active=True))
        if len(services) != len(set(service_ids)):
            return Response({"detail": "Unknown service for this salon."}, status=status.HTTP_400_BAD_REQUEST)

        staff = None
        if staff_id:
            staff = get_object_or_404(Staff, pk=staff_id, salon=salon)

        total_duration = sum(s.duration_minutes for s in services)
        slots = AvailabilityEngine().available_slots(salon, day, total_duration, staff_selector=staff)
        return Response({"date": day.isoformat(), "duration_minutes": total_duration, "slots": slots})
