# booking/urls.py
#
# Purpose:
# - Expose the booking REST API via DRF router.
#
# Routes:
#   /api/salons/                       salons (+ /{id}/status/ live open/closed state)
#   /api/services/?salon=ID            service catalog
#   /api/staff/?salon=ID               staff roster
#   /api/appointments/                 book, list, cancel, status, availability
#
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import AppointmentViewSet, SalonViewSet, ServiceViewSet, StaffViewSet

router = DefaultRouter()
router.register(r"salons", SalonViewSet, basename="salon")
router.register(r"services", ServiceViewSet, basename="service")
router.register(r"staff", StaffViewSet, basename="staff")
router.register(r"appointments", AppointmentViewSet, basename="appointment")

urlpatterns = [
    path("", include(router.urls)),
]
