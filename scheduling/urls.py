from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import BreakViewSet, ClosureModificationViewSet, OperatingScheduleView

router = DefaultRouter()
router.register(r"breaks", BreakViewSet, basename="break")
router.register(r"closures", ClosureModificationViewSet, basename="closure")

urlpatterns = [
    path("schedule/<int:salon_id>/", OperatingScheduleView.as_view(), name="operating-schedule"),
    path("", include(router.urls)),
]
