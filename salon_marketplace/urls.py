# salon_marketplace/urls.py
#
# Purpose:
# - Project URL router.
# - All JSON APIs live under /api/.
#
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/scheduling/", include("scheduling.urls")),
    path("api/notifications/", include("notifications.urls")),
    path("api/", include("booking.urls")),
]
