from django.urls import path

from .views import NotificationFeedView

urlpatterns = [path("", NotificationFeedView.as_view(), name="notification-feed")]
