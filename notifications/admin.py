from django.contrib import admin
from notifications.models import Notification

@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('event_type', 'channel', 'salon', 'user', 'sent', 'created_at')
    list_filter = ('channel', 'event_type', 'sent', 'created_at')
    search_fields = ('salon__name', 'user__username', 'message')
