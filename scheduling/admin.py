# scheduling/admin.py
from django.contrib import admin

from .models import Break, ClosureModification, OperatingSchedule


@admin.register(OperatingSchedule)
class OperatingScheduleAdmin(admin.ModelAdmin):
    list_display = ("salon", "opening_time", "closing_time", "closed_weekdays")
    search_fields = ("salon__name",)


@admin.register(ClosureModification)
class ClosureModificationAdmin(admin.ModelAdmin):
    list_display = ("salon", "kind", "date", "weekday_index", "closure_type", "interval_start", "interval_end", "staff")
    list_filter = ("kind", "closure_type")
    search_fields = ("salon__name", "reason")


@admin.register(Break)
class BreakAdmin(admin.ModelAdmin):
    list_display = ("salon", "staff", "start_time", "end_time", "reason")
    list_filter = ("salon",)
    search_fields = ("salon__name", "staff__name")
