from django.contrib import admin
from .models import Appointment, AppointmentServiceLine, ClientProfile, Salon, Service, Staff

@admin.register(Salon)
class SalonAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "email", "owner")
    search_fields = ("name",)

@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("id", "salon", "name", "price", "duration_minutes", "active")
    list_filter = ("active", "salon")
    search_fields = ("name",)
    list_editable = ("price", "duration_minutes", "active")

@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ("id", "salon", "name", "role")
    list_filter = ("salon",)

@admin.register(ClientProfile)
class ClientProfileAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "phone", "strikes")

class AppointmentServiceLineInline(admin.TabularInline):
    model = AppointmentServiceLine
    extra = 0

@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ("id", "salon", "user", "staff", "start_time", "end_time", "status", "price")
    list_filter = ("status", "salon")
    search_fields = ("user__username", "salon__name")
    inlines = [AppointmentServiceLineInline]
