from rest_framework import serializers

from .models import Appointment, AppointmentServiceLine, Salon, Service, Staff
from .services.booking_manager import BookingManager


class SalonSerializer(serializers.ModelSerializer):
    class Meta:
        model = Salon
        fields = ["id", "name", "email", "phone"]


class ServiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Service
        fields = ["id", "salon", "name", "description", "duration_minutes", "price", "active"]


class StaffSerializer(serializers.ModelSerializer):
    class Meta:
        model = Staff
        fields = ["id", "salon", "name", "role"]


class AppointmentServiceLineSerializer(serializers.ModelSerializer):
    service_name = serializers.CharField(source="service.name", read_only=True)

    class Meta:
        model = AppointmentServiceLine
        fields = ["service", "service_name", "price"]


class AppointmentSerializer(serializers.ModelSerializer):
    staff_name = serializers.SerializerMethodField()
    services_names = serializers.SerializerMethodField()
    lines = AppointmentServiceLineSerializer(many=True, read_only=True)

    class Meta:
        model = Appointment
        fields = [
            "id",
            "salon",
            "user",
            "staff",
            "staff_name",
            "service",
            "start_time",
            "end_time",
            "status",
            "price",
            "created_at",
            "lines",
            "services_names",
        ]
        read_only_fields = fields

    def get_staff_name(self, obj):
        return obj.staff.name if obj.staff_id else None

    def get_services_names(self, obj):
        names = [line.service.name for line in obj.lines.all()]
        return " + ".join(names) if names else obj.service.name


class ServiceLineInputSerializer(serializers.Serializer):
    id = serializers.PrimaryKeyRelatedField(queryset=Service.objects.all())
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)


class BookingRequestSerializer(serializers.Serializer):
    """
    POST /api/appointments/ payload.

    - staff: a staff id, or 0 / null for "any staff"
    - services: [{"id": ..., "price": ...}, ...]
    - service + price: legacy single-service form, used when services is empty
    """
    salon = serializers.PrimaryKeyRelatedField(queryset=Salon.objects.all())
    staff = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    services = ServiceLineInputSerializer(many=True, required=False)
    service = serializers.PrimaryKeyRelatedField(queryset=Service.objects.all(), required=False)
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)

    def validate(self, attrs):
        if attrs["end_time"] <= attrs["start_time"]:
            raise serializers.ValidationError("End time must be after start time.")

        salon = attrs["salon"]
        staff_id = attrs.get("staff") or None
        if staff_id is not None:
            staff = Staff.objects.filter(pk=staff_id, salon=salon).first()
            if staff is None:
                raise serializers.ValidationError({"staff": "Unknown staff member for this salon."})
            attrs["staff"] = staff
        else:
            attrs["staff"] = None

        lines = [{"service": item["id"], "price": item.get("price")} for item in attrs.get("services") or []]
        if not lines and attrs.get("service") is not None:
            lines = [{"service": attrs["service"], "price": attrs.get("price")}]
        if not lines:
            raise serializers.ValidationError("At least one service must be selected.")
        attrs["service_lines"] = lines
        return attrs


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=BookingManager.STAFF_SETTABLE_STATUSES)
