from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from .models import Break, ClosureModification, OperatingSchedule


class ModelCleanMixin:
    """
    Run the model's clean() on the would-be instance so the API enforces the
    same rules as the admin.
    """
    def validate(self, attrs):
        attrs = super().validate(attrs)
        instance = self.Meta.model(**{**self._current_values(), **attrs})
        try:
            instance.clean()
        except DjangoValidationError as e:
            raise serializers.ValidationError(e.messages)

        salon = attrs.get("salon") or getattr(self.instance, "salon", None)
        staff = attrs.get("staff")
        if staff is not None and salon is not None and staff.salon_id != salon.pk:
            raise serializers.ValidationError({"staff": "Staff member does not work at this salon."})
        return attrs

    def _current_values(self):
        if self.instance is None:
            return {}
        return {
            f.name: getattr(self.instance, f.name)
            for f in self.Meta.model._meta.concrete_fields
            if f.name != "id"
        }


class OperatingScheduleSerializer(ModelCleanMixin, serializers.ModelSerializer):
    opening_time = serializers.TimeField(format="%H:%M")
    closing_time = serializers.TimeField(format="%H:%M")
    is_overnight = serializers.BooleanField(read_only=True)

    class Meta:
        model = OperatingSchedule
        fields = ["salon", "opening_time", "closing_time", "closed_weekdays", "is_overnight"]
        read_only_fields = ["salon"]


class BreakSerializer(ModelCleanMixin, serializers.ModelSerializer):
    start_time = serializers.TimeField(format="%H:%M")
    end_time = serializers.TimeField(format="%H:%M")

    class Meta:
        model = Break
        fields = ["id", "salon", "staff", "start_time", "end_time", "reason"]


class ClosureModificationSerializer(ModelCleanMixin, serializers.ModelSerializer):
    interval_start = serializers.TimeField(format="%H:%M", required=False, allow_null=True)
    interval_end = serializers.TimeField(format="%H:%M", required=False, allow_null=True)

    class Meta:
        model = ClosureModification
        fields = [
            "id",
            "salon",
            "kind",
            "date",
            "weekday_index",
            "closure_type",
            "interval_start",
            "interval_end",
            "staff",
            "reason",
            "created_at",
        ]
        read_only_fields = ["created_at"]
