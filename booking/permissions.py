from rest_framework.permissions import SAFE_METHODS, BasePermission


def owns_salon(user, salon) -> bool:
    return bool(user and user.is_authenticated and (user.is_staff or salon.owner_id == user.pk))


class IsSalonOwnerOrReadOnly(BasePermission):
    """
    Read: anyone
    Write: the owner of the salon the object belongs to (or Django staff)
    """
    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        if request.method in SAFE_METHODS:
            return True
        salon = getattr(obj, "salon", obj)
        return owns_salon(request.user, salon)


class SalonScopedMixin:
    """List filtering by ?salon=ID and owner check on create."""

    def filter_by_salon(self, qs):
        salon_id = (self.request.query_params.get("salon") or "").strip()
        if salon_id.isdigit():
            qs = qs.filter(salon_id=salon_id)
        return qs

    def perform_create(self, serializer):
        salon = serializer.validated_data["salon"]
        if not owns_salon(self.request.user, salon):
            self.permission_denied(self.request, message="Only the salon owner can do that.")
        serializer.save()
