"""Resource catalog API views."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter, SearchFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.reservations import availability

from . import services
from .filters import ReservableResourceFilterSet
from .models import ReservableResource
from .serializers import AvailabilityQuerySerializer, ReservableResourceSerializer


class IsStaffOrReadOnly(permissions.BasePermission):
    """Residents browse the catalog, staff maintains it."""

    def has_permission(self, request, view):  # type: ignore
        if not request.user.is_authenticated:
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return bool(request.user.is_staff or request.user.is_superuser)


class ReservableResourceViewSet(viewsets.ModelViewSet):
    """Catalog of reservable rooms and equipment."""

    queryset = ReservableResource.objects.all()
    serializer_class = ReservableResourceSerializer
    permission_classes = [IsStaffOrReadOnly]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_class = ReservableResourceFilterSet
    search_fields = ["name", "description", "location"]
    ordering_fields = ["name", "capacity", "floor_number", "cost_per_hour"]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if user.is_staff or user.is_superuser:
            return qs
        return qs.filter(is_active=True)

    def perform_destroy(self, instance):  # type: ignore
        services.deactivate_resource(instance)

    @action(detail=True, methods=["get"])
    def availability(self, request, pk=None):  # type: ignore
        resource = self.get_object()
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        start, end = query.validated_data["start"], query.validated_data["end"]
        blocking = availability.conflicts(resource.pk, start, end)
        return Response({
            "resource_id": resource.pk,
            "start": start,
            "end": end,
            "available": not blocking,
            "conflicting_reservation_ids": [reservation.pk for reservation in blocking],
        })

    @action(detail=False, methods=["get"])
    def free(self, request):  # type: ignore
        return Response(self.get_serializer(services.free_resources(), many=True).data)

    @action(detail=False, methods=["get"], url_path=r"floor/(?P<floor_number>-?\d+)", url_name="by-floor")
    def by_floor(self, request, floor_number=None):  # type: ignore
        qs = services.resources_on_floor(int(floor_number))
        return Response(self.get_serializer(qs, many=True).data)

    @action(
        detail=False,
        methods=["get"],
        url_path="needing-maintenance",
        url_name="needing-maintenance",
        permission_classes=[permissions.IsAdminUser],
    )
    def needing_maintenance(self, request):  # type: ignore
        return Response(self.get_serializer(services.resources_needing_maintenance(), many=True).data)

    @action(detail=True, methods=["post"], permission_classes=[permissions.IsAdminUser])
    def deactivate(self, request, pk=None):  # type: ignore
        resource = services.deactivate_resource(self.get_object())
        return Response(self.get_serializer(resource).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"])
    def search(self, request):  # type: ignore
        qs = services.search_resources(request.query_params.get("q", ""))
        return Response(self.get_serializer(qs, many=True).data)
