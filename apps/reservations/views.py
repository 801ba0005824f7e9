"""API views for the booking domain."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from shared.application.message_bus import message_bus

from . import queries
from .application.command_handlers import (
    CancelReservationCommand,
    CheckInReservationCommand,
    CheckOutReservationCommand,
    CompleteReservationCommand,
    ConfirmReservationCommand,
    CreateReservationCommand,
    MarkNoShowCommand,
    PickUpKeyCommand,
    ReturnReservationKeyCommand,
)
from .filters import ReservationFilterSet
from .models import Reservation
from .serializers import (
    CancelReservationSerializer,
    PickUpKeySerializer,
    ReservationCreateSerializer,
    ReservationSerializer,
)


def _is_staff(user) -> bool:
    return bool(getattr(user, "is_staff", False) or getattr(user, "is_superuser", False))


class ReservationViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Reservations: residents manage their own, staff manages all."""

    queryset = Reservation.objects.select_related("resource", "user", "key_assignment")
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = ReservationFilterSet
    ordering_fields = ["start_time", "end_time", "created_at"]

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return ReservationCreateSerializer
        return ReservationSerializer

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if _is_staff(user):
            return qs
        return qs.filter(user=user)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        reservation = message_bus.handle_command(CreateReservationCommand(
            user_id=request.user.pk,
            resource_id=data["resource"].pk,
            start_time=data["start_time"],
            end_time=data["end_time"],
            number_of_people=data["number_of_people"],
            notes=data["notes"],
            request_key=data.get("request_key"),
        ))
        read_serializer = ReservationSerializer(reservation, context=self.get_serializer_context())
        headers = self.get_success_headers(read_serializer.data)
        return Response(read_serializer.data, status=status.HTTP_201_CREATED, headers=headers)

    def _run(self, command_type, **extra):
        reservation = self.get_object()
        reservation = message_bus.handle_command(command_type(reservation_id=reservation.pk, **extra))
        return Response(ReservationSerializer(reservation, context=self.get_serializer_context()).data)

    @action(detail=True, methods=["post"], permission_classes=[permissions.IsAdminUser])
    def confirm(self, request, pk=None):  # type: ignore
        return self._run(ConfirmReservationCommand)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        serializer = CancelReservationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._run(CancelReservationCommand, reason=serializer.validated_data["reason"])

    @action(detail=True, methods=["post"], url_path="check-in", url_name="check-in")
    def check_in(self, request, pk=None):  # type: ignore
        return self._run(CheckInReservationCommand)

    @action(detail=True, methods=["post"], url_path="check-out", url_name="check-out")
    def check_out(self, request, pk=None):  # type: ignore
        return self._run(CheckOutReservationCommand)

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):  # type: ignore
        return self._run(CompleteReservationCommand)

    @action(
        detail=True,
        methods=["post"],
        url_path="no-show",
        url_name="no-show",
        permission_classes=[permissions.IsAdminUser],
    )
    def no_show(self, request, pk=None):  # type: ignore
        return self._run(MarkNoShowCommand)

    @action(detail=True, methods=["post"], url_path="pick-up-key", url_name="pick-up-key")
    def pick_up_key(self, request, pk=None):  # type: ignore
        serializer = PickUpKeySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._run(PickUpKeyCommand, assignment_id=serializer.validated_data["assignment"])

    @action(detail=True, methods=["post"], url_path="return-key", url_name="return-key")
    def return_key(self, request, pk=None):  # type: ignore
        return self._run(ReturnReservationKeyCommand)

    @action(detail=False, methods=["get"])
    def upcoming(self, request):  # type: ignore
        user_id = None if _is_staff(request.user) else request.user.pk
        days = request.query_params.get("days")
        qs = queries.upcoming_reservations(user_id=user_id, days=int(days) if days and days.isdigit() else None)
        return Response(self.get_serializer(qs, many=True).data)

    @action(detail=False, methods=["get"], permission_classes=[permissions.IsAdminUser])
    def overdue(self, request):  # type: ignore
        return Response(self.get_serializer(queries.overdue_reservations(), many=True).data)

    @action(
        detail=False,
        methods=["get"],
        url_path="unreturned-keys",
        url_name="unreturned-keys",
        permission_classes=[permissions.IsAdminUser],
    )
    def unreturned_keys(self, request):  # type: ignore
        return Response(self.get_serializer(queries.reservations_with_unreturned_keys(), many=True).data)

    @action(
        detail=False,
        methods=["get"],
        url_path="ready-for-pickup",
        url_name="ready-for-pickup",
        permission_classes=[permissions.IsAdminUser],
    )
    def ready_for_pickup(self, request):  # type: ignore
        return Response(self.get_serializer(queries.reservations_ready_for_key_pickup(), many=True).data)
