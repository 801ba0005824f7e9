"""API views for the key custody domain."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter, SearchFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from shared.application.message_bus import message_bus

from . import queries
from .application.command_handlers import (
    ExtendKeyAssignmentCommand,
    IssueKeyCommand,
    PutKeyOutOfServiceCommand,
    ReinstateKeyCommand,
    ReportKeyDamagedCommand,
    ReportKeyLostCommand,
    ReturnKeyCommand,
)
from .filters import DormitoryKeyFilterSet, KeyAssignmentFilterSet
from .models import DormitoryKey, KeyAssignment
from .serializers import (
    DormitoryKeySerializer,
    ExtendAssignmentSerializer,
    IssueKeySerializer,
    KeyAssignmentSerializer,
    ReasonSerializer,
    ReportDamageSerializer,
    ReturnKeySerializer,
)


def _is_staff(user) -> bool:
    return bool(getattr(user, "is_staff", False) or getattr(user, "is_superuser", False))


class IsStaffOrReadOnly(permissions.BasePermission):
    """Authenticated users read the catalog, staff maintains it."""

    def has_permission(self, request, view):  # type: ignore
        if not request.user.is_authenticated:
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return _is_staff(request.user)


class DormitoryKeyViewSet(viewsets.ModelViewSet):
    """Key catalog plus the administrative custody actions."""

    queryset = DormitoryKey.objects.all()
    serializer_class = DormitoryKeySerializer
    permission_classes = [IsStaffOrReadOnly]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_class = DormitoryKeyFilterSet
    search_fields = ["key_code", "room_number", "description"]
    ordering_fields = ["key_code", "floor_number", "total_assignments"]
    http_method_names = ["get", "post", "put", "patch", "head", "options"]

    @action(detail=True, methods=["post"], permission_classes=[permissions.IsAdminUser])
    def issue(self, request, pk=None):  # type: ignore
        key = self.get_object()
        serializer = IssueKeySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        assignment = message_bus.handle_command(IssueKeyCommand(
            user_id=serializer.validated_data["user"].pk,
            key_id=key.pk,
            expected_return=serializer.validated_data.get("expected_return"),
            issued_by_id=request.user.pk,
            notes=serializer.validated_data["notes"],
        ))
        return Response(KeyAssignmentSerializer(assignment).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], permission_classes=[permissions.IsAdminUser])
    def reinstate(self, request, pk=None):  # type: ignore
        key = message_bus.handle_command(ReinstateKeyCommand(key_id=self.get_object().pk))
        return Response(self.get_serializer(key).data)

    @action(
        detail=True,
        methods=["post"],
        url_path="out-of-service",
        url_name="out-of-service",
        permission_classes=[permissions.IsAdminUser],
    )
    def out_of_service(self, request, pk=None):  # type: ignore
        serializer = ReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        key = message_bus.handle_command(PutKeyOutOfServiceCommand(
            key_id=self.get_object().pk,
            reason=serializer.validated_data["reason"],
        ))
        return Response(self.get_serializer(key).data)

    @action(detail=False, methods=["get"], permission_classes=[permissions.IsAuthenticated])
    def my(self, request):  # type: ignore
        assignments = queries.find_active_for_user(request.user.pk)
        return Response(KeyAssignmentSerializer(assignments, many=True).data)

    @action(detail=False, methods=["get"], permission_classes=[permissions.IsAdminUser])
    def attention(self, request):  # type: ignore
        keys = queries.keys_needing_attention()
        return Response(self.get_serializer(keys, many=True).data)


class KeyAssignmentViewSet(viewsets.ReadOnlyModelViewSet):
    """Custody records. Holders see their own, staff sees everything."""

    queryset = KeyAssignment.objects.select_related("key", "user", "issued_by")
    serializer_class = KeyAssignmentSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = KeyAssignmentFilterSet
    ordering_fields = ["issued_at", "expected_return", "returned_at"]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if _is_staff(user):
            return qs
        return qs.filter(user=user)

    @action(detail=True, methods=["post"], url_path="return", url_name="return")
    def return_key(self, request, pk=None):  # type: ignore
        assignment = self.get_object()
        serializer = ReturnKeySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        assignment = message_bus.handle_command(ReturnKeyCommand(assignment_id=assignment.pk, **serializer.validated_data))
        return Response(self.get_serializer(assignment).data)

    @action(detail=True, methods=["post"], url_path="report-lost", url_name="report-lost")
    def report_lost(self, request, pk=None):  # type: ignore
        assignment = message_bus.handle_command(ReportKeyLostCommand(assignment_id=self.get_object().pk))
        return Response(self.get_serializer(assignment).data)

    @action(detail=True, methods=["post"], url_path="report-damaged", url_name="report-damaged")
    def report_damaged(self, request, pk=None):  # type: ignore
        assignment = self.get_object()
        serializer = ReportDamageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        assignment = message_bus.handle_command(ReportKeyDamagedCommand(
            assignment_id=assignment.pk,
            description=serializer.validated_data["description"],
        ))
        return Response(self.get_serializer(assignment).data)

    @action(detail=True, methods=["post"], permission_classes=[permissions.IsAdminUser])
    def extend(self, request, pk=None):  # type: ignore
        assignment = self.get_object()
        serializer = ExtendAssignmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        assignment = message_bus.handle_command(ExtendKeyAssignmentCommand(
            assignment_id=assignment.pk,
            expected_return=serializer.validated_data["expected_return"],
        ))
        return Response(self.get_serializer(assignment).data)

    @action(detail=False, methods=["get"])
    def active(self, request):  # type: ignore
        qs = self.filter_queryset(self.get_queryset()).filter(status=KeyAssignment.Status.ACTIVE)
        return Response(self.get_serializer(qs, many=True).data)

    @action(detail=False, methods=["get"], permission_classes=[permissions.IsAdminUser])
    def overdue(self, request):  # type: ignore
        return Response(self.get_serializer(queries.overdue_assignments(), many=True).data)

    @action(detail=False, methods=["get"])
    def my(self, request):  # type: ignore
        return Response(self.get_serializer(queries.assignment_history(request.user.pk), many=True).data)
