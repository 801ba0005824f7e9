"""API views for analytics.

Staff get figures for the whole dormitory; residents get their own
reservation figures only.
"""

from __future__ import annotations

from rest_framework.permissions import IsAdminUser, IsAuthenticated  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.reservations.models import Reservation

from . import services


def _is_staff(user) -> bool:
    return bool(getattr(user, "is_staff", False) or getattr(user, "is_superuser", False))


class ReservationStatisticsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, format=None):  # type: ignore
        queryset = Reservation.objects.all()
        if not _is_staff(request.user):
            queryset = queryset.filter(user=request.user)
        return Response(services.reservation_statistics(queryset))


class KeyStatisticsView(APIView):
    permission_classes = [IsAdminUser]

    def get(self, request, format=None):  # type: ignore
        return Response(services.key_statistics())


class OverviewAnalyticsView(APIView):
    """Reservations and keys in one payload (keys for staff only)."""

    permission_classes = [IsAuthenticated]

    def get(self, request, format=None):  # type: ignore
        if _is_staff(request.user):
            return Response({
                "reservations": services.reservation_statistics(),
                "keys": services.key_statistics(),
            })
        queryset = Reservation.objects.filter(user=request.user)
        return Response({"reservations": services.reservation_statistics(queryset)})
