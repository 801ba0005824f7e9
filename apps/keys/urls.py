"""URL routing for the key custody domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import DormitoryKeyViewSet, KeyAssignmentViewSet

router = DefaultRouter()
router.register(r"assignments", KeyAssignmentViewSet, basename="key-assignment")
router.register(r"", DormitoryKeyViewSet, basename="key")

urlpatterns = [
    path("", include(router.urls)),
]
