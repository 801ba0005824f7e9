"""URL routing for the resource catalog."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import ReservableResourceViewSet

router = DefaultRouter()
router.register(r"", ReservableResourceViewSet, basename="resource")

urlpatterns = [
    path("", include(router.urls)),
]
