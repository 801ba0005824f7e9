"""URL routing for analytics endpoints."""

from django.urls import path  # type: ignore

from .views import KeyStatisticsView, OverviewAnalyticsView, ReservationStatisticsView


urlpatterns = [
    # Do not prefix with 'analytics/' here; the namespace is defined in config.urls
    path('overview/', OverviewAnalyticsView.as_view(), name='analytics-overview'),
    path('reservations/', ReservationStatisticsView.as_view(), name='analytics-reservations'),
    path('keys/', KeyStatisticsView.as_view(), name='analytics-keys'),
]
