"""Integration tests for the resource catalog endpoints."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.keys.models import DormitoryKey
from apps.reservations.models import Reservation
from apps.resources.models import ReservableResource


class ResourceCatalogAPITests(APITestCase):
    def setUp(self) -> None:
        user_model = get_user_model()
        self.resident = user_model.objects.create_user(username="resident", password="pass")
        self.warden = user_model.objects.create_user(username="warden", password="pass", is_staff=True)
        self.study = ReservableResource.objects.create(
            name="Study room", description="Quiet desks", capacity=4, floor_number=2, location="Floor 2, Room 201"
        )
        self.laundry = ReservableResource.objects.create(
            name="Washing machine",
            resource_type=ReservableResource.ResourceType.EQUIPMENT,
            floor_number=0,
            cost_per_hour=Decimal("1.50"),
            next_maintenance=timezone.now() - timedelta(days=1),
        )
        self.closed = ReservableResource.objects.create(name="Old gym", is_active=False, floor_number=2)
        self.list_url = reverse("resource-list")

    def _names(self, response) -> list[str]:
        return sorted(row["name"] for row in response.data)

    def test_residents_see_only_active_resources(self) -> None:
        self.client.force_authenticate(self.resident)

        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self._names(response), ["Study room", "Washing machine"])

    def test_staff_see_inactive_resources_too(self) -> None:
        self.client.force_authenticate(self.warden)

        response = self.client.get(self.list_url)

        self.assertIn("Old gym", self._names(response))

    def test_anonymous_requests_are_rejected(self) -> None:
        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_resident_cannot_create_resource(self) -> None:
        self.client.force_authenticate(self.resident)

        response = self.client.post(self.list_url, {"name": "Piano room"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_staff_creates_keyed_resource(self) -> None:
        self.client.force_authenticate(self.warden)

        response = self.client.post(
            self.list_url,
            {"name": "Music room", "capacity": 3, "requires_key": True, "key_type": "room"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertTrue(ReservableResource.objects.get(name="Music room").requires_key)

    def test_keyed_resource_needs_key_type(self) -> None:
        self.client.force_authenticate(self.warden)

        response = self.client.post(self.list_url, {"name": "Music room", "requires_key": True}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("key_type", response.data)

    def test_resource_bound_to_a_key_takes_its_type(self) -> None:
        music_key = DormitoryKey.objects.create(key_code="MR-1", key_type=DormitoryKey.Type.ROOM)
        self.client.force_authenticate(self.warden)

        bound = self.client.post(
            self.list_url, {"name": "Music room", "requires_key": True, "key": music_key.pk}, format="json"
        )
        mismatch = self.client.post(
            self.list_url,
            {"name": "Band room", "requires_key": True, "key": music_key.pk, "key_type": "master"},
            format="json",
        )

        self.assertEqual(bound.status_code, status.HTTP_201_CREATED, bound.data)
        self.assertEqual(bound.data["key_type"], DormitoryKey.Type.ROOM)
        self.assertEqual(mismatch.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("key", mismatch.data)

    def test_delete_soft_deactivates(self) -> None:
        self.client.force_authenticate(self.warden)

        response = self.client.delete(reverse("resource-detail", args=[self.study.pk]))

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.study.refresh_from_db()
        self.assertFalse(self.study.is_active)

    def test_availability_reports_conflicts(self) -> None:
        start = timezone.now() + timedelta(days=1)
        booked = Reservation.objects.create(
            resource=self.study,
            user=self.resident,
            start_time=start,
            end_time=start + timedelta(hours=1),
            status=Reservation.Status.CONFIRMED,
        )
        self.client.force_authenticate(self.resident)
        url = reverse("resource-availability", args=[self.study.pk])

        busy = self.client.get(url, {"start": start.isoformat(), "end": (start + timedelta(minutes=30)).isoformat()})
        after = self.client.get(
            url,
            {"start": (start + timedelta(hours=1)).isoformat(), "end": (start + timedelta(hours=2)).isoformat()},
        )

        self.assertFalse(busy.data["available"])
        self.assertEqual(busy.data["conflicting_reservation_ids"], [booked.pk])
        self.assertTrue(after.data["available"])

    def test_availability_requires_ordered_window(self) -> None:
        self.client.force_authenticate(self.resident)
        start = timezone.now()

        response = self.client.get(
            reverse("resource-availability", args=[self.study.pk]),
            {"start": start.isoformat(), "end": start.isoformat()},
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_free_floor_and_search_listings(self) -> None:
        self.client.force_authenticate(self.resident)

        free = self.client.get(reverse("resource-free"))
        floor = self.client.get(reverse("resource-by-floor", args=[2]))
        search = self.client.get(reverse("resource-search"), {"q": "quiet"})

        self.assertEqual(self._names(free), ["Study room"])
        self.assertEqual(self._names(floor), ["Study room"])
        self.assertEqual(self._names(search), ["Study room"])

    def test_needing_maintenance_is_staff_only(self) -> None:
        url = reverse("resource-needing-maintenance")
        self.client.force_authenticate(self.resident)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.warden)
        response = self.client.get(url)

        self.assertEqual(self._names(response), ["Washing machine"])
