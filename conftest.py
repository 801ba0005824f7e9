import pytest
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone

from shared.application.message_bus import message_bus
from apps.keys.models import DormitoryKey
from apps.resources.models import ReservableResource


@pytest.fixture(autouse=True)
def allocation_test_settings(settings):
    settings.ALLOCATION = {
        **settings.ALLOCATION,
        "AUTO_CONFIRM_RESERVATIONS": False,
        "DAILY_RESERVATION_LIMIT": 3,
        "NO_SHOW_GRACE_MINUTES": 15,
        "UPCOMING_WINDOW_DAYS": 7,
    }


@pytest.fixture
def published_events(monkeypatch):
    """Events handed to the message bus after commit, in order."""
    recorded = []
    original = message_bus.publish_events

    def record(events):
        recorded.extend(events)
        original(events)

    monkeypatch.setattr(message_bus, "publish_events", record)
    return recorded


@pytest.fixture
def user(db):
    return get_user_model().objects.create_user(
        username="resident",
        password="pass",
        email="resident@example.com",
    )


@pytest.fixture
def other_user(db):
    return get_user_model().objects.create_user(
        username="neighbour",
        password="pass",
        email="neighbour@example.com",
    )


@pytest.fixture
def staff_user(db):
    return get_user_model().objects.create_user(
        username="warden",
        password="pass",
        email="warden@example.com",
        is_staff=True,
    )


@pytest.fixture
def study_room(db):
    return ReservableResource.objects.create(
        name="Study room 201",
        resource_type=ReservableResource.ResourceType.ROOM,
        capacity=4,
        floor_number=2,
        location="Floor 2, Room 201",
        cost_per_hour=Decimal("0.00"),
    )


@pytest.fixture
def keyed_room(db):
    return ReservableResource.objects.create(
        name="Music room",
        resource_type=ReservableResource.ResourceType.ROOM,
        capacity=6,
        floor_number=1,
        requires_key=True,
        key_type=DormitoryKey.Type.ROOM,
    )


@pytest.fixture
def room_key(db):
    return DormitoryKey.objects.create(key_code="K-101", key_type=DormitoryKey.Type.ROOM, room_number="101")


@pytest.fixture
def spare_key(db):
    return DormitoryKey.objects.create(key_code="K-102", key_type=DormitoryKey.Type.ROOM, room_number="102")


@pytest.fixture
def now():
    return timezone.now().replace(microsecond=0)


@pytest.fixture
def tomorrow_noon():
    local = timezone.localtime() + timedelta(days=1)
    return local.replace(hour=12, minute=0, second=0, microsecond=0)
