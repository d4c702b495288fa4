from decimal import Decimal

import pytest
from django.core.cache import cache

from apps.core.actors import Actor, Roles
from apps.notifications.gateways import NotificationDeliveryError, NotificationGateway
from apps.notifications.services import notification_service
from apps.orders.services import order_store
from apps.riders.models import Rider


class RecordingGateway(NotificationGateway):
    """Keeps every notification instead of sending it"""

    def __init__(self):
        self.sent = []

    def send(self, target, title, body, data):
        self.sent.append({"target": target, "title": title, "body": body, "data": data})

    def targets(self):
        return [str(message["target"]) for message in self.sent]


class FailingGateway(NotificationGateway):
    def send(self, target, title, body, data):
        raise NotificationDeliveryError("push service unreachable")


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def gateway():
    recording = RecordingGateway()
    notification_service.gateway = recording
    yield recording
    notification_service.gateway = None


@pytest.fixture
def failing_gateway():
    failing = FailingGateway()
    notification_service.gateway = failing
    yield failing
    notification_service.gateway = None


@pytest.fixture
def admin():
    return Actor(role=Roles.ADMIN, id="admin-1")


@pytest.fixture
def customer():
    return Actor(role=Roles.CUSTOMER, id="anna@example.com")


@pytest.fixture
def other_customer():
    return Actor(role=Roles.CUSTOMER, id="bruno@example.com")


@pytest.fixture
def rider(db):
    return Rider.objects.create(name="Marco", phone="+393330000001", is_active=True, current_status="available")


@pytest.fixture
def second_rider(db):
    return Rider.objects.create(name="Giulia", phone="+393330000002", is_active=True, current_status="available")


@pytest.fixture
def inactive_rider(db):
    return Rider.objects.create(name="Luca", phone="+393330000003", is_active=False)


@pytest.fixture
def rider_actor(rider):
    return Actor(role=Roles.RIDER, id=str(rider.id))


@pytest.fixture
def make_draft():
    def _make_draft(**overrides):
        draft = {
            "customer_name": "Anna Rossi",
            "customer_email": "anna@example.com",
            "customer_phone": "+393471234567",
            "customer_address": "Via Roma 1, Torino",
            "delivery_lat": Decimal("45.0677"),
            "delivery_lng": Decimal("7.6824"),
            "delivery_type": "delivery",
            "payment_method": "cash",
            "delivery_fee": Decimal("2.50"),
            "items": [
                {"product_id": "margherita", "product_name": "Margherita", "quantity": 1, "unit_price": Decimal("10.00")},
                {"product_id": "diavola", "product_name": "Diavola", "quantity": 1, "unit_price": Decimal("8.00")},
            ],
        }
        draft.update(overrides)
        return draft

    return _make_draft


@pytest.fixture
def pending_order(db, make_draft, customer):
    return order_store.create_order(make_draft(), actor=customer)
