import asyncio

import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from apps.dispatch.services import dispatch_service
from apps.events.constants import (
    ACTIVE_ORDERS_GROUP,
    FLEET_GROUP,
    order_group,
    rider_location_group,
    rider_orders_group,
)
from apps.orders.services import order_store
from apps.riders.services import location_stream

pytestmark = pytest.mark.django_db


@pytest.fixture
def channel_layer():
    layer = get_channel_layer()
    async_to_sync(layer.flush)()
    yield layer
    async_to_sync(layer.flush)()


@pytest.fixture
def listen(channel_layer):
    def _listen(group):
        channel = async_to_sync(channel_layer.new_channel)()
        async_to_sync(channel_layer.group_add)(group, channel)
        return channel

    return _listen


@pytest.fixture
def received(channel_layer):
    """Drains a channel and returns the change events it got"""

    def _received(channel):
        async def drain():
            events = []
            while True:
                try:
                    message = await asyncio.wait_for(channel_layer.receive(channel), timeout=0.05)
                except asyncio.TimeoutError:
                    return events
                assert message["type"] == "change.event"
                events.append(message["event"])

        return async_to_sync(drain)()

    return _received


class TestOrderChanges:
    def test_new_order_reaches_dispatch_board(self, make_draft, customer, listen, received, django_capture_on_commit_callbacks):
        board = listen(ACTIVE_ORDERS_GROUP)

        with django_capture_on_commit_callbacks(execute=True):
            order = dispatch_service.create_order(make_draft(), customer)

        events = received(board)
        assert len(events) == 1
        assert events[0]["type"] == "insert"
        assert events[0]["entity"] == "order"
        assert events[0]["payload"]["id"] == str(order.id)
        assert events[0]["payload"]["delivery_status"] == "pending"

    def test_assignment_reaches_order_rider_and_board(
        self, pending_order, rider, admin, listen, received, django_capture_on_commit_callbacks
    ):
        channels = [listen(order_group(pending_order.id)), listen(rider_orders_group(rider.id)), listen(ACTIVE_ORDERS_GROUP)]

        with django_capture_on_commit_callbacks(execute=True):
            dispatch_service.assign_rider(pending_order.id, rider.id, admin)

        for channel in channels:
            events = received(channel)
            assert [event["type"] for event in events] == ["update"]
            assert events[0]["payload"]["delivery_status"] == "assigned"
            assert events[0]["payload"]["rider_id"] == str(rider.id)

    def test_cancelled_assignment_reaches_previous_rider(
        self, pending_order, rider, admin, listen, received, django_capture_on_commit_callbacks
    ):
        dispatch_service.assign_rider(pending_order.id, rider.id, admin)
        rider_feed = listen(rider_orders_group(rider.id))

        with django_capture_on_commit_callbacks(execute=True):
            dispatch_service.cancel_order(pending_order.id, "Kitchen closed", admin)

        events = received(rider_feed)
        assert len(events) == 1
        assert events[0]["payload"]["delivery_status"] == "cancelled"
        assert events[0]["payload"]["rider_id"] is None

    def test_events_are_published_only_after_commit(self, pending_order, rider, admin, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks() as callbacks:
            order_store.transition_status(pending_order.id, "pending", "assigned", {"rider_id": rider.id}, actor=admin)

        assert len(callbacks) == 1

    def test_every_event_has_its_own_id(self, make_draft, admin, listen, received, django_capture_on_commit_callbacks):
        board = listen(ACTIVE_ORDERS_GROUP)

        with django_capture_on_commit_callbacks(execute=True):
            dispatch_service.create_order(make_draft(), admin)
            dispatch_service.create_order(make_draft(), admin)

        event_ids = [event["event_id"] for event in received(board)]
        assert len(event_ids) == 2
        assert len(set(event_ids)) == 2

    def test_broken_channel_layer_does_not_fail_the_transition(
        self, pending_order, rider, admin, monkeypatch, django_capture_on_commit_callbacks
    ):
        class BrokenLayer:
            async def group_send(self, group, message):
                raise ConnectionError("redis is down")

        monkeypatch.setattr("apps.events.services.get_channel_layer", lambda: BrokenLayer())

        with django_capture_on_commit_callbacks(execute=True):
            order = dispatch_service.assign_rider(pending_order.id, rider.id, admin)

        assert order.delivery_status == "assigned"


class TestLocationChanges:
    def test_report_reaches_rider_feed_and_fleet(self, rider, rider_actor, listen, received, django_capture_on_commit_callbacks):
        channels = [listen(rider_location_group(rider.id)), listen(FLEET_GROUP)]

        with django_capture_on_commit_callbacks(execute=True):
            location_stream.report_location(rider.id, 45.07, 7.68, actor=rider_actor)

        for channel in channels:
            events = received(channel)
            assert len(events) == 1
            assert events[0]["type"] == "insert"
            assert events[0]["entity"] == "rider_location"
            assert events[0]["payload"]["rider_id"] == str(rider.id)

    def test_retried_report_is_an_update(self, rider, rider_actor, listen, received, django_capture_on_commit_callbacks):
        fleet = listen(FLEET_GROUP)
        location = location_stream.report_location(rider.id, 45.07, 7.68, actor=rider_actor)

        with django_capture_on_commit_callbacks(execute=True):
            location_stream.report_location(rider.id, 45.07, 7.68, timestamp=location.timestamp, actor=rider_actor)

        assert [event["type"] for event in received(fleet)] == ["update"]

    def test_customer_tracking_sees_rider_move(
        self, pending_order, rider, rider_actor, admin, listen, received, django_capture_on_commit_callbacks
    ):
        dispatch_service.assign_rider(pending_order.id, rider.id, admin)
        dispatch_service.start_delivery(pending_order.id, rider_actor)
        tracking = listen(order_group(pending_order.id))

        with django_capture_on_commit_callbacks(execute=True):
            location_stream.report_location(rider.id, 45.0703, 7.6869, actor=rider_actor)

        events = received(tracking)
        assert len(events) == 1
        assert events[0]["entity"] == "rider_location"
        assert events[0]["payload"]["order_id"] == str(pending_order.id)
        assert events[0]["payload"]["distance_km"] == pytest.approx(0.5, abs=0.1)
