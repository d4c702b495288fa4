"""
Order audit events and realtime fan-out of order/location changes.

Change events are pushed to Channels groups once the database transaction
that produced them has committed. Delivery is at-least-once: every event
carries an ``event_id`` so clients can drop duplicates, and nothing is
replayed; a client that reconnects re-fetches current state.
"""
import json
import logging
import uuid
from typing import Any, Dict, Iterable, Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone

from apps.core.actors import Actor
from apps.dispatch.geo import distance_to_destination
from apps.orders.constants import DeliveryStatus
from apps.orders.models import Order
from apps.orders.serializers import OrderSerializer

from .constants import (
    ACTIVE_ORDERS_GROUP,
    FLEET_GROUP,
    ChangeTypes,
    Entities,
    order_group,
    rider_location_group,
    rider_orders_group,
)
from .models import OrderEvent

logger = logging.getLogger(__name__)

# consumers handle this message type in their ``change_event`` method
CHANGE_EVENT_MESSAGE = "change.event"


def _json_safe(data: Dict[str, Any]) -> Dict[str, Any]:
    return json.loads(json.dumps(data, cls=DjangoJSONEncoder))


def build_change_event(change_type: str, entity: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "event_id": str(uuid.uuid4()),
        "type": change_type,
        "entity": entity,
        "payload": _json_safe(payload),
        "published_at": timezone.now().isoformat(),
    }


class EventService:
    @staticmethod
    def create_event(
        order,
        event_type: str,
        to_status: str,
        from_status: str = "",
        actor: Optional[Actor] = None,
        rider_id=None,
        event_data=None,
    ) -> OrderEvent:
        return OrderEvent.objects.create(
            order=order,
            rider_id=rider_id,
            event_type=event_type,
            from_status=from_status,
            to_status=to_status,
            actor=str(actor) if actor else "",
            event_data=_json_safe(event_data or {}),
        )

    @staticmethod
    def get_order_events(order_id):
        return list(OrderEvent.objects.filter(order_id=order_id).order_by("created_at"))


class RealtimeFanout:
    def _send(self, groups: Iterable[str], event: Dict[str, Any]):
        channel_layer = get_channel_layer()
        if channel_layer is None:
            logger.warning("No channel layer configured, dropping change event")
            return

        message = {"type": CHANGE_EVENT_MESSAGE, "event": event}
        for group in groups:
            try:
                async_to_sync(channel_layer.group_send)(group, message)
            except Exception as e:
                # order state is already committed, a lost push is recovered by re-fetch
                logger.error(f"Fan-out of {event['entity']} event to {group} failed: {e}")

    def publish_order(self, order, change_type: str = ChangeTypes.UPDATE, previous_rider_id=None):
        payload = OrderSerializer(order).data
        groups = [order_group(order.id), ACTIVE_ORDERS_GROUP]
        if order.rider_id:
            groups.append(rider_orders_group(order.rider_id))
        if previous_rider_id and previous_rider_id != order.rider_id:
            # the rider an order was taken from must learn it is gone
            groups.append(rider_orders_group(previous_rider_id))

        event = build_change_event(change_type, Entities.ORDER, payload)
        self._send(groups, event)
        logger.debug(f"Published {change_type} for order {order.id} to {len(groups)} group(s)")
        return event

    def publish_location(self, location: Dict[str, Any], change_type: str = ChangeTypes.INSERT):
        rider_id = location["rider_id"]
        event = build_change_event(change_type, Entities.RIDER_LOCATION, location)
        self._send([rider_location_group(rider_id), FLEET_GROUP], event)

        # customers tracking an order in delivery see their rider move
        for order in Order.objects.filter(rider_id=rider_id, delivery_status=DeliveryStatus.IN_DELIVERY):
            tracked = {
                **location,
                "order_id": str(order.id),
                **distance_to_destination(
                    location["latitude"],
                    location["longitude"],
                    order.delivery_lat,
                    order.delivery_lng,
                    settings.RIDER_AVERAGE_SPEED_KMH,
                ),
            }
            self._send(
                [order_group(order.id)],
                build_change_event(change_type, Entities.RIDER_LOCATION, tracked),
            )
        return event


event_service = EventService()
realtime_fanout = RealtimeFanout()
