import json
import logging
import uuid

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.core.serializers.json import DjangoJSONEncoder

from apps.core.exceptions import DispatchError, PermissionDeniedError, ValidationError

from .constants import (
    ACTIVE_ORDERS_GROUP,
    FLEET_GROUP,
    Entities,
    order_group,
    rider_location_group,
    rider_orders_group,
)

logger = logging.getLogger(__name__)

FILTER_KEYS = {
    Entities.ORDER: {"id", "rider_id"},
    Entities.RIDER_LOCATION: {"rider_id"},
}


class ChangeFeedConsumer(AsyncWebsocketConsumer):
    """
    Base for the change-feed sockets.

    Subclasses decide in ``authorize`` which groups the connection joins (or
    return None to reject the handshake) and may push a snapshot in
    ``send_snapshot``. Every change event published to a joined group is
    forwarded as is; clients de-duplicate on ``event_id``.
    """

    async def connect(self):
        self.actor = self.scope.get("actor")
        self.subscriptions = set()

        groups = await self.authorize() if self.actor is not None else None
        if groups is None:
            logger.warning(f"Rejected {type(self).__name__} connection for {self.actor or 'anonymous'}")
            await self.close()
            return

        await self.accept()
        for group in groups:
            await self.join(group)
        await self.send_snapshot()

    async def authorize(self):
        return None

    async def send_snapshot(self):
        pass

    async def join(self, group: str):
        await self.channel_layer.group_add(group, self.channel_name)
        self.subscriptions.add(group)

    async def leave(self, group: str):
        await self.channel_layer.group_discard(group, self.channel_name)
        self.subscriptions.discard(group)

    async def disconnect(self, close_code):
        for group in list(getattr(self, "subscriptions", ())):
            await self.leave(group)

    async def send_json(self, content):
        await self.send(text_data=json.dumps(content, cls=DjangoJSONEncoder))

    async def receive(self, text_data=None, bytes_data=None):
        try:
            data = json.loads(text_data or "")
        except json.JSONDecodeError:
            await self.send_json({"type": "error", "detail": "Invalid JSON"})
            return
        if not isinstance(data, dict):
            await self.send_json({"type": "error", "detail": "Expected a JSON object"})
            return

        if data.get("type") == "ping":
            await self.send_json({"type": "pong"})
            return
        await self.handle_message(data)

    async def handle_message(self, data):
        await self.send_json({"type": "error", "detail": f"Unknown message type '{data.get('type')}'"})

    async def change_event(self, message):
        await self.send_json(message["event"])


def _uuid_or_none(value):
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        return None


class SubscriptionConsumer(ChangeFeedConsumer):
    """
    Generic feed: the client picks what to watch.

        {"action": "subscribe", "entity": "order", "filter": {"id": "<order id>"}}
        {"action": "subscribe", "entity": "order", "filter": {"rider_id": "<rider id>"}}
        {"action": "subscribe", "entity": "rider_location", "filter": {"rider_id": "<rider id>"}}

    An empty filter means every active order or the whole fleet (admins only).
    """

    async def authorize(self):
        return []

    async def handle_message(self, data):
        action = data.get("action")
        if action not in ("subscribe", "unsubscribe"):
            await super().handle_message(data)
            return

        try:
            group = await self.group_for(data.get("entity"), data.get("filter") or {})
        except DispatchError as e:
            await self.send_json({"type": "error", "error": e.code, "detail": e.message})
            return

        if action == "subscribe":
            await self.join(group)
        else:
            await self.leave(group)
        await self.send_json({"type": f"{action}d", "group": group})

    @database_sync_to_async
    def group_for(self, entity, subscription_filter) -> str:
        from apps.dispatch.services import dispatch_service
        from apps.orders.services import order_store

        if entity not in (Entities.ORDER, Entities.RIDER_LOCATION):
            raise ValidationError(f"Unknown entity '{entity}'", field="entity")
        if not isinstance(subscription_filter, dict):
            raise ValidationError("filter must be an object", field="filter")
        unknown = set(subscription_filter) - FILTER_KEYS[entity]
        if unknown:
            raise ValidationError(
                f"Cannot filter {entity} by {', '.join(sorted(unknown))}", field="filter"
            )

        if entity == Entities.ORDER and subscription_filter.get("id"):
            order = order_store.get_order(subscription_filter["id"])
            dispatch_service.ensure_can_view(order, self.actor)
            return order_group(order.id)

        rider_id = subscription_filter.get("rider_id")
        if rider_id:
            rider_id = _uuid_or_none(rider_id)
            if rider_id is None:
                raise ValidationError("rider_id must be a UUID", field="rider_id")
            if not (self.actor.is_admin or (self.actor.is_rider and self.actor.id == rider_id)):
                raise PermissionDeniedError("Riders can only follow themselves")
            if entity == Entities.ORDER:
                return rider_orders_group(rider_id)
            return rider_location_group(rider_id)

        if not self.actor.is_admin:
            raise PermissionDeniedError("Only admins can follow every order or rider")
        return ACTIVE_ORDERS_GROUP if entity == Entities.ORDER else FLEET_GROUP
