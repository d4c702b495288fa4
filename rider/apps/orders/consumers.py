from channels.db import database_sync_to_async

from apps.core.exceptions import NotFound
from apps.events.consumers import ChangeFeedConsumer
from apps.events.constants import Entities, order_group


class OrderConsumer(ChangeFeedConsumer):
    """Customer view of one order: a snapshot on connect, then its change events"""

    async def authorize(self):
        self.order_id = self.scope["url_route"]["kwargs"]["order_id"]
        self.snapshot = await self.load_order()
        if self.snapshot is None:
            return None
        return [order_group(self.order_id)]

    async def send_snapshot(self):
        await self.send_json({"type": "snapshot", "entity": Entities.ORDER, "payload": self.snapshot})

    @database_sync_to_async
    def load_order(self):
        from apps.dispatch.services import dispatch_service
        from apps.orders.serializers import OrderSerializer

        try:
            order = dispatch_service.store.get_order(self.order_id)
            dispatch_service.ensure_can_view(order, self.actor)
        except NotFound:
            return None
        return OrderSerializer(order).data
