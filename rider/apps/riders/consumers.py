from channels.db import database_sync_to_async

from apps.events.consumers import ChangeFeedConsumer
from apps.events.constants import Entities, rider_location_group, rider_orders_group


class RiderConsumer(ChangeFeedConsumer):
    """A rider's own assignments and position, also open to admins"""

    async def authorize(self):
        self.rider_id = str(self.scope["url_route"]["kwargs"]["rider_id"])
        if not (self.actor.is_admin or (self.actor.is_rider and self.actor.id == self.rider_id)):
            return None
        if not await self.rider_exists():
            return None
        return [rider_orders_group(self.rider_id), rider_location_group(self.rider_id)]

    async def send_snapshot(self):
        orders = await self.active_orders()
        await self.send_json({"type": "snapshot", "entity": Entities.ORDER, "payload": orders})

    @database_sync_to_async
    def rider_exists(self):
        from .models import Rider

        return Rider.objects.filter(id=self.rider_id).exists()

    @database_sync_to_async
    def active_orders(self):
        from apps.orders.serializers import OrderSerializer
        from apps.orders.services import order_store

        return OrderSerializer(order_store.list_active_orders(rider_id=self.rider_id), many=True).data
