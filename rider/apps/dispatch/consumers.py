from channels.db import database_sync_to_async

from apps.events.consumers import ChangeFeedConsumer
from apps.events.constants import ACTIVE_ORDERS_GROUP, FLEET_GROUP


class DispatchConsumer(ChangeFeedConsumer):
    """Dispatcher board: every active order and the whole fleet"""

    async def authorize(self):
        if not self.actor.is_admin:
            return None
        return [ACTIVE_ORDERS_GROUP, FLEET_GROUP]

    async def send_snapshot(self):
        await self.send_json({"type": "snapshot", **(await self.board())})

    @database_sync_to_async
    def board(self):
        from apps.orders.serializers import OrderSerializer
        from apps.orders.services import order_store
        from apps.riders.services import location_stream

        return {
            "orders": OrderSerializer(order_store.list_active_orders(), many=True).data,
            "fleet": location_stream.get_latest_locations_for_active_riders(),
        }
