"""
Dispatch coordinator: drives orders through their delivery lifecycle.

Each operation is a status transition on the order store followed by
notifications. The transition is the source of truth; notifications are a
side channel and their failures only come back as warnings attached to the
returned order (``order.notification_warnings``).
"""
import logging
from typing import Any, Dict, List

from django.conf import settings

from apps.core.actors import Actor
from apps.core.exceptions import (
    InvalidTransitionError,
    NotFound,
    PermissionDeniedError,
    RiderInactiveError,
    ValidationError,
)
from apps.notifications.constants import ADMIN_RECIPIENT_ID, NotificationTypes, RecipientTypes
from apps.notifications.gateways import NotificationTarget
from apps.notifications.services import notification_service
from apps.orders.constants import DeliveryStatus, DeliveryType
from apps.orders.models import Order
from apps.orders.services import order_store
from apps.riders.services import location_stream, rider_service

from .geo import distance_to_destination

logger = logging.getLogger(__name__)


def customer_target(order: Order) -> NotificationTarget:
    return NotificationTarget(RecipientTypes.CUSTOMER, order.customer_email)


def rider_target(rider_id) -> NotificationTarget:
    return NotificationTarget(RecipientTypes.RIDER, str(rider_id))


ADMIN_TARGET = NotificationTarget(RecipientTypes.ADMIN, ADMIN_RECIPIENT_ID)


class DispatchService:
    def __init__(self, store=order_store, riders=rider_service, locations=location_stream, notifications=notification_service):
        self.store = store
        self.riders = riders
        self.locations = locations
        self.notifications = notifications

    # permissions

    @staticmethod
    def _is_assigned_rider(order: Order, actor: Actor) -> bool:
        return actor.is_rider and order.rider_id is not None and actor.id == str(order.rider_id)

    @staticmethod
    def _is_owner(order: Order, actor: Actor) -> bool:
        return actor.is_customer and actor.id == order.customer_email

    def ensure_can_view(self, order: Order, actor: Actor):
        if not (actor.is_admin or self._is_owner(order, actor) or self._is_assigned_rider(order, actor)):
            # customers probing other ids learn nothing
            raise NotFound("Order not found", id=order.id)

    def _ensure_can_drive(self, order: Order, actor: Actor, action: str):
        if not (actor.is_admin or self._is_assigned_rider(order, actor)):
            raise PermissionDeniedError(f"Only an admin or the assigned rider can {action} this order")

    def _notify(self, order: Order, notifications: List[Dict[str, Any]]) -> Order:
        order.notification_warnings = self.notifications.notify_all(
            [{"order": order, **notification} for notification in notifications]
        )
        return order

    # operations

    def create_order(self, draft: Dict[str, Any], actor: Actor) -> Order:
        if actor.is_rider:
            raise PermissionDeniedError("Riders cannot place orders")
        if actor.is_customer and str(draft.get("customer_email") or "").strip().lower() != actor.id:
            raise PermissionDeniedError("Customers can only order with their own email")

        order = self.store.create_order(draft, actor=actor)
        return self._notify(
            order,
            [
                {
                    "target": ADMIN_TARGET,
                    "notification_type": NotificationTypes.NEW_ORDER,
                    "title": "New order",
                    "body": f"New order from {order.customer_name} - {order.items.count()} item(s) - EUR {order.total_amount}",
                },
            ],
        )

    def list_orders(self, actor: Actor, statuses=None, **filters) -> List[Order]:
        """Orders in ``statuses`` (default: active ones); riders and customers only see their own"""
        if actor.is_rider:
            filters["rider_id"] = actor.id
        elif actor.is_customer:
            filters["customer_email"] = actor.id
        return self.store.list_orders_by_status(statuses or DeliveryStatus.ACTIVE, **filters)

    def assign_rider(self, order_id, rider_id, actor: Actor) -> Order:
        if not actor.is_admin:
            raise PermissionDeniedError("Only admins can assign riders")

        rider = self.riders.get_rider(rider_id)
        if not rider.is_active:
            raise RiderInactiveError(f"Rider {rider.name} is not active", rider_id=rider.id)

        order = self.store.get_order(order_id)
        if order.delivery_type == DeliveryType.PICKUP:
            raise ValidationError("Pickup orders are collected in store and cannot be dispatched")

        order = self.store.transition_status(
            order.id,
            DeliveryStatus.PENDING,
            DeliveryStatus.ASSIGNED,
            {"rider_id": rider.id},
            actor=actor,
        )
        return self._notify(
            order,
            [
                {
                    "target": rider_target(rider.id),
                    "notification_type": NotificationTypes.ORDER_ASSIGNED,
                    "title": "New delivery assigned",
                    "body": f"Order {order.order_number} for {order.customer_name}, {order.customer_address}",
                },
                {
                    "target": customer_target(order),
                    "notification_type": NotificationTypes.RIDER_ASSIGNED,
                    "title": "Rider assigned",
                    "body": f"{rider.name} will deliver your order {order.order_number}",
                },
            ],
        )

    def start_delivery(self, order_id, actor: Actor) -> Order:
        order = self.store.get_order(order_id)
        self._ensure_can_drive(order, actor, "start")

        order = self.store.transition_status(
            order.id, DeliveryStatus.ASSIGNED, DeliveryStatus.IN_DELIVERY, actor=actor
        )
        # location reports of this rider now feed the order's tracking view
        self.riders.set_current_status(order.rider_id, "busy")
        return self._notify(
            order,
            [
                {
                    "target": customer_target(order),
                    "notification_type": NotificationTypes.RIDER_EN_ROUTE,
                    "title": "Rider en route",
                    "body": f"Your order {order.order_number} is on its way",
                },
            ],
        )

    def complete_delivery(self, order_id, actor: Actor) -> Order:
        order = self.store.get_order(order_id)
        self._ensure_can_drive(order, actor, "complete")

        order = self.store.transition_status(
            order.id, DeliveryStatus.IN_DELIVERY, DeliveryStatus.DELIVERED, actor=actor
        )
        still_busy = Order.objects.filter(
            rider_id=order.rider_id, delivery_status=DeliveryStatus.IN_DELIVERY
        ).exists()
        if not still_busy:
            self.riders.set_current_status(order.rider_id, "available")
        return self._notify(
            order,
            [
                {
                    "target": customer_target(order),
                    "notification_type": NotificationTypes.ORDER_DELIVERED,
                    "title": "Order delivered",
                    "body": f"Your order {order.order_number} has arrived. Enjoy your meal!",
                },
            ],
        )

    def cancel_order(self, order_id, reason: str, actor: Actor) -> Order:
        order = self.store.get_order(order_id)
        if actor.is_rider:
            raise PermissionDeniedError("Riders cannot cancel orders")
        if actor.is_customer and not self._is_owner(order, actor):
            raise NotFound("Order not found", id=order.id)

        current = order.delivery_status
        if current not in (DeliveryStatus.PENDING, DeliveryStatus.ASSIGNED):
            raise InvalidTransitionError(current, DeliveryStatus.CANCELLED)
        if actor.is_customer and current != DeliveryStatus.PENDING:
            raise PermissionDeniedError("A rider is already on this order, contact the restaurant to cancel")

        previous_rider_id = order.rider_id
        order = self.store.transition_status(
            order.id,
            current,
            DeliveryStatus.CANCELLED,
            {"cancellation_reason": reason or ""},
            actor=actor,
        )

        body = f"Your order {order.order_number} has been cancelled"
        if reason:
            body = f"{body}: {reason}"
        notifications = [
            {
                "target": customer_target(order),
                "notification_type": NotificationTypes.ORDER_CANCELLED,
                "title": "Order cancelled",
                "body": body,
            },
        ]
        if previous_rider_id:
            notifications.append(
                {
                    "target": rider_target(previous_rider_id),
                    "notification_type": NotificationTypes.ASSIGNMENT_CANCELLED,
                    "title": "Delivery cancelled",
                    "body": f"Order {order.order_number} was cancelled",
                }
            )
        return self._notify(order, notifications)

    def get_tracking(self, order_id, actor: Actor) -> Dict[str, Any]:
        """Order plus its rider's latest position and distance to the customer"""
        order = self.store.get_order(order_id)
        self.ensure_can_view(order, actor)

        tracking = {"order": order, "rider": order.rider, "location": None, "distance_km": None, "eta_minutes": None}
        if order.rider_id and order.delivery_status == DeliveryStatus.IN_DELIVERY:
            try:
                location = self.locations.get_latest_location(order.rider_id)
            except NotFound:
                location = None
            if location is not None:
                tracking["location"] = location
                tracking.update(
                    distance_to_destination(
                        location["latitude"],
                        location["longitude"],
                        order.delivery_lat,
                        order.delivery_lng,
                        settings.RIDER_AVERAGE_SPEED_KMH,
                    )
                )
        return tracking


dispatch_service = DispatchService()
