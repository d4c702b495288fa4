"""
Order store: durable order records and the delivery-status state machine.

Status changes never take locks. ``transition_status`` issues a single
conditional UPDATE that only matches while the order is still in the status
the caller last saw, so of two racing writers exactly one wins and the other
gets a ``ConflictError``.
"""
import logging
import secrets
import time
import uuid
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.core.actors import Actor
from apps.core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFound,
    ValidationError,
)
from apps.core.lookups import get_object_or_not_found
from apps.events.constants import EVENT_FOR_STATUS, ChangeTypes, EventTypes
from apps.events.services import event_service, realtime_fanout

from .constants import (
    DeliveryStatus,
    DeliveryType,
    PaymentMethod,
    is_valid_transition,
    reachable_from,
)
from .models import Order, OrderItem

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
REQUIRED_CUSTOMER_FIELDS = ("customer_name", "customer_email", "customer_phone")
ORDER_NUMBER_ATTEMPTS = 5
ORDERINGS = ("created_at", "-created_at")


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def _amount(value, name: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{name} must be a number", field=name)
    if not amount.is_finite():
        raise ValidationError(f"{name} must be a finite number", field=name)
    if amount < 0:
        raise ValidationError(f"{name} cannot be negative", field=name)
    return amount


def calculate_total(items: Iterable[Dict[str, Any]], delivery_fee: Decimal, payment_method: str) -> Dict[str, Decimal]:
    """Sum of line items plus delivery fee plus the POS surcharge, rounded to cents"""
    items_total = sum((item["unit_price"] * item["quantity"] for item in items), Decimal("0"))
    surcharge = Decimal(str(settings.POS_SURCHARGE)) if payment_method == PaymentMethod.POS else Decimal("0")
    return {
        "items_total": round_money(items_total),
        "payment_surcharge": round_money(surcharge),
        "total_amount": round_money(items_total + delivery_fee + surcharge),
    }


def _clean_items(raw_items) -> List[Dict[str, Any]]:
    if not raw_items:
        raise ValidationError("An order needs at least one item", field="items")

    items = []
    for position, raw in enumerate(raw_items):
        quantity = raw.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError(f"Item {position + 1}: quantity must be a positive integer", field="items")
        if not raw.get("product_id") or not raw.get("product_name"):
            raise ValidationError(f"Item {position + 1}: product id and name are required", field="items")
        items.append(
            {
                "product_id": str(raw["product_id"]),
                "product_name": raw["product_name"],
                "quantity": quantity,
                "unit_price": _amount(raw.get("unit_price"), f"items[{position}].unit_price"),
                "special_requests": raw.get("special_requests") or "",
            }
        )
    return items


def _clean_draft(draft: Dict[str, Any]) -> Dict[str, Any]:
    for name in REQUIRED_CUSTOMER_FIELDS:
        if not str(draft.get(name) or "").strip():
            raise ValidationError(f"{name.replace('_', ' ').capitalize()} is required", field=name)

    delivery_type = draft.get("delivery_type") or DeliveryType.DELIVERY
    if delivery_type not in (DeliveryType.DELIVERY, DeliveryType.PICKUP):
        raise ValidationError(f"Unknown delivery type '{delivery_type}'", field="delivery_type")
    payment_method = draft.get("payment_method") or PaymentMethod.CASH
    if payment_method not in dict(PaymentMethod.CHOICES):
        raise ValidationError(f"Unknown payment method '{payment_method}'", field="payment_method")

    address = str(draft.get("customer_address") or "").strip()
    if delivery_type == DeliveryType.DELIVERY and not address:
        raise ValidationError("Address is required for delivery orders", field="customer_address")

    delivery_lat, delivery_lng = draft.get("delivery_lat"), draft.get("delivery_lng")
    if (delivery_lat is None) != (delivery_lng is None):
        raise ValidationError("Destination needs both latitude and longitude", field="delivery_lat")
    if delivery_lat is not None:
        try:
            delivery_lat, delivery_lng = Decimal(str(delivery_lat)), Decimal(str(delivery_lng))
        except InvalidOperation:
            raise ValidationError("Destination coordinates must be numbers", field="delivery_lat")
        if not (delivery_lat.is_finite() and delivery_lng.is_finite()):
            raise ValidationError("Destination coordinates must be finite", field="delivery_lat")
        if not -90 <= delivery_lat <= 90 or not -180 <= delivery_lng <= 180:
            raise ValidationError("Destination coordinates out of range", field="delivery_lat")

    fee = draft.get("delivery_fee")
    if fee is None:
        fee = settings.DEFAULT_DELIVERY_FEE if delivery_type == DeliveryType.DELIVERY else 0
    delivery_fee = _amount(fee, "delivery_fee")

    items = _clean_items(draft.get("items"))
    totals = calculate_total(items, delivery_fee, payment_method)

    return {
        "customer_name": draft["customer_name"].strip(),
        "customer_email": draft["customer_email"].strip().lower(),
        "customer_phone": draft["customer_phone"].strip(),
        "customer_address": address,
        "delivery_lat": delivery_lat,
        "delivery_lng": delivery_lng,
        "delivery_type": delivery_type,
        "payment_method": payment_method,
        "special_instructions": draft.get("special_instructions") or "",
        "delivery_fee": round_money(delivery_fee),
        "payment_surcharge": totals["payment_surcharge"],
        "total_amount": totals["total_amount"],
        "items": items,
    }


def _order_pk(order_id) -> uuid.UUID:
    try:
        return order_id if isinstance(order_id, uuid.UUID) else uuid.UUID(str(order_id))
    except ValueError:
        raise NotFound("Order not found", id=order_id)


class OrderStore:
    @staticmethod
    def _next_order_number() -> str:
        return f"ORD-{int(time.time() * 1000)}-{secrets.token_hex(3).upper()}"

    def create_order(self, draft: Dict[str, Any], actor: Optional[Actor] = None) -> Order:
        """
        Validate a checkout draft and store it as a ``pending`` order.

        Nothing is written unless the whole draft is valid; the order, its
        items and the creation event share one transaction.
        """
        fields = _clean_draft(draft)
        items = fields.pop("items")

        for _ in range(ORDER_NUMBER_ATTEMPTS):
            order_number = self._next_order_number()
            try:
                with transaction.atomic():
                    order = Order.objects.create(
                        order_number=order_number,
                        delivery_status=DeliveryStatus.PENDING,
                        **fields,
                    )
                    OrderItem.objects.bulk_create(
                        [
                            OrderItem(
                                order=order,
                                subtotal=round_money(item["unit_price"] * item["quantity"]),
                                **item,
                            )
                            for item in items
                        ]
                    )
                    event_service.create_event(
                        order,
                        EventTypes.ORDER_CREATED,
                        to_status=DeliveryStatus.PENDING,
                        actor=actor,
                        event_data={"total_amount": order.total_amount, "items": len(items)},
                    )
                break
            except IntegrityError:
                if not Order.objects.filter(order_number=order_number).exists():
                    raise
                logger.debug(f"Order number {order_number} taken, retrying")
        else:
            raise ConflictError("Could not allocate an order number, retry the checkout")

        order = self.get_order(order.id)
        transaction.on_commit(lambda: realtime_fanout.publish_order(order, ChangeTypes.INSERT))
        logger.info(f"Order {order.order_number} created ({order.total_amount}) by {actor or 'anonymous'}")
        return order

    def get_order(self, order_id) -> Order:
        return get_object_or_not_found(
            Order.objects.select_related("rider").prefetch_related("items"),
            "Order",
            id=_order_pk(order_id),
        )

    def list_orders_by_status(
        self,
        statuses: Iterable[str],
        order_by: str = "created_at",
        rider_id=None,
        delivery_type: Optional[str] = None,
        customer_email: Optional[str] = None,
    ) -> List[Order]:
        if order_by not in ORDERINGS:
            raise ValidationError(f"Cannot order by '{order_by}'", field="order_by")

        orders = Order.objects.filter(delivery_status__in=list(statuses))
        if rider_id is not None:
            orders = orders.filter(rider_id=rider_id)
        if delivery_type is not None:
            orders = orders.filter(delivery_type=delivery_type)
        if customer_email is not None:
            orders = orders.filter(customer_email=customer_email.strip().lower())
        # evaluated once so callers get a single consistent snapshot
        return list(
            orders.select_related("rider").prefetch_related("items").order_by(order_by, "order_number")
        )

    def list_active_orders(self, **filters) -> List[Order]:
        return self.list_orders_by_status(DeliveryStatus.ACTIVE, **filters)

    def transition_status(
        self,
        order_id,
        from_expected: str,
        to: str,
        side_fields: Optional[Dict[str, Any]] = None,
        actor: Optional[Actor] = None,
    ) -> Order:
        """
        Move an order from ``from_expected`` to ``to`` if nobody moved it first.

        Raises InvalidTransitionError for transitions outside the state
        machine (also when the order already reached a state that makes the
        request meaningless), ConflictError when another writer got there
        first and NotFound for unknown orders.
        """
        if not is_valid_transition(from_expected, to):
            raise InvalidTransitionError(from_expected, to)

        order_pk = _order_pk(order_id)
        changes = self._changes_for(to, dict(side_fields or {}))

        with transaction.atomic():
            snapshot = Order.objects.filter(id=order_pk).values("delivery_status", "rider_id").first()
            if snapshot is None:
                raise NotFound("Order not found", id=order_pk)

            updated = 0
            if snapshot["delivery_status"] == from_expected:
                updated = Order.objects.filter(
                    id=order_pk,
                    delivery_status=from_expected,
                    rider_id=snapshot["rider_id"],
                ).update(**changes)
            if not updated:
                self._raise_for_stale(order_pk, from_expected, to)

            order = self.get_order(order_pk)
            event_service.create_event(
                order,
                EVENT_FOR_STATUS[to],
                to_status=to,
                from_status=from_expected,
                actor=actor,
                rider_id=order.rider_id or snapshot["rider_id"],
                event_data={
                    key: value
                    for key, value in changes.items()
                    if key in ("rider_id", "cancellation_reason")
                },
            )
            previous_rider_id = snapshot["rider_id"]
            transaction.on_commit(
                lambda: realtime_fanout.publish_order(order, ChangeTypes.UPDATE, previous_rider_id=previous_rider_id)
            )

        logger.info(f"Order {order.order_number}: {from_expected} -> {to} by {actor or 'system'}")
        return order

    @staticmethod
    def _changes_for(to: str, side_fields: Dict[str, Any]) -> Dict[str, Any]:
        now = timezone.now()
        changes = {"delivery_status": to, "updated_at": now}

        if to == DeliveryStatus.ASSIGNED:
            rider_id = side_fields.pop("rider_id", None)
            if not rider_id:
                raise ValidationError("A rider is required to assign an order", field="rider_id")
            changes["rider_id"] = rider_id
        elif to == DeliveryStatus.IN_DELIVERY:
            changes["dispatched_at"] = side_fields.pop("dispatched_at", None) or now
        elif to == DeliveryStatus.DELIVERED:
            changes["delivered_at"] = side_fields.pop("delivered_at", None) or now
        elif to == DeliveryStatus.CANCELLED:
            changes["rider_id"] = None
            changes["cancelled_at"] = now
            changes["cancellation_reason"] = side_fields.pop("cancellation_reason", None) or ""

        if side_fields:
            raise ValidationError(
                f"Unexpected fields for '{to}': {', '.join(sorted(side_fields))}",
                fields=sorted(side_fields),
            )
        return changes

    @staticmethod
    def _raise_for_stale(order_pk, from_expected: str, to: str):
        current = Order.objects.filter(id=order_pk).values_list("delivery_status", flat=True).first()
        if current is None:
            raise NotFound("Order not found", id=order_pk)
        if current in DeliveryStatus.TERMINAL or current not in reachable_from(from_expected):
            raise InvalidTransitionError(current, to)
        raise ConflictError(
            f"Order is already {current.replace('_', ' ')}, refresh and retry",
            current=current,
            expected=from_expected,
        )


order_store = OrderStore()
