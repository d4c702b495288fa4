import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.core.exceptions import ConflictError, InvalidTransitionError, NotFound, ValidationError
from apps.events.models import OrderEvent
from apps.orders.constants import DeliveryStatus, is_valid_transition, reachable_from
from apps.orders.models import Order
from apps.orders.services import calculate_total, order_store

pytestmark = pytest.mark.django_db


class TestCalculateTotal:
    """Order totals are computed from line items, never taken from the client"""

    def test_sums_items_fee_and_surcharge(self):
        items = [
            {"unit_price": Decimal("9.50"), "quantity": 2},
            {"unit_price": Decimal("4.00"), "quantity": 1},
        ]

        totals = calculate_total(items, Decimal("2.50"), "pos")

        assert totals["items_total"] == Decimal("23.00")
        assert totals["payment_surcharge"] == Decimal("1.00")
        assert totals["total_amount"] == Decimal("26.50")

    def test_rounds_half_up_to_cents(self):
        totals = calculate_total([{"unit_price": Decimal("0.125"), "quantity": 1}], Decimal("0"), "cash")

        assert totals["total_amount"] == Decimal("0.13")

    def test_card_payment_has_no_surcharge(self):
        totals = calculate_total([{"unit_price": Decimal("5.00"), "quantity": 3}], Decimal("0"), "card")

        assert totals["payment_surcharge"] == Decimal("0.00")
        assert totals["total_amount"] == Decimal("15.00")


class TestStateMachine:
    @pytest.mark.parametrize(
        "current,target",
        [
            ("pending", "assigned"),
            ("pending", "cancelled"),
            ("assigned", "in_delivery"),
            ("assigned", "cancelled"),
            ("in_delivery", "delivered"),
        ],
    )
    def test_allowed_transitions(self, current, target):
        assert is_valid_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            ("delivered", "assigned"),
            ("pending", "in_delivery"),
            ("pending", "delivered"),
            ("in_delivery", "cancelled"),
            ("cancelled", "pending"),
        ],
    )
    def test_disallowed_transitions(self, current, target):
        assert not is_valid_transition(current, target)

    def test_terminal_states_reach_nothing(self):
        assert reachable_from("delivered") == frozenset()
        assert reachable_from("cancelled") == frozenset()
        assert reachable_from("pending") == {"assigned", "in_delivery", "delivered", "cancelled"}


class TestCreateOrder:
    def test_creates_pending_order_with_computed_total(self, make_draft, customer):
        order = order_store.create_order(make_draft(), actor=customer)

        assert order.total_amount == Decimal("20.50")
        assert order.delivery_status == DeliveryStatus.PENDING
        assert order.rider_id is None
        assert order.order_number.startswith("ORD-")
        assert [item.subtotal for item in order.items.order_by("product_id")] == [Decimal("8.00"), Decimal("10.00")]

    def test_pos_payment_adds_surcharge(self, make_draft):
        order = order_store.create_order(make_draft(payment_method="pos"))

        assert order.payment_surcharge == Decimal("1.00")
        assert order.total_amount == Decimal("21.50")

    def test_missing_fee_uses_default_for_delivery(self, make_draft):
        draft = make_draft()
        del draft["delivery_fee"]

        order = order_store.create_order(draft)

        assert order.delivery_fee == Decimal("2.50")
        assert order.total_amount == Decimal("20.50")

    def test_pickup_needs_no_address_or_fee(self, make_draft):
        draft = make_draft(delivery_type="pickup", customer_address="", delivery_lat=None, delivery_lng=None)
        del draft["delivery_fee"]

        order = order_store.create_order(draft)

        assert order.delivery_fee == Decimal("0.00")
        assert order.total_amount == Decimal("18.00")

    def test_customer_email_is_normalized(self, make_draft):
        order = order_store.create_order(make_draft(customer_email="  Anna@Example.COM "))

        assert order.customer_email == "anna@example.com"

    def test_records_creation_event(self, make_draft, customer):
        order = order_store.create_order(make_draft(), actor=customer)

        event = OrderEvent.objects.get(order=order)
        assert event.event_type == "order_created"
        assert event.to_status == "pending"
        assert event.actor == "customer:anna@example.com"

    def test_order_numbers_are_unique(self, make_draft):
        numbers = {order_store.create_order(make_draft()).order_number for _ in range(3)}

        assert len(numbers) == 3

    def test_taken_order_number_is_retried(self, make_draft, monkeypatch):
        taken = order_store.create_order(make_draft()).order_number
        numbers = iter([taken, "ORD-1-ABCDEF"])
        monkeypatch.setattr(order_store, "_next_order_number", lambda: next(numbers))

        order = order_store.create_order(make_draft())

        assert order.order_number == "ORD-1-ABCDEF"

    def test_exhausted_order_numbers_conflict(self, make_draft, monkeypatch):
        taken = order_store.create_order(make_draft()).order_number
        monkeypatch.setattr(order_store, "_next_order_number", lambda: taken)

        with pytest.raises(ConflictError):
            order_store.create_order(make_draft())

        assert Order.objects.count() == 1

    @pytest.mark.parametrize(
        "overrides",
        [
            {"customer_name": ""},
            {"customer_phone": "   "},
            {"items": []},
            {"items": [{"product_id": "p", "product_name": "P", "quantity": 0, "unit_price": Decimal("1.00")}]},
            {"items": [{"product_id": "p", "product_name": "P", "quantity": 1, "unit_price": Decimal("-1.00")}]},
            {"delivery_fee": Decimal("-0.50")},
            {"customer_address": ""},
            {"payment_method": "bitcoin"},
            {"delivery_lat": Decimal("91"), "delivery_lng": Decimal("7")},
            {"delivery_lat": Decimal("45"), "delivery_lng": None},
        ],
    )
    def test_invalid_draft_writes_nothing(self, make_draft, overrides):
        with pytest.raises(ValidationError):
            order_store.create_order(make_draft(**overrides))

        assert Order.objects.count() == 0
        assert OrderEvent.objects.count() == 0


class TestTransitionStatus:
    def test_assign_sets_rider(self, pending_order, rider, admin):
        order = order_store.transition_status(
            pending_order.id, "pending", "assigned", {"rider_id": rider.id}, actor=admin
        )

        assert order.delivery_status == "assigned"
        assert order.rider_id == rider.id

    def test_assign_requires_rider(self, pending_order):
        with pytest.raises(ValidationError):
            order_store.transition_status(pending_order.id, "pending", "assigned")

        pending_order.refresh_from_db()
        assert pending_order.delivery_status == "pending"

    def test_dispatch_and_delivery_timestamps(self, pending_order, rider):
        order_store.transition_status(pending_order.id, "pending", "assigned", {"rider_id": rider.id})

        dispatched = order_store.transition_status(pending_order.id, "assigned", "in_delivery")
        assert dispatched.dispatched_at is not None
        assert dispatched.delivered_at is None

        delivered = order_store.transition_status(pending_order.id, "in_delivery", "delivered")
        assert delivered.delivered_at is not None
        assert delivered.rider_id == rider.id

    def test_transition_outside_table_leaves_order_unchanged(self, pending_order):
        with pytest.raises(InvalidTransitionError):
            order_store.transition_status(pending_order.id, "pending", "delivered")

        pending_order.refresh_from_db()
        assert pending_order.delivery_status == "pending"

    def test_stale_expected_status_is_a_conflict(self, pending_order, rider, second_rider):
        order_store.transition_status(pending_order.id, "pending", "assigned", {"rider_id": rider.id})

        with pytest.raises(ConflictError):
            order_store.transition_status(pending_order.id, "pending", "assigned", {"rider_id": second_rider.id})

        pending_order.refresh_from_db()
        assert pending_order.rider_id == rider.id

    def test_terminal_order_reports_invalid_transition(self, pending_order, rider):
        order_store.transition_status(pending_order.id, "pending", "cancelled")

        with pytest.raises(InvalidTransitionError) as error:
            order_store.transition_status(pending_order.id, "pending", "assigned", {"rider_id": rider.id})

        assert error.value.current == "cancelled"

    def test_cancel_clears_rider(self, pending_order, rider):
        order_store.transition_status(pending_order.id, "pending", "assigned", {"rider_id": rider.id})

        order = order_store.transition_status(
            pending_order.id, "assigned", "cancelled", {"cancellation_reason": "Customer unreachable"}
        )

        assert order.rider_id is None
        assert order.cancelled_at is not None
        assert order.cancellation_reason == "Customer unreachable"

    def test_unexpected_side_fields_are_rejected(self, pending_order):
        with pytest.raises(ValidationError):
            order_store.transition_status(pending_order.id, "pending", "cancelled", {"delivered_at": "now"})

    @pytest.mark.parametrize("order_id", [uuid.uuid4(), "not-a-uuid"])
    def test_unknown_order(self, order_id):
        with pytest.raises(NotFound):
            order_store.transition_status(order_id, "pending", "cancelled")

    def test_each_transition_is_audited(self, pending_order, rider, admin):
        order_store.transition_status(pending_order.id, "pending", "assigned", {"rider_id": rider.id}, actor=admin)
        order_store.transition_status(pending_order.id, "assigned", "in_delivery", actor=admin)

        events = list(OrderEvent.objects.filter(order=pending_order).values_list("event_type", "from_status", "to_status"))
        assert events == [
            ("order_created", "", "pending"),
            ("rider_assigned", "pending", "assigned"),
            ("delivery_started", "assigned", "in_delivery"),
        ]

    def test_database_rejects_rider_on_pending_order(self, pending_order, rider):
        with pytest.raises(IntegrityError), transaction.atomic():
            Order.objects.filter(id=pending_order.id).update(rider=rider)


class TestListOrders:
    def test_lists_by_status_in_creation_order(self, make_draft, rider):
        first = order_store.create_order(make_draft())
        second = order_store.create_order(make_draft())
        done = order_store.create_order(make_draft())
        order_store.transition_status(done.id, "pending", "cancelled")

        active = order_store.list_active_orders()
        cancelled = order_store.list_orders_by_status({"cancelled"})

        assert [order.id for order in active] == [first.id, second.id]
        assert [order.id for order in cancelled] == [done.id]

    def test_filters_by_rider(self, make_draft, rider, second_rider):
        mine = order_store.create_order(make_draft())
        theirs = order_store.create_order(make_draft())
        order_store.transition_status(mine.id, "pending", "assigned", {"rider_id": rider.id})
        order_store.transition_status(theirs.id, "pending", "assigned", {"rider_id": second_rider.id})

        orders = order_store.list_active_orders(rider_id=rider.id)

        assert [order.id for order in orders] == [mine.id]

    def test_newest_first(self, make_draft):
        first = order_store.create_order(make_draft())
        second = order_store.create_order(make_draft())
        Order.objects.filter(id=first.id).update(created_at=timezone.now() - timedelta(minutes=5))

        orders = order_store.list_active_orders(order_by="-created_at")

        assert [order.id for order in orders] == [second.id, first.id]

    def test_rejects_unknown_ordering(self):
        with pytest.raises(ValidationError):
            order_store.list_active_orders(order_by="total_amount")

    def test_filters_by_customer_email(self, make_draft):
        mine = order_store.create_order(make_draft())
        order_store.create_order(make_draft(customer_email="bruno@example.com"))

        orders = order_store.list_active_orders(customer_email="Anna@Example.com")

        assert [order.id for order in orders] == [mine.id]
