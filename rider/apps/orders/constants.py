class DeliveryStatus:
    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_DELIVERY = "in_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    CHOICES = [
        (PENDING, "Pending"),
        (ASSIGNED, "Assigned"),
        (IN_DELIVERY, "In Delivery"),
        (DELIVERED, "Delivered"),
        (CANCELLED, "Cancelled"),
    ]

    ACTIVE = frozenset({PENDING, ASSIGNED, IN_DELIVERY})
    TERMINAL = frozenset({DELIVERED, CANCELLED})
    # rider_id is null exactly in these states
    UNASSIGNED = frozenset({PENDING, CANCELLED})


# pending --assign--> assigned --dispatch--> in_delivery --deliver--> delivered
# pending/assigned --cancel--> cancelled
TRANSITIONS = {
    DeliveryStatus.PENDING: frozenset({DeliveryStatus.ASSIGNED, DeliveryStatus.CANCELLED}),
    DeliveryStatus.ASSIGNED: frozenset({DeliveryStatus.IN_DELIVERY, DeliveryStatus.CANCELLED}),
    DeliveryStatus.IN_DELIVERY: frozenset({DeliveryStatus.DELIVERED}),
    DeliveryStatus.DELIVERED: frozenset(),
    DeliveryStatus.CANCELLED: frozenset(),
}


def is_valid_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, ())


def reachable_from(status: str) -> frozenset:
    """Every state an order in ``status`` can eventually end up in"""
    seen = set()
    pending = list(TRANSITIONS.get(status, ()))
    while pending:
        state = pending.pop()
        if state not in seen:
            seen.add(state)
            pending.extend(TRANSITIONS.get(state, ()))
    return frozenset(seen)


class DeliveryType:
    DELIVERY = "delivery"
    PICKUP = "pickup"

    CHOICES = [(DELIVERY, "Delivery"), (PICKUP, "Pickup")]


class PaymentMethod:
    CASH = "cash"
    CARD = "card"
    POS = "pos"

    CHOICES = [(CASH, "Cash"), (CARD, "Card"), (POS, "POS terminal")]
