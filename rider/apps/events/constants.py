class EventTypes:
    ORDER_CREATED = "order_created"
    RIDER_ASSIGNED = "rider_assigned"
    DELIVERY_STARTED = "delivery_started"
    ORDER_DELIVERED = "order_delivered"
    ORDER_CANCELLED = "order_cancelled"

    CHOICES = [
        (ORDER_CREATED, "Order Created"),
        (RIDER_ASSIGNED, "Rider Assigned"),
        (DELIVERY_STARTED, "Delivery Started"),
        (ORDER_DELIVERED, "Order Delivered"),
        (ORDER_CANCELLED, "Order Cancelled"),
    ]


# event recorded for each status an order can move into
EVENT_FOR_STATUS = {
    "assigned": EventTypes.RIDER_ASSIGNED,
    "in_delivery": EventTypes.DELIVERY_STARTED,
    "delivered": EventTypes.ORDER_DELIVERED,
    "cancelled": EventTypes.ORDER_CANCELLED,
}


class ChangeTypes:
    INSERT = "insert"
    UPDATE = "update"


class Entities:
    ORDER = "order"
    RIDER_LOCATION = "rider_location"


# Channels groups a change event is fanned out to
ACTIVE_ORDERS_GROUP = "dispatch_orders"
FLEET_GROUP = "dispatch_fleet"


def order_group(order_id) -> str:
    return f"order_{order_id}"


def rider_orders_group(rider_id) -> str:
    return f"rider_orders_{rider_id}"


def rider_location_group(rider_id) -> str:
    return f"rider_location_{rider_id}"
