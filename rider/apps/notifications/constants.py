KAFKA_TOPICS = {
    "NOTIFICATIONS": "dispatch.notifications",
}


class RecipientTypes:
    CUSTOMER = "customer"
    RIDER = "rider"
    ADMIN = "admin"

    CHOICES = [
        (CUSTOMER, "Customer"),
        (RIDER, "Rider"),
        (ADMIN, "Admin"),
    ]


class NotificationTypes:
    NEW_ORDER = "new_order"
    ORDER_ASSIGNED = "order_assigned"
    RIDER_ASSIGNED = "rider_assigned"
    RIDER_EN_ROUTE = "rider_en_route"
    ORDER_DELIVERED = "order_delivered"
    ORDER_CANCELLED = "order_cancelled"
    ASSIGNMENT_CANCELLED = "assignment_cancelled"


# all admins listen on one shared recipient id
ADMIN_RECIPIENT_ID = "dispatch"
