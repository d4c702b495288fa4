"""
Transports for push notifications.

The dispatch core only decides *when* to notify; a gateway hands the message
to whatever delivers it to devices. Gateways raise on failure and the
notification service turns that into a warning.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict

from django.conf import settings
from django.utils.module_loading import import_string

from infrastructure.kafka_client import get_kafka_client

from .constants import KAFKA_TOPICS

logger = logging.getLogger(__name__)


class NotificationDeliveryError(Exception):
    pass


@dataclass(frozen=True)
class NotificationTarget:
    recipient_type: str
    recipient_id: str

    def __str__(self):
        return f"{self.recipient_type}:{self.recipient_id}"


class NotificationGateway:
    def send(self, target: NotificationTarget, title: str, body: str, data: Dict[str, Any]) -> None:
        raise NotImplementedError


class LoggingNotificationGateway(NotificationGateway):
    """Development gateway: notifications only reach the log"""

    def send(self, target, title, body, data):
        logger.info(f"Notification to {target}: {title} - {body}")


class KafkaNotificationGateway(NotificationGateway):
    """Publishes notifications for the push service consuming the notifications topic"""

    def __init__(self, client=None):
        self.client = client

    def send(self, target, title, body, data):
        client = self.client or get_kafka_client()
        published = client.publish(
            topic=KAFKA_TOPICS["NOTIFICATIONS"],
            event_data={
                "recipient_type": target.recipient_type,
                "recipient_id": target.recipient_id,
                "title": title,
                "body": body,
                "data": data,
            },
            key=str(target),
            timeout=settings.NOTIFICATION_PUBLISH_TIMEOUT,
        )
        if not published:
            raise NotificationDeliveryError("Notification was not acknowledged by Kafka")


def get_notification_gateway() -> NotificationGateway:
    return import_string(settings.NOTIFICATION_GATEWAY)()
