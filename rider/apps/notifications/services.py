import logging
from typing import Any, Dict, List, Optional

from django.db import DatabaseError
from django.utils import timezone

from apps.core.actors import Actor
from apps.core.exceptions import NotificationDeliveryWarning, PermissionDeniedError
from apps.core.lookups import get_object_or_not_found

from .constants import ADMIN_RECIPIENT_ID, RecipientTypes
from .gateways import NotificationGateway, NotificationTarget, get_notification_gateway
from .models import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Best-effort delivery of notifications through the configured gateway.

    ``notify`` never raises because of the transport: a failed send is
    logged, stored with status ``failed`` and returned as a
    ``NotificationDeliveryWarning`` for the caller to surface.
    """

    def __init__(self, gateway: Optional[NotificationGateway] = None):
        self._gateway = gateway

    @property
    def gateway(self) -> NotificationGateway:
        if self._gateway is None:
            self._gateway = get_notification_gateway()
        return self._gateway

    @gateway.setter
    def gateway(self, gateway: Optional[NotificationGateway]):
        self._gateway = gateway

    def notify(
        self,
        target: NotificationTarget,
        notification_type: str,
        title: str,
        body: str,
        order=None,
        data: Optional[Dict[str, Any]] = None,
    ) -> Optional[NotificationDeliveryWarning]:
        payload = {"type": notification_type, **(data or {})}
        if order is not None:
            payload.setdefault("order_id", str(order.id))
            payload.setdefault("order_number", order.order_number)

        warning = None
        try:
            self.gateway.send(target, title, body, payload)
        except Exception as e:
            warning = NotificationDeliveryWarning(target=str(target), title=title, reason=str(e), data=payload)
            logger.warning(str(warning))

        try:
            Notification.objects.create(
                recipient_type=target.recipient_type,
                recipient_id=target.recipient_id,
                order=order,
                notification_type=notification_type,
                title=title[:100],
                message=body,
                data=payload,
                status="failed" if warning else "sent",
                error=warning.reason if warning else "",
            )
        except DatabaseError as e:
            logger.error(f"Could not record notification to {target}: {e}")
        return warning

    def notify_all(self, notifications: List[Dict[str, Any]]) -> List[NotificationDeliveryWarning]:
        warnings = []
        for notification in notifications:
            warning = self.notify(**notification)
            if warning is not None:
                warnings.append(warning)
        return warnings

    @staticmethod
    def recipient_for(actor: Actor) -> NotificationTarget:
        if actor.is_admin:
            return NotificationTarget(RecipientTypes.ADMIN, ADMIN_RECIPIENT_ID)
        if actor.is_rider:
            return NotificationTarget(RecipientTypes.RIDER, actor.id)
        return NotificationTarget(RecipientTypes.CUSTOMER, actor.id)

    def list_for(self, actor: Actor, unread_only: bool = False) -> List[Notification]:
        target = self.recipient_for(actor)
        notifications = Notification.objects.filter(
            recipient_type=target.recipient_type, recipient_id=target.recipient_id
        )
        if unread_only:
            notifications = notifications.filter(is_read=False)
        return list(notifications.order_by("-created_at"))

    def mark_read(self, notification_id, actor: Actor) -> Notification:
        notification = get_object_or_not_found(Notification.objects.all(), "Notification", id=notification_id)
        target = self.recipient_for(actor)
        if (notification.recipient_type, notification.recipient_id) != (target.recipient_type, target.recipient_id):
            raise PermissionDeniedError("This notification belongs to someone else")
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = timezone.now()
            notification.save(update_fields=["is_read", "read_at", "updated_at"])
        return notification


notification_service = NotificationService()
