from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from .serializers import NotificationSerializer
from .services import notification_service


class NotificationViewSet(viewsets.ViewSet):
    """Notifications addressed to the calling actor"""

    lookup_value_regex = "[0-9a-f-]{36}"

    def list(self, request):
        unread_only = request.query_params.get("unread") in ("1", "true", "True")
        notifications = notification_service.list_for(request.user, unread_only=unread_only)
        serializer = NotificationSerializer(notifications, many=True)
        return Response(serializer.data)

    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        notification = notification_service.mark_read(pk, request.user)
        return Response(NotificationSerializer(notification).data)
