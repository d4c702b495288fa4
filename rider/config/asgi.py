"""
ASGI config for the dispatch service.

HTTP goes to Django, WebSocket connections to the change-feed consumers of
the orders, riders, dispatch and events apps.
"""

import os

from channels.routing import ProtocolTypeRouter, URLRouter
from channels.security.websocket import AllowedHostsOriginValidator
from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

django_asgi_app = get_asgi_application()

from apps.core.actors import GatewayHeaderMiddleware  # noqa: E402
from apps.dispatch.routing import websocket_urlpatterns as dispatch_websocket_urlpatterns  # noqa: E402
from apps.events.routing import websocket_urlpatterns as events_websocket_urlpatterns  # noqa: E402
from apps.orders.routing import websocket_urlpatterns as order_websocket_urlpatterns  # noqa: E402
from apps.riders.routing import websocket_urlpatterns as rider_websocket_urlpatterns  # noqa: E402

ws_urlpatterns = [
    *order_websocket_urlpatterns,
    *rider_websocket_urlpatterns,
    *dispatch_websocket_urlpatterns,
    *events_websocket_urlpatterns,
]

websocket_application = GatewayHeaderMiddleware(URLRouter(ws_urlpatterns))

application = ProtocolTypeRouter(
    {
        "http": django_asgi_app,
        "websocket": AllowedHostsOriginValidator(websocket_application),
    }
)
