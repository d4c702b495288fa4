from django.urls import path

from .consumers import SubscriptionConsumer

websocket_urlpatterns = [
    path("ws/subscribe/", SubscriptionConsumer.as_asgi()),
]
