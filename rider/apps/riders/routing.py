from django.urls import path

from .consumers import RiderConsumer

websocket_urlpatterns = [
    path("ws/riders/<uuid:rider_id>/", RiderConsumer.as_asgi()),
]
