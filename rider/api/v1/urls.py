from django.urls import include, path

urlpatterns = [
    path("riders/", include("apps.riders.urls")),
    path("orders/", include("apps.orders.urls")),
    path("notifications/", include("apps.notifications.urls")),
]
