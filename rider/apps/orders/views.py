from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.dispatch.services import dispatch_service
from apps.events.serializers import OrderEventSerializer
from apps.events.services import event_service
from apps.riders.serializers import LatestLocationSerializer, RiderSerializer

from .constants import DeliveryStatus
from .serializers import (
    AssignRiderSerializer,
    CancelOrderSerializer,
    OrderDraftSerializer,
    OrderListQuerySerializer,
    OrderSerializer,
)
from .services import order_store

UUID_PATTERN = "[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"


class OrderViewSet(viewsets.ViewSet):
    lookup_value_regex = UUID_PATTERN

    def list(self, request):
        query = OrderListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        statuses = params.get("status")
        if not statuses and not params["active"]:
            statuses = [choice for choice, _ in DeliveryStatus.CHOICES]
        filters = {name: params[name] for name in ("rider_id", "delivery_type") if name in params}

        orders = dispatch_service.list_orders(request.user, statuses, **filters)
        return Response(OrderSerializer(orders, many=True).data)

    def retrieve(self, request, pk=None):
        order = order_store.get_order(pk)
        dispatch_service.ensure_can_view(order, request.user)
        return Response(OrderSerializer(order).data)

    def create(self, request):
        serializer = OrderDraftSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = dispatch_service.create_order(serializer.validated_data, request.user)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def assign(self, request, pk=None):
        serializer = AssignRiderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = dispatch_service.assign_rider(pk, serializer.validated_data["rider_id"], request.user)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def start(self, request, pk=None):
        order = dispatch_service.start_delivery(pk, request.user)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        order = dispatch_service.complete_delivery(pk, request.user)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = dispatch_service.cancel_order(pk, serializer.validated_data["reason"], request.user)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["get"])
    def tracking(self, request, pk=None):
        tracking = dispatch_service.get_tracking(pk, request.user)
        return Response(
            {
                "order": OrderSerializer(tracking["order"]).data,
                "rider": RiderSerializer(tracking["rider"]).data if tracking["rider"] else None,
                "location": LatestLocationSerializer(tracking["location"]).data if tracking["location"] else None,
                "distance_km": tracking["distance_km"],
                "eta_minutes": tracking["eta_minutes"],
            }
        )

    @action(detail=True, methods=["get"])
    def events(self, request, pk=None):
        order = order_store.get_order(pk)
        dispatch_service.ensure_can_view(order, request.user)
        return Response(OrderEventSerializer(event_service.get_order_events(order.id), many=True).data)
