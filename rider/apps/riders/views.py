from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.core.exceptions import PermissionDeniedError
from apps.dispatch.services import dispatch_service
from apps.orders.serializers import OrderSerializer

from .serializers import (
    LatestLocationSerializer,
    LocationReportSerializer,
    RiderSerializer,
    RiderUpdateSerializer,
)
from .services import location_stream, rider_service

UUID_PATTERN = "[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"


def _ensure_admin_or_self(actor, rider_id):
    if not (actor.is_admin or (actor.is_rider and actor.id == str(rider_id))):
        raise PermissionDeniedError("Only admins and the rider itself can see this")


class RiderViewSet(viewsets.ViewSet):
    lookup_value_regex = UUID_PATTERN

    def list(self, request):
        if not request.user.is_admin:
            raise PermissionDeniedError("Only admins can list riders")
        active_only = request.query_params.get("active") in ("1", "true", "True")
        serializer = RiderSerializer(rider_service.list_riders(active_only=active_only), many=True)
        return Response(serializer.data)

    def retrieve(self, request, pk=None):
        _ensure_admin_or_self(request.user, pk)
        return Response(RiderSerializer(rider_service.get_rider(pk)).data)

    def create(self, request):
        serializer = RiderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        rider = rider_service.create_rider(serializer.validated_data, request.user)
        return Response(RiderSerializer(rider).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        serializer = RiderUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        rider = rider_service.update_rider(pk, serializer.validated_data, request.user)
        return Response(RiderSerializer(rider).data)

    @action(detail=True, methods=["post"], url_path="locations")
    def report_location(self, request, pk=None):
        serializer = LocationReportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        location_stream.report_location(pk, actor=request.user, **serializer.validated_data)
        latest = location_stream.get_latest_location(pk)
        return Response(LatestLocationSerializer(latest).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get"])
    def location(self, request, pk=None):
        _ensure_admin_or_self(request.user, pk)
        return Response(LatestLocationSerializer(location_stream.get_latest_location(pk)).data)

    @action(detail=True, methods=["get"])
    def orders(self, request, pk=None):
        _ensure_admin_or_self(request.user, pk)
        rider = rider_service.get_rider(pk)
        orders = dispatch_service.list_orders(request.user, rider_id=rider.id)
        return Response(OrderSerializer(orders, many=True).data)

    @action(detail=False, methods=["get"], url_path="locations")
    def fleet(self, request):
        if not request.user.is_admin:
            raise PermissionDeniedError("Only admins can see the fleet map")
        latest = location_stream.get_latest_locations_for_active_riders()
        return Response({rider_id: LatestLocationSerializer(entry).data for rider_id, entry in latest.items()})
