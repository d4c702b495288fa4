from rest_framework import serializers

from .models import Rider


class RiderSerializer(serializers.ModelSerializer):
    class Meta:
        model = Rider
        fields = ["id", "name", "phone", "email", "is_active", "current_status", "created_at", "updated_at"]
        read_only_fields = ["current_status"]


class RiderUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100, required=False)
    email = serializers.EmailField(max_length=100, required=False, allow_null=True)
    is_active = serializers.BooleanField(required=False)


class LocationReportSerializer(serializers.Serializer):
    """Range checks are left to the location stream so every caller gets them"""

    latitude = serializers.FloatField()
    longitude = serializers.FloatField()
    heading = serializers.FloatField(required=False, allow_null=True)
    speed = serializers.FloatField(required=False, allow_null=True)
    accuracy = serializers.FloatField(required=False, allow_null=True)
    timestamp = serializers.DateTimeField(required=False, allow_null=True)


class LatestLocationSerializer(serializers.Serializer):
    rider_id = serializers.UUIDField()
    latitude = serializers.FloatField()
    longitude = serializers.FloatField()
    heading = serializers.FloatField(allow_null=True)
    speed = serializers.FloatField(allow_null=True)
    accuracy = serializers.FloatField(allow_null=True)
    timestamp = serializers.DateTimeField()
    age_seconds = serializers.IntegerField()
    is_stale = serializers.BooleanField()
