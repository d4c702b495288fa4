import logging
from datetime import datetime
from datetime import timezone as dt_timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import OuterRef, Subquery
from django.utils import timezone

from apps.core.actors import Actor
from apps.core.exceptions import NotFound, PermissionDeniedError, ValidationError
from apps.core.lookups import get_object_or_not_found
from apps.events.services import realtime_fanout
from infrastructure.cache import get_cache_key_value, get_cache_many, set_cache_key

from .models import Rider, RiderLocation

logger = logging.getLogger(__name__)

COORDINATE_PLACES = Decimal("0.0000001")
MEASURE_PLACES = Decimal("0.01")


def location_cache_key(rider_id) -> str:
    return f"rider:location:{rider_id}"


def _optional_float(value):
    return float(value) if value is not None else None


def serialize_location(location: RiderLocation) -> Dict[str, Any]:
    return {
        "rider_id": str(location.rider_id),
        "latitude": float(location.latitude),
        "longitude": float(location.longitude),
        "heading": _optional_float(location.heading),
        "speed": _optional_float(location.speed),
        "accuracy": _optional_float(location.accuracy),
        "timestamp": location.timestamp.isoformat(),
    }


def with_staleness(entry: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Copy of a latest-location entry annotated with how old it is"""
    now = now or timezone.now()
    age = (now - datetime.fromisoformat(entry["timestamp"])).total_seconds()
    return {
        **entry,
        "age_seconds": max(int(age), 0),
        "is_stale": age > settings.LOCATION_STALE_AFTER,
    }


def _decimal(value, name: str) -> Decimal:
    try:
        number = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{name} must be a number", field=name)
    if not number.is_finite():
        raise ValidationError(f"{name} must be a finite number", field=name)
    return number


def _coordinate(value, limit: int, name: str) -> Decimal:
    number = _decimal(value, name)
    if not -limit <= number <= limit:
        raise ValidationError(f"{name} must be between -{limit} and {limit}", field=name)
    return number.quantize(COORDINATE_PLACES)


def _measure(value, name: str, upper=None) -> Optional[Decimal]:
    if value is None:
        return None
    number = _decimal(value, name)
    if number < 0 or (upper is not None and number > upper):
        bound = f"between 0 and {upper}" if upper is not None else "zero or positive"
        raise ValidationError(f"{name} must be {bound}", field=name)
    return number.quantize(MEASURE_PLACES)


class RiderService:
    """Rider directory: who can be assigned deliveries"""

    @staticmethod
    def get_rider(rider_id) -> Rider:
        return get_object_or_not_found(Rider.objects.all(), "Rider", id=rider_id)

    @staticmethod
    def list_riders(active_only: bool = False) -> List[Rider]:
        riders = Rider.objects.all().order_by("name")
        if active_only:
            riders = riders.filter(is_active=True)
        return list(riders)

    @staticmethod
    def create_rider(rider_data: Dict[str, Any], actor: Actor) -> Rider:
        if not actor.is_admin:
            raise PermissionDeniedError("Only admins can register riders")
        if Rider.objects.filter(phone=rider_data.get("phone")).exists():
            raise ValidationError("A rider with this phone already exists", field="phone")
        rider = Rider.objects.create(**rider_data)
        logger.info(f"Rider {rider.id} registered by {actor}")
        return rider

    @staticmethod
    def update_rider(rider_id, changes: Dict[str, Any], actor: Actor) -> Rider:
        if not actor.is_admin:
            raise PermissionDeniedError("Only admins can change riders")
        rider = RiderService.get_rider(rider_id)
        for name, value in changes.items():
            setattr(rider, name, value)
        if changes.get("is_active") is False:
            rider.current_status = "offline"
            logger.info(f"Rider {rider.id} deactivated by {actor}")
        rider.save()
        return rider

    @staticmethod
    def set_current_status(rider_id, status: str):
        Rider.objects.filter(id=rider_id).update(current_status=status, updated_at=timezone.now())


class LocationStream:
    """
    Append-only log of rider GPS samples plus a derived "latest per rider"
    index kept in the cache.

    Writers only ever insert; the cached entry for a rider is advanced when a
    sample is at least as recent as the one it holds, so late or retried
    reports never move a rider backwards.
    """

    def report_location(
        self,
        rider_id,
        latitude,
        longitude,
        heading=None,
        speed=None,
        accuracy=None,
        timestamp: Optional[datetime] = None,
        actor: Optional[Actor] = None,
    ) -> RiderLocation:
        lat = _coordinate(latitude, 90, "latitude")
        lng = _coordinate(longitude, 180, "longitude")
        heading = _measure(heading, "heading", upper=360)
        speed = _measure(speed, "speed")
        accuracy = _measure(accuracy, "accuracy")

        rider = RiderService.get_rider(rider_id)
        if actor is not None and not (actor.is_rider and actor.id == str(rider.id)):
            raise PermissionDeniedError("Riders can only report their own location")

        if timestamp is None:
            timestamp = timezone.now()
        elif timezone.is_naive(timestamp):
            timestamp = timezone.make_aware(timestamp, dt_timezone.utc)

        with transaction.atomic():
            # a retried report carries the same timestamp: last write wins
            location, created = RiderLocation.objects.update_or_create(
                rider=rider,
                timestamp=timestamp,
                defaults={
                    "latitude": lat,
                    "longitude": lng,
                    "heading": heading,
                    "speed": speed,
                    "accuracy": accuracy,
                },
            )
            transaction.on_commit(lambda: self._publish(location, created))

        self._advance_latest(serialize_location(location))
        if not created:
            logger.debug(f"Duplicate location report for rider {rider.id} at {timestamp.isoformat()}")
        return location

    def _publish(self, location: RiderLocation, created: bool):
        entry = serialize_location(location)
        realtime_fanout.publish_location(entry, change_type="insert" if created else "update")

    def _advance_latest(self, entry: Dict[str, Any]):
        key = location_cache_key(entry["rider_id"])
        current = get_cache_key_value(key)
        if current and datetime.fromisoformat(current["timestamp"]) > datetime.fromisoformat(
            entry["timestamp"]
        ):
            return
        set_cache_key(key, entry, settings.RIDER_LOCATION_TTL)

    def _latest_from_db(self, rider_id) -> Optional[Dict[str, Any]]:
        location = RiderLocation.objects.filter(rider_id=rider_id).order_by("-timestamp").first()
        if location is None:
            return None
        entry = serialize_location(location)
        self._advance_latest(entry)
        return entry

    def get_latest_location(self, rider_id) -> Dict[str, Any]:
        rider = RiderService.get_rider(rider_id)
        entry = get_cache_key_value(location_cache_key(rider.id))
        if entry is None:
            entry = self._latest_from_db(rider.id)
        if entry is None:
            raise NotFound("Rider has not reported a location yet", rider_id=rider.id)
        return with_staleness(entry)

    def get_latest_locations_for_active_riders(self) -> Dict[str, Dict[str, Any]]:
        rider_ids = [str(rider_id) for rider_id in Rider.objects.filter(is_active=True).values_list("id", flat=True)]
        cached = get_cache_many([location_cache_key(rider_id) for rider_id in rider_ids])

        latest = {}
        missing = []
        for rider_id in rider_ids:
            entry = cached.get(location_cache_key(rider_id))
            if entry is None:
                missing.append(rider_id)
            else:
                latest[rider_id] = entry

        if missing:
            for location in RiderLocation.objects.filter(id__in=Subquery(self._newest_ids(missing))):
                entry = serialize_location(location)
                self._advance_latest(entry)
                latest[entry["rider_id"]] = entry

        now = timezone.now()
        return {rider_id: with_staleness(entry, now) for rider_id, entry in latest.items()}

    @staticmethod
    def _newest_ids(rider_ids=None):
        newest = RiderLocation.objects.filter(rider=OuterRef("pk")).order_by("-timestamp").values("id")[:1]
        riders = Rider.objects.all()
        if rider_ids is not None:
            riders = riders.filter(id__in=rider_ids)
        return riders.annotate(newest_id=Subquery(newest)).exclude(newest_id=None).values("newest_id")

    def prune_history(self, older_than: datetime) -> int:
        """Delete samples older than ``older_than``, keeping each rider's newest one"""
        keep = list(self._newest_ids().values_list("newest_id", flat=True))
        deleted, _ = RiderLocation.objects.filter(timestamp__lt=older_than).exclude(id__in=keep).delete()
        logger.info(f"Pruned {deleted} rider location(s) older than {older_than.isoformat()}")
        return deleted


rider_service = RiderService()
location_stream = LocationStream()
