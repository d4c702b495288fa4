"""
Great-circle distance for the tracking views.

Only used to display how far a rider is from the customer; delivery zones
and fees are decided elsewhere.
"""
import math
from typing import Dict, Optional

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def eta_minutes(distance_km: float, average_speed_kmh: float) -> Optional[int]:
    if average_speed_kmh <= 0:
        return None
    return math.ceil(distance_km / average_speed_kmh * 60)


def distance_to_destination(rider_lat, rider_lng, dest_lat, dest_lng, average_speed_kmh) -> Dict:
    """``distance_km``/``eta_minutes`` for display, both None without a destination"""
    if None in (rider_lat, rider_lng, dest_lat, dest_lng):
        return {"distance_km": None, "eta_minutes": None}
    distance = haversine_km(float(rider_lat), float(rider_lng), float(dest_lat), float(dest_lng))
    return {
        "distance_km": round(distance, 1),
        "eta_minutes": eta_minutes(distance, average_speed_kmh),
    }
