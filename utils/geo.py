# =============================================================================
# 🌍 utils/geo.py
# Großkreis-Distanz (Haversine) und Geo-Lock-Prüfung
# =============================================================================

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

# Mittlerer Erdradius in Metern
EARTH_RADIUS_METERS = 6_371_000.0


def distance_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Haversine-Distanz in Metern zwischen zwei Koordinaten.
    Werte müssen vorher validiert sein (lat -90..90, lng -180..180).
    """
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _is_number(value: Any) -> bool:
    # bool ist in Python ein int – als Koordinate aber unzulässig
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_finite_float(value: Any) -> Optional[float]:
    if not _is_number(value):
        return None
    try:
        number = float(value)
    except OverflowError:
        # riesige JSON-Ganzzahlen (z. B. 10**400) passen in keinen float
        return None
    return number if math.isfinite(number) else None


def is_valid_coordinate(lat: Any, lng: Any) -> bool:
    lat_f = _as_finite_float(lat)
    lng_f = _as_finite_float(lng)
    if lat_f is None or lng_f is None:
        return False
    return -90 <= lat_f <= 90 and -180 <= lng_f <= 180


@dataclass(frozen=True)
class GeoLock:
    lat: float
    lng: float
    radius_meters: float

    @classmethod
    def from_metadata(cls, metadata: Optional[Mapping[str, Any]]) -> Optional["GeoLock"]:
        """
        Liest ``metadata["geoLock"]``. ``None`` heißt: keine Einschränkung.
        Ein vorhandener, aber kaputter Eintrag wirft ``ValueError``.
        """
        if not metadata:
            return None
        raw = metadata.get("geoLock")
        if raw is None:
            return None
        if not isinstance(raw, Mapping):
            raise ValueError("geoLock must be an object")

        lat = raw.get("lat")
        lng = raw.get("lng")
        radius = raw.get("radiusMeters")
        if not is_valid_coordinate(lat, lng):
            raise ValueError("geoLock has invalid coordinates")
        radius_f = _as_finite_float(radius)
        if radius_f is None or radius_f <= 0:
            raise ValueError("geoLock radiusMeters must be a positive number")
        return cls(lat=float(lat), lng=float(lng), radius_meters=radius_f)

    def to_metadata(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng, "radiusMeters": self.radius_meters}

    def contains(self, lat: float, lng: float) -> bool:
        # Rand inklusive: genau auf dem Radius ist erlaubt
        return distance_meters(self.lat, self.lng, lat, lng) <= self.radius_meters


def is_scan_allowed(metadata: Optional[Mapping[str, Any]], lat: float, lng: float) -> bool:
    """
    Entscheidung des Geo-Checks für bereits validierte Koordinaten.
    Kein geoLock → immer erlaubt; unlesbarer geoLock → verweigert (fail-closed).
    """
    try:
        geo_lock = GeoLock.from_metadata(metadata)
    except ValueError:
        return False
    if geo_lock is None:
        return True
    return geo_lock.contains(lat, lng)
