from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from src.domain.exceptions import ValidationError

from .geo import GeoPoint, validate_coordinates
from .vehicle import IgnitionStatus, VehicleStatus


def require_aware(timestamp: datetime) -> None:
    if not isinstance(timestamp, datetime):
        raise ValidationError(f"Invalid timestamp: {timestamp!r}")
    if timestamp.tzinfo is None or timestamp.utcoffset() is None:
        raise ValidationError(f"Timestamp must be timezone-aware: {timestamp}")


def validate_speed(speed_kmh: float) -> None:
    if not math.isfinite(speed_kmh):
        raise ValidationError(f"Non-finite speed: {speed_kmh}")
    if speed_kmh < 0.0:
        raise ValidationError(f"Negative speed: {speed_kmh}")


@dataclass(frozen=True, slots=True)
class LocationPoint:
    """One GPS sample. Ordered by `timestamp` within a vehicle stream."""

    lat: float
    lon: float
    speed_kmh: float
    heading_deg: float
    timestamp: datetime
    accuracy_m: float | None = None

    def __post_init__(self) -> None:
        validate_coordinates(self.lat, self.lon)
        validate_speed(self.speed_kmh)
        if not math.isfinite(self.heading_deg):
            raise ValidationError(f"Non-finite heading: {self.heading_deg}")
        require_aware(self.timestamp)

    @property
    def location(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lon=self.lon)


@dataclass(frozen=True, slots=True)
class PositionRecord:
    """Append-only history entry written for every accepted fix."""

    id: str
    vehicle_id: str
    license_plate: str
    point: LocationPoint
    status: VehicleStatus
    ignition: IgnitionStatus
