from __future__ import annotations

import math
from dataclasses import dataclass

from src.domain.exceptions import ValidationError


def validate_coordinates(lat: float, lon: float) -> None:
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise ValidationError(f"Non-finite coordinates: ({lat}, {lon})")
    if not (-90.0 <= lat <= 90.0):
        raise ValidationError(f"Invalid latitude: {lat}")
    if not (-180.0 <= lon <= 180.0):
        raise ValidationError(f"Invalid longitude: {lon}")


@dataclass(frozen=True, slots=True)
class GeoPoint:
    lat: float
    lon: float

    def __post_init__(self) -> None:
        validate_coordinates(self.lat, self.lon)
