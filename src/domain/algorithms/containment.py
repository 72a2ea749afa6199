from __future__ import annotations

import logging
from functools import lru_cache
from typing import Sequence

from shapely.geometry import Point, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.validation import explain_validity, make_valid

from src.domain.exceptions import ValidationError
from src.domain.models import GeoPoint, Geofence, GeofenceType

from .geo_utils import haversine_distance_m

logger = logging.getLogger(__name__)


def point_in_circle(point: GeoPoint, center: GeoPoint, radius_m: float) -> bool:
    return haversine_distance_m(point, center) <= radius_m


def to_polygon(vertices: Sequence[GeoPoint]) -> Polygon:
    """Planar polygon over (lon, lat), the same axis order as GeoJSON."""

    return Polygon([(p.lon, p.lat) for p in vertices])


def is_valid_polygon(vertices: Sequence[GeoPoint]) -> bool:
    return bool(to_polygon(vertices).is_valid)


@lru_cache(maxsize=1024)
def _area(vertices: tuple[GeoPoint, ...]) -> BaseGeometry:
    polygon = to_polygon(vertices)
    if polygon.is_valid:
        return polygon
    # A bowtie becomes the union of its lobes.
    return make_valid(polygon)


def point_in_polygon(point: GeoPoint, vertices: Sequence[GeoPoint]) -> bool:
    """Boundary-inclusive containment, lat/lon treated as planar."""

    return bool(_area(tuple(vertices)).covers(Point(point.lon, point.lat)))


@lru_cache(maxsize=1024)
def _warn_if_invalid(geofence_id: str, vertices: tuple[GeoPoint, ...]) -> bool:
    polygon = to_polygon(vertices)
    if polygon.is_valid:
        return False
    logger.warning(
        "Geofence %s is not a valid polygon (%s); containment is best-effort",
        geofence_id,
        explain_validity(polygon),
    )
    return True


def geofence_contains(geofence: Geofence, point: GeoPoint) -> bool:
    if geofence.type is GeofenceType.CIRCLE:
        center = geofence.center
        radius_m = geofence.radius_m
        if center is None or radius_m is None:
            raise ValidationError(f"Circle geofence {geofence.id} needs center and radius")
        return point_in_circle(point, center, radius_m)

    _warn_if_invalid(geofence.id, tuple(geofence.points))
    return point_in_polygon(point, geofence.points)
