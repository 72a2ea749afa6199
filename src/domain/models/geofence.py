from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time
from enum import Enum

from src.domain.exceptions import ValidationError

from .geo import GeoPoint


class GeofenceType(str, Enum):
    CIRCLE = "circle"
    POLYGON = "polygon"


class GeofenceRuleType(str, Enum):
    ENTRY = "entry"
    EXIT = "exit"
    DWELL = "dwell"
    TIME_VIOLATION = "time_violation"


@dataclass(frozen=True, slots=True)
class GeofenceRule:
    type: GeofenceRuleType
    enabled: bool = True
    dwell_time_minutes: float | None = None
    tolerance_seconds: float | None = None
    # Allowed occupancy window for TIME_VIOLATION; may wrap past midnight.
    start_time: time | None = None
    end_time: time | None = None

    def __post_init__(self) -> None:
        if self.tolerance_seconds is not None and self.tolerance_seconds < 0:
            raise ValidationError(
                f"Negative tolerance_seconds: {self.tolerance_seconds}"
            )
        if self.type is GeofenceRuleType.DWELL and self.dwell_time_minutes is None:
            raise ValidationError("Dwell rule requires dwell_time_minutes")
        if self.type is GeofenceRuleType.TIME_VIOLATION and (
            self.start_time is None or self.end_time is None
        ):
            raise ValidationError("Time violation rule requires start_time and end_time")


@dataclass(frozen=True, slots=True)
class Geofence:
    id: str
    name: str
    type: GeofenceType
    active: bool = True
    center: GeoPoint | None = None
    radius_m: float | None = None
    points: tuple[GeoPoint, ...] = ()
    rules: tuple[GeofenceRule, ...] = ()
    vehicle_ids: frozenset[str] = field(default_factory=frozenset)
    description: str | None = None
    last_triggered: datetime | None = None
    color: str | None = None

    def __post_init__(self) -> None:
        if self.type is GeofenceType.CIRCLE:
            if self.center is None or self.radius_m is None:
                raise ValidationError(f"Circle geofence {self.id} needs center and radius")
            if not self.radius_m > 0:
                raise ValidationError(f"Invalid radius for geofence {self.id}: {self.radius_m}")
        elif len(self.points) < 3:
            raise ValidationError(
                f"Polygon geofence {self.id} needs at least 3 points, got {len(self.points)}"
            )

    def rule(self, rule_type: GeofenceRuleType) -> GeofenceRule | None:
        """First rule of the given type, enabled or not."""

        return next((r for r in self.rules if r.type is rule_type), None)

    def applies_to(self, vehicle_id: str) -> bool:
        return self.active and vehicle_id in self.vehicle_ids
