from .alert import (
    Alert,
    AlertPriority,
    AlertType,
    DailyCount,
    SpeedStats,
    SpeedViolation,
    ViolatorSummary,
)
from .geo import GeoPoint
from .geofence import Geofence, GeofenceRule, GeofenceRuleType, GeofenceType
from .tracking import LocationPoint, PositionRecord
from .trip import RouteEvent, RouteEventType, Trip
from .vehicle import IgnitionStatus, Vehicle, VehicleStatus

__all__ = [
    "Alert",
    "AlertPriority",
    "AlertType",
    "DailyCount",
    "GeoPoint",
    "Geofence",
    "GeofenceRule",
    "GeofenceRuleType",
    "GeofenceType",
    "IgnitionStatus",
    "LocationPoint",
    "PositionRecord",
    "RouteEvent",
    "RouteEventType",
    "SpeedStats",
    "SpeedViolation",
    "Trip",
    "Vehicle",
    "VehicleStatus",
    "ViolatorSummary",
]
