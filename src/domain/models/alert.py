from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class AlertType(str, Enum):
    SPEED = "speed"
    GEOFENCE_ENTRY = "geofence_entry"
    GEOFENCE_EXIT = "geofence_exit"
    GEOFENCE_DWELL = "geofence_dwell"
    GEOFENCE_TIME_VIOLATION = "geofence_time_violation"
    SYSTEM = "system"


class AlertPriority(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True, slots=True)
class Alert:
    id: str
    type: AlertType
    priority: AlertPriority
    vehicle_id: str
    vehicle_name: str
    message: str
    timestamp: datetime
    read: bool = False
    lat: float | None = None
    lon: float | None = None
    speed_kmh: float | None = None
    speed_limit_kmh: float | None = None
    geofence_name: str | None = None


@dataclass(frozen=True, slots=True)
class SpeedViolation:
    id: str
    vehicle_id: str
    vehicle_name: str
    speed_kmh: float
    speed_limit_kmh: float
    timestamp: datetime
    lat: float | None = None
    lon: float | None = None

    @property
    def excess_speed_kmh(self) -> float:
        return self.speed_kmh - self.speed_limit_kmh


@dataclass(frozen=True, slots=True)
class DailyCount:
    day: date
    count: int


@dataclass(frozen=True, slots=True)
class ViolatorSummary:
    vehicle_id: str
    vehicle_name: str
    total_violations: int
    average_excess_speed_kmh: float
    last_violation: datetime


@dataclass(frozen=True, slots=True)
class SpeedStats:
    total_violations: int
    vehicles_with_violations: int
    average_excess_speed_kmh: float
    violations_by_day: tuple[DailyCount, ...] = ()
    top_violators: tuple[ViolatorSummary, ...] = ()
