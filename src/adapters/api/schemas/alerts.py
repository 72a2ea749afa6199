from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel


class AlertSchema(BaseModel):
    id: str
    type: Literal[
        "speed",
        "geofence_entry",
        "geofence_exit",
        "geofence_dwell",
        "geofence_time_violation",
        "system",
    ]
    priority: Literal["critical", "warning", "info"]
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


class ClearedAlertsSchema(BaseModel):
    removed: int


class SpeedViolationSchema(BaseModel):
    id: str
    vehicle_id: str
    vehicle_name: str
    speed_kmh: float
    speed_limit_kmh: float
    excess_speed_kmh: float
    timestamp: datetime
    lat: float | None = None
    lon: float | None = None


class DailyCountSchema(BaseModel):
    day: date
    count: int


class ViolatorSummarySchema(BaseModel):
    vehicle_id: str
    vehicle_name: str
    total_violations: int
    average_excess_speed_kmh: float
    last_violation: datetime


class SpeedStatsSchema(BaseModel):
    total_violations: int
    vehicles_with_violations: int
    average_excess_speed_kmh: float
    violations_by_day: list[DailyCountSchema] = []
    top_violators: list[ViolatorSummarySchema] = []
