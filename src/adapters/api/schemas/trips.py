from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class LocationPointSchema(BaseModel):
    lat: float
    lon: float
    speed_kmh: float
    heading_deg: float
    timestamp: datetime
    accuracy_m: float | None = None


class RouteEventSchema(BaseModel):
    id: str
    type: Literal[
        "departure",
        "arrival",
        "stop",
        "speed_violation",
        "geofence_entry",
        "geofence_exit",
    ]
    lat: float
    lon: float
    timestamp: datetime
    duration_min: float | None = None
    speed_kmh: float | None = None
    speed_limit_kmh: float | None = None
    geofence_name: str | None = None
    address: str | None = None


class TripSchema(BaseModel):
    id: str
    vehicle_id: str
    start_time: datetime
    end_time: datetime
    total_distance_m: float
    travel_time_min: float
    stopped_time_min: float
    average_speed_kmh: float
    max_speed_kmh: float
    stops_count: int
    points: list[LocationPointSchema] = []
    events: list[RouteEventSchema] = []
