from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .tracking import LocationPoint


class RouteEventType(str, Enum):
    DEPARTURE = "departure"
    ARRIVAL = "arrival"
    STOP = "stop"
    SPEED_VIOLATION = "speed_violation"
    GEOFENCE_ENTRY = "geofence_entry"
    GEOFENCE_EXIT = "geofence_exit"


@dataclass(frozen=True, slots=True)
class RouteEvent:
    id: str
    type: RouteEventType
    lat: float
    lon: float
    timestamp: datetime
    duration_min: float | None = None
    speed_kmh: float | None = None
    speed_limit_kmh: float | None = None
    geofence_name: str | None = None
    address: str | None = None


@dataclass(frozen=True, slots=True)
class Trip:
    """A finalized journey of one vehicle.

    Invariants:
      - start_time == points[0].timestamp and end_time == points[-1].timestamp
      - stops_count == number of STOP events
      - travel_time_min is the wall-clock span (stopped time included)
      - events are sorted by timestamp
    """

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
    points: tuple[LocationPoint, ...] = ()
    events: tuple[RouteEvent, ...] = ()

    @property
    def movement_time_min(self) -> float:
        return self.travel_time_min - self.stopped_time_min
