from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from src.domain.exceptions import ValidationError
from src.domain.models import LocationPoint, RouteEvent, RouteEventType, Trip


@dataclass(slots=True)
class TripAccumulator:
    """Running state of the trip currently being built by a segmenter."""

    vehicle_id: str
    start_time: datetime
    end_time: datetime
    points: list[LocationPoint] = field(default_factory=list)
    events: list[RouteEvent] = field(default_factory=list)
    total_distance_m: float = 0.0
    max_speed_kmh: float = 0.0
    stopped_time_min: float = 0.0
    # First point of the stop interval currently open, if any.
    stop_start: LocationPoint | None = None


def average_speed_kmh(
    total_distance_m: float, travel_time_min: float, stopped_time_min: float
) -> float:
    """Distance over moving time; 0 when the vehicle never moved in time."""

    movement_min = travel_time_min - stopped_time_min
    if movement_min <= 0:
        return 0.0
    return (total_distance_m / 1000.0) / (movement_min / 60.0)


def finalize_trip(acc: TripAccumulator, *, trip_id: str) -> Trip:
    if not acc.points:
        raise ValidationError("Cannot finalize a trip without points")

    start_time = acc.points[0].timestamp
    end_time = acc.points[-1].timestamp
    travel_time_min = (end_time - start_time).total_seconds() / 60.0

    # sorted() is stable: a departure and a stop sharing a timestamp keep insertion order.
    events = tuple(sorted(acc.events, key=lambda e: e.timestamp))
    stops_count = sum(1 for e in events if e.type is RouteEventType.STOP)

    return Trip(
        id=trip_id,
        vehicle_id=acc.vehicle_id,
        start_time=start_time,
        end_time=end_time,
        total_distance_m=acc.total_distance_m,
        travel_time_min=travel_time_min,
        stopped_time_min=acc.stopped_time_min,
        average_speed_kmh=average_speed_kmh(
            acc.total_distance_m, travel_time_min, acc.stopped_time_min
        ),
        max_speed_kmh=acc.max_speed_kmh,
        stops_count=stops_count,
        points=tuple(acc.points),
        events=events,
    )
