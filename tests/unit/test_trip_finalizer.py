from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from src.domain.algorithms.trip_finalizer import (
    TripAccumulator,
    average_speed_kmh,
    finalize_trip,
)
from src.domain.exceptions import ValidationError
from src.domain.models import LocationPoint, RouteEvent, RouteEventType

T0 = datetime(2024, 3, 4, 8, 0, tzinfo=timezone.utc)


def _pt(minutes: float, speed: float = 30.0) -> LocationPoint:
    return LocationPoint(
        lat=10.0,
        lon=20.0,
        speed_kmh=speed,
        heading_deg=90.0,
        timestamp=T0 + timedelta(minutes=minutes),
    )


def _event(event_id: str, event_type: RouteEventType, minutes: float) -> RouteEvent:
    return RouteEvent(
        id=event_id,
        type=event_type,
        lat=10.0,
        lon=20.0,
        timestamp=T0 + timedelta(minutes=minutes),
        duration_min=6.0 if event_type is RouteEventType.STOP else None,
    )


def test_average_speed_uses_moving_time_only() -> None:
    # 10 km in 30 minutes, of which 10 stopped.
    assert average_speed_kmh(10_000.0, 30.0, 10.0) == pytest.approx(30.0)


@pytest.mark.parametrize(("travel", "stopped"), [(0.0, 0.0), (10.0, 10.0), (5.0, 8.0)])
def test_average_speed_is_zero_without_moving_time(travel: float, stopped: float) -> None:
    assert average_speed_kmh(500.0, travel, stopped) == 0.0


def test_finalize_derives_bounds_from_points_and_sorts_events() -> None:
    acc = TripAccumulator(vehicle_id="v1", start_time=T0, end_time=T0)
    acc.points.extend([_pt(0), _pt(10, 50.0), _pt(20)])
    acc.events.extend(
        [
            _event("dep", RouteEventType.DEPARTURE, 0),
            _event("arr", RouteEventType.ARRIVAL, 20),
            _event("stop", RouteEventType.STOP, 5),
        ]
    )
    acc.total_distance_m = 6_000.0
    acc.max_speed_kmh = 50.0
    acc.stopped_time_min = 6.0

    trip = finalize_trip(acc, trip_id="trip-1")

    assert trip.id == "trip-1"
    assert trip.start_time == T0
    assert trip.end_time == T0 + timedelta(minutes=20)
    assert trip.travel_time_min == pytest.approx(20.0)
    assert trip.movement_time_min == pytest.approx(14.0)
    assert [e.id for e in trip.events] == ["dep", "stop", "arr"]
    assert trip.stops_count == 1
    assert trip.average_speed_kmh == pytest.approx(6.0 / (14.0 / 60.0))
    assert isinstance(trip.points, tuple)


def test_finalize_keeps_insertion_order_for_equal_timestamps() -> None:
    acc = TripAccumulator(vehicle_id="v1", start_time=T0, end_time=T0)
    acc.points.append(_pt(0))
    acc.events.extend(
        [_event("dep", RouteEventType.DEPARTURE, 0), _event("arr", RouteEventType.ARRIVAL, 0)]
    )

    trip = finalize_trip(acc, trip_id="t")

    assert [e.id for e in trip.events] == ["dep", "arr"]


def test_finalize_without_points_fails() -> None:
    acc = TripAccumulator(vehicle_id="v1", start_time=T0, end_time=T0)
    with pytest.raises(ValidationError):
        finalize_trip(acc, trip_id="t")
