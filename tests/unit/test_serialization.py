from __future__ import annotations

from datetime import datetime, time, timedelta, timezone

import pytest

from src.adapters.serialization import (
    dt_from_str,
    geofence_from_dict,
    trip_from_dict,
    trip_to_dict,
)
from src.domain.algorithms.trip_segmentation import segment_trips
from src.domain.exceptions import ValidationError
from src.domain.models import GeofenceRuleType, GeofenceType, LocationPoint


def test_dt_from_str_accepts_trailing_z() -> None:
    assert dt_from_str("2024-03-04T12:00:00Z") == datetime(2024, 3, 4, 12, 0, tzinfo=timezone.utc)


def test_dt_from_str_rejects_garbage() -> None:
    with pytest.raises(ValidationError):
        dt_from_str("yesterday")


def test_circle_geofence_from_dict() -> None:
    geofence = geofence_from_dict(
        {
            "id": "depot",
            "name": "Depot",
            "type": "circle",
            "center": {"lat": -23.5505, "lon": -46.6333},
            "radius_m": 500,
            "vehicle_ids": ["v1", "v2"],
            "rules": [
                {"type": "entry", "tolerance_seconds": 30},
                {"type": "dwell", "dwell_time_minutes": 15, "enabled": False},
                {"type": "time_violation", "start_time": "22:00", "end_time": "06:00"},
            ],
        }
    )

    assert geofence.type is GeofenceType.CIRCLE
    assert geofence.radius_m == 500.0
    assert geofence.vehicle_ids == frozenset({"v1", "v2"})
    assert geofence.rule(GeofenceRuleType.ENTRY).tolerance_seconds == 30.0
    assert not geofence.rule(GeofenceRuleType.DWELL).enabled
    window = geofence.rule(GeofenceRuleType.TIME_VIOLATION)
    assert (window.start_time, window.end_time) == (time(22, 0), time(6, 0))


def test_polygon_geofence_needs_three_points() -> None:
    with pytest.raises(ValidationError):
        geofence_from_dict(
            {
                "id": "p",
                "name": "Line",
                "type": "polygon",
                "points": [{"lat": 0, "lon": 0}, {"lat": 1, "lon": 1}],
            }
        )


def test_bad_time_of_day_is_rejected() -> None:
    with pytest.raises(ValidationError):
        geofence_from_dict(
            {
                "id": "depot",
                "name": "Depot",
                "type": "circle",
                "center": {"lat": 0, "lon": 0},
                "radius_m": 10,
                "rules": [{"type": "time_violation", "start_time": "25:99", "end_time": "06:00"}],
            }
        )


def test_trip_dict_preserves_statistics_and_events() -> None:
    t0 = datetime(2024, 3, 4, 8, 0, tzinfo=timezone.utc)
    points = [
        LocationPoint(lat=-23.55, lon=-46.63, speed_kmh=40.0, heading_deg=0.0, timestamp=t0),
        LocationPoint(
            lat=-23.56,
            lon=-46.63,
            speed_kmh=0.0,
            heading_deg=0.0,
            timestamp=t0 + timedelta(minutes=10),
            accuracy_m=3.0,
        ),
    ]
    (trip,) = segment_trips("v1", points)

    restored = trip_from_dict(trip_to_dict(trip))

    assert restored == trip
