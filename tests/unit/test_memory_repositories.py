from __future__ import annotations

from datetime import datetime, timedelta, timezone

from src.adapters.persistence.memory_repositories import (
    InMemoryAlertRepository,
    InMemoryPositionHistoryRepository,
    InMemoryVehicleRepository,
)
from src.domain.models import (
    Alert,
    AlertPriority,
    AlertType,
    IgnitionStatus,
    LocationPoint,
    PositionRecord,
    Vehicle,
    VehicleStatus,
)

T0 = datetime(2024, 3, 4, 12, 0, tzinfo=timezone.utc)


def _alert(alert_id: str, minutes: float, alert_type: AlertType = AlertType.SPEED) -> Alert:
    return Alert(
        id=alert_id,
        type=alert_type,
        priority=AlertPriority.INFO,
        vehicle_id="v1",
        vehicle_name="V1",
        message=alert_id,
        timestamp=T0 + timedelta(minutes=minutes),
    )


def _record(record_id: str, minutes: float) -> PositionRecord:
    return PositionRecord(
        id=record_id,
        vehicle_id="v1",
        license_plate="P1",
        point=LocationPoint(
            lat=0.0,
            lon=0.0,
            speed_kmh=0.0,
            heading_deg=0.0,
            timestamp=T0 + timedelta(minutes=minutes),
        ),
        status=VehicleStatus.STOPPED,
        ignition=IgnitionStatus.OFF,
    )


def test_vehicle_plate_lookup_ignores_case_and_padding() -> None:
    repo = InMemoryVehicleRepository()
    repo.save(
        Vehicle(
            id="v1",
            name="Truck",
            license_plate="ABC-1234",
            status=VehicleStatus.STOPPED,
            ignition=IgnitionStatus.OFF,
            current_speed_kmh=0.0,
            speed_limit_kmh=80.0,
            heading_deg=0.0,
            lat=0.0,
            lon=0.0,
            accuracy_m=5.0,
            last_update=T0,
        )
    )

    assert repo.get_by_license_plate(" abc-1234 ").id == "v1"
    assert repo.get_by_license_plate("ABC-9999") is None


def test_history_range_is_inclusive_and_sorted() -> None:
    repo = InMemoryPositionHistoryRepository()
    for record_id, minutes in (("c", 10), ("a", 0), ("b", 5), ("d", 20)):
        repo.append(_record(record_id, minutes))

    points = repo.get_points_in_range("v1", T0, T0 + timedelta(minutes=10))

    assert [p.timestamp for p in points] == [T0 + timedelta(minutes=m) for m in (0, 5, 10)]
    assert repo.get_points_in_range("v2", T0, T0 + timedelta(hours=1)) == ()


def test_alert_listing_and_maintenance() -> None:
    repo = InMemoryAlertRepository()
    repo.persist(_alert("a1", 0))
    repo.persist(_alert("a2", 5, AlertType.GEOFENCE_ENTRY))
    repo.persist(_alert("a3", 10))

    assert [a.id for a in repo.list()] == ["a3", "a2", "a1"]
    assert [a.id for a in repo.list(alert_type=AlertType.SPEED)] == ["a3", "a1"]
    assert [a.id for a in repo.list(start=T0 + timedelta(minutes=5))] == ["a3", "a2"]

    repo.mark_all_read()
    assert all(a.read for a in repo.list())

    repo.persist(_alert("a4", 15))
    assert repo.clear_read() == 3
    assert [a.id for a in repo.list()] == ["a4"]
