from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, Sequence

from src.app.ports.output import (
    IAlertRepository,
    IGeofenceRepository,
    IPositionHistoryRepository,
    ITripRepository,
    IVehicleRepository,
)
from src.domain.models import (
    Alert,
    AlertType,
    Geofence,
    LocationPoint,
    PositionRecord,
    Trip,
    Vehicle,
)


@dataclass(slots=True)
class InMemoryVehicleRepository(IVehicleRepository):
    """Process-local vehicle store. Returned vehicles are the stored objects."""

    _items: dict[str, Vehicle] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def get(self, vehicle_id: str) -> Vehicle | None:
        with self._lock:
            return self._items.get(vehicle_id)

    def get_by_license_plate(self, license_plate: str) -> Vehicle | None:
        with self._lock:
            return next(
                (v for v in self._items.values() if v.matches_plate(license_plate)),
                None,
            )

    def list(self) -> tuple[Vehicle, ...]:
        with self._lock:
            return tuple(self._items.values())

    def save(self, vehicle: Vehicle) -> None:
        with self._lock:
            self._items[vehicle.id] = vehicle

    def delete(self, vehicle_id: str) -> bool:
        with self._lock:
            return self._items.pop(vehicle_id, None) is not None


@dataclass(slots=True)
class InMemoryPositionHistoryRepository(IPositionHistoryRepository):
    _records: dict[str, list[PositionRecord]] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def append(self, record: PositionRecord) -> None:
        with self._lock:
            self._records.setdefault(record.vehicle_id, []).append(record)

    def get_points_in_range(
        self, vehicle_id: str, start: datetime, end: datetime
    ) -> tuple[LocationPoint, ...]:
        with self._lock:
            records = list(self._records.get(vehicle_id, ()))
        points = [r.point for r in records if start <= r.point.timestamp <= end]
        points.sort(key=lambda p: p.timestamp)
        return tuple(points)


@dataclass(slots=True)
class InMemoryGeofenceRepository(IGeofenceRepository):
    _items: dict[str, Geofence] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @staticmethod
    def of(geofences: Iterable[Geofence]) -> "InMemoryGeofenceRepository":
        repo = InMemoryGeofenceRepository()
        for g in geofences:
            repo.save(g)
        return repo

    def save(self, geofence: Geofence) -> None:
        with self._lock:
            self._items[geofence.id] = geofence

    def get(self, geofence_id: str) -> Geofence | None:
        with self._lock:
            return self._items.get(geofence_id)

    def list(self) -> tuple[Geofence, ...]:
        with self._lock:
            return tuple(self._items.values())

    def list_for_vehicle(self, vehicle_id: str) -> tuple[Geofence, ...]:
        with self._lock:
            return tuple(g for g in self._items.values() if g.applies_to(vehicle_id))

    def mark_triggered(self, geofence_id: str, at: datetime) -> None:
        with self._lock:
            geofence = self._items.get(geofence_id)
            if geofence is not None:
                self._items[geofence_id] = replace(geofence, last_triggered=at)


@dataclass(slots=True)
class InMemoryAlertRepository(IAlertRepository):
    _items: dict[str, Alert] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def persist(self, alert: Alert) -> None:
        with self._lock:
            self._items[alert.id] = alert

    def list(
        self,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        alert_type: AlertType | None = None,
    ) -> tuple[Alert, ...]:
        with self._lock:
            alerts = [
                a
                for a in self._items.values()
                if (start is None or a.timestamp >= start)
                and (end is None or a.timestamp <= end)
                and (alert_type is None or a.type is alert_type)
            ]
        alerts.sort(key=lambda a: a.timestamp, reverse=True)
        return tuple(alerts)

    def mark_all_read(self) -> None:
        with self._lock:
            for alert_id, alert in list(self._items.items()):
                if not alert.read:
                    self._items[alert_id] = replace(alert, read=True)

    def clear_read(self) -> int:
        with self._lock:
            read_ids = [alert_id for alert_id, a in self._items.items() if a.read]
            for alert_id in read_ids:
                del self._items[alert_id]
            return len(read_ids)


@dataclass(slots=True)
class InMemoryTripRepository(ITripRepository):
    _items: dict[str, list[Trip]] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def persist_trips(self, trips: Sequence[Trip]) -> None:
        with self._lock:
            for trip in trips:
                self._items.setdefault(trip.vehicle_id, []).append(trip)

    def list(self, vehicle_id: str, start: datetime, end: datetime) -> tuple[Trip, ...]:
        with self._lock:
            trips = [
                t
                for t in self._items.get(vehicle_id, ())
                if t.start_time >= start and t.end_time <= end
            ]
        trips.sort(key=lambda t: t.start_time, reverse=True)
        return tuple(trips)
