from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from uuid import uuid4

from src.app.config import TrackingSettings
from src.app.ports.output import (
    IAlertRepository,
    IGeofenceRepository,
    INotificationSink,
    IPositionHistoryRepository,
    ITripRepository,
    IVehicleRepository,
)
from src.domain.algorithms.geofence_evaluation import (
    GeofenceEvaluator,
    GeofenceState,
    GeofenceTransition,
)
from src.domain.algorithms.trip_segmentation import TripSegmenter
from src.domain.exceptions import SequenceError, ValidationError
from src.domain.models import (
    Alert,
    AlertPriority,
    AlertType,
    GeofenceRuleType,
    IgnitionStatus,
    LocationPoint,
    PositionRecord,
    RouteEvent,
    RouteEventType,
    Trip,
    Vehicle,
    VehicleStatus,
)

from .vehicle_locks import VehicleLocks

logger = logging.getLogger(__name__)

_GEOFENCE_ALERT_TYPES: dict[GeofenceRuleType, tuple[AlertType, AlertPriority]] = {
    GeofenceRuleType.ENTRY: (AlertType.GEOFENCE_ENTRY, AlertPriority.INFO),
    GeofenceRuleType.EXIT: (AlertType.GEOFENCE_EXIT, AlertPriority.INFO),
    GeofenceRuleType.DWELL: (AlertType.GEOFENCE_DWELL, AlertPriority.WARNING),
    GeofenceRuleType.TIME_VIOLATION: (
        AlertType.GEOFENCE_TIME_VIOLATION,
        AlertPriority.WARNING,
    ),
}

_GEOFENCE_EVENT_TYPES: dict[GeofenceRuleType, RouteEventType] = {
    GeofenceRuleType.ENTRY: RouteEventType.GEOFENCE_ENTRY,
    GeofenceRuleType.EXIT: RouteEventType.GEOFENCE_EXIT,
}


def derive_status(speed_kmh: float, moving_threshold_kmh: float = 5.0) -> VehicleStatus:
    if speed_kmh > moving_threshold_kmh:
        return VehicleStatus.MOVING
    if speed_kmh > 0:
        return VehicleStatus.IDLE
    return VehicleStatus.STOPPED


def derive_ignition(speed_kmh: float) -> IgnitionStatus:
    return IgnitionStatus.ON if speed_kmh > 0 else IgnitionStatus.OFF


def speed_priority(excess_kmh: float, critical_margin_kmh: float) -> AlertPriority:
    if excess_kmh >= critical_margin_kmh:
        return AlertPriority.CRITICAL
    return AlertPriority.WARNING


@dataclass(frozen=True, slots=True)
class IngestResult:
    vehicle: Vehicle
    events: tuple[RouteEvent, ...] = ()
    alerts: tuple[Alert, ...] = ()
    # Trip closed by this fix because of a time gap, if any.
    completed_trip: Trip | None = None
    # True when the fix registered a previously unknown vehicle.
    created: bool = False


@dataclass(slots=True)
class FixIngestService:
    """Applies raw GPS fixes to the fleet.

    For each fix: update the live vehicle, append to the position history,
    feed the vehicle's live trip segmenter, evaluate its geofences and check
    its speed limit. Work for one vehicle is serialised by `locks`.
    """

    vehicles: IVehicleRepository
    positions: IPositionHistoryRepository
    geofences: IGeofenceRepository
    alerts: IAlertRepository
    trips: ITripRepository
    notifier: INotificationSink | None = None
    settings: TrackingSettings = field(default_factory=TrackingSettings)
    locks: VehicleLocks = field(default_factory=VehicleLocks)
    evaluator: GeofenceEvaluator = field(default_factory=GeofenceEvaluator)

    _segmenters: dict[str, TripSegmenter] = field(
        default_factory=dict, init=False, repr=False
    )
    _geofence_states: dict[str, dict[str, GeofenceState]] = field(
        default_factory=dict, init=False, repr=False
    )

    def ingest_fix(
        self,
        identifier: str,
        lat: float,
        lon: float,
        speed_kmh: float,
        timestamp: datetime,
        *,
        heading_deg: float | None = None,
        accuracy_m: float | None = None,
        battery_level: float | None = None,
    ) -> IngestResult:
        """Ingest one fix for the vehicle with the given id or license plate."""

        identifier = (identifier or "").strip()
        if not identifier:
            raise ValidationError("A vehicle id or license plate is required")

        # Validates coordinates, speed, heading and timestamp before any mutation.
        point = LocationPoint(
            lat=lat,
            lon=lon,
            speed_kmh=speed_kmh,
            heading_deg=heading_deg if heading_deg is not None else 0.0,
            timestamp=timestamp,
            accuracy_m=accuracy_m,
        )

        while True:
            with self.locks.registry:
                vehicle = self.vehicles.get(identifier) or self.vehicles.get_by_license_plate(
                    identifier
                )
                created = vehicle is None
                if vehicle is None:
                    vehicle = self._register(identifier, point, heading_deg, battery_level)

            with self.locks.hold(vehicle.id):
                # The copy read above may be stale by the time the lock is held.
                current = self.vehicles.get(vehicle.id)
                if current is None:
                    # Deleted meanwhile; resolve the plate again.
                    identifier = vehicle.license_plate
                    continue
                if heading_deg is None:
                    point = replace(point, heading_deg=current.heading_deg)
                result = self._apply(current, point, battery_level)
            return replace(result, created=created)

    def delete_vehicle(self, vehicle_id: str) -> bool:
        # The lock stays registered; a fix waiting on it re-reads the vehicle.
        with self.locks.hold(vehicle_id):
            removed = self.vehicles.delete(vehicle_id)
            self._segmenters.pop(vehicle_id, None)
            self._geofence_states.pop(vehicle_id, None)
        if removed:
            logger.info("Deleted vehicle %s", vehicle_id)
        return removed

    def close_open_trips(self) -> list[Trip]:
        """Finish every live trip and hand them to the trip sink."""

        closed: list[Trip] = []
        for vehicle_id in list(self._segmenters):
            with self.locks.hold(vehicle_id):
                segmenter = self._segmenters.pop(vehicle_id, None)
                trip = segmenter.finish() if segmenter is not None else None
            if trip is not None:
                closed.append(trip)

        if closed:
            self.trips.persist_trips(closed)
        return closed

    def geofence_states(self, vehicle_id: str) -> dict[str, GeofenceState]:
        return dict(self._geofence_states.get(vehicle_id, {}))

    def _register(
        self,
        license_plate: str,
        point: LocationPoint,
        heading_deg: float | None,
        battery_level: float | None,
    ) -> Vehicle:
        vehicle = Vehicle(
            id=str(uuid4()),
            name=license_plate,
            license_plate=license_plate,
            status=derive_status(point.speed_kmh, self.settings.moving_speed_threshold_kmh),
            ignition=derive_ignition(point.speed_kmh),
            current_speed_kmh=point.speed_kmh,
            speed_limit_kmh=self.settings.default_speed_limit_kmh,
            heading_deg=(
                heading_deg if heading_deg is not None else self.settings.default_heading_deg
            ),
            lat=point.lat,
            lon=point.lon,
            accuracy_m=(
                point.accuracy_m
                if point.accuracy_m is not None
                else self.settings.default_accuracy_m
            ),
            last_update=point.timestamp,
            battery_level=battery_level,
        )
        self.vehicles.save(vehicle)
        logger.info("Registered vehicle %s for plate %s", vehicle.id, license_plate)
        return vehicle

    def _apply(
        self, vehicle: Vehicle, point: LocationPoint, battery_level: float | None
    ) -> IngestResult:
        segmenter = self._segmenters.get(vehicle.id)
        latest = vehicle.last_update
        if segmenter is not None and segmenter.last_timestamp is not None:
            latest = max(latest, segmenter.last_timestamp)
        # Every ordering check happens before the first write.
        if point.timestamp < latest:
            raise SequenceError(
                f"Vehicle {vehicle.id}: fix at {point.timestamp.isoformat()} is older "
                f"than last update at {latest.isoformat()}"
            )

        status = derive_status(point.speed_kmh, self.settings.moving_speed_threshold_kmh)
        ignition = derive_ignition(point.speed_kmh)

        vehicle.status = status
        vehicle.ignition = ignition
        vehicle.current_speed_kmh = point.speed_kmh
        vehicle.lat = point.lat
        vehicle.lon = point.lon
        vehicle.heading_deg = point.heading_deg
        if point.accuracy_m is not None:
            vehicle.accuracy_m = point.accuracy_m
        if battery_level is not None:
            vehicle.battery_level = battery_level
        vehicle.last_update = point.timestamp
        self.vehicles.save(vehicle)

        self.positions.append(
            PositionRecord(
                id=str(uuid4()),
                vehicle_id=vehicle.id,
                license_plate=vehicle.license_plate,
                point=point,
                status=status,
                ignition=ignition,
            )
        )

        if segmenter is None:
            segmenter = TripSegmenter(vehicle.id, params=self.settings.segmentation_params())
            self._segmenters[vehicle.id] = segmenter
        completed_trip = segmenter.push(point)
        if completed_trip is not None:
            self.trips.persist_trips([completed_trip])
            logger.info(
                "Vehicle %s closed trip %s (%.0f m)",
                vehicle.id,
                completed_trip.id,
                completed_trip.total_distance_m,
            )

        events: list[RouteEvent] = []
        alerts: list[Alert] = []

        for transition in self._evaluate_geofences(vehicle, point):
            event_type = _GEOFENCE_EVENT_TYPES.get(transition.rule_type)
            if event_type is not None:
                events.append(
                    RouteEvent(
                        id=str(uuid4()),
                        type=event_type,
                        lat=point.lat,
                        lon=point.lon,
                        timestamp=point.timestamp,
                        geofence_name=transition.geofence_name,
                    )
                )
            alerts.append(self._geofence_alert(vehicle, point, transition))

        if point.speed_kmh > vehicle.speed_limit_kmh:
            events.append(
                RouteEvent(
                    id=str(uuid4()),
                    type=RouteEventType.SPEED_VIOLATION,
                    lat=point.lat,
                    lon=point.lon,
                    timestamp=point.timestamp,
                    speed_kmh=point.speed_kmh,
                    speed_limit_kmh=vehicle.speed_limit_kmh,
                )
            )
            alerts.append(self._speed_alert(vehicle, point))

        for event in events:
            segmenter.add_event(event)
        for alert in alerts:
            self.alerts.persist(alert)

        if self.notifier is not None:
            self.notifier.publish_vehicle(vehicle)
            for alert in alerts:
                self.notifier.publish_alert(alert)

        return IngestResult(
            vehicle=vehicle,
            events=tuple(events),
            alerts=tuple(alerts),
            completed_trip=completed_trip,
        )

    def _evaluate_geofences(
        self, vehicle: Vehicle, point: LocationPoint
    ) -> tuple[GeofenceTransition, ...]:
        geofences = self.geofences.list_for_vehicle(vehicle.id)
        if not geofences and vehicle.id not in self._geofence_states:
            return ()

        result = self.evaluator.evaluate(
            vehicle.id,
            point.location,
            point.timestamp,
            geofences,
            self._geofence_states.get(vehicle.id, {}),
        )
        self._geofence_states[vehicle.id] = dict(result.states)

        for transition in result.transitions:
            self.geofences.mark_triggered(transition.geofence_id, transition.timestamp)
        return result.transitions

    @staticmethod
    def _geofence_alert(
        vehicle: Vehicle, point: LocationPoint, transition: GeofenceTransition
    ) -> Alert:
        alert_type, priority = _GEOFENCE_ALERT_TYPES[transition.rule_type]
        name = transition.geofence_name
        if transition.rule_type is GeofenceRuleType.ENTRY:
            message = f"{vehicle.name} entered geofence {name}"
        elif transition.rule_type is GeofenceRuleType.EXIT:
            message = f"{vehicle.name} left geofence {name}"
        elif transition.rule_type is GeofenceRuleType.DWELL:
            message = (
                f"{vehicle.name} has been inside {name} "
                f"for {transition.dwell_minutes or 0.0:.0f} min"
            )
        else:
            message = f"{vehicle.name} is inside {name} outside the allowed hours"

        return Alert(
            id=str(uuid4()),
            type=alert_type,
            priority=priority,
            vehicle_id=vehicle.id,
            vehicle_name=vehicle.name,
            message=message,
            timestamp=point.timestamp,
            lat=point.lat,
            lon=point.lon,
            speed_kmh=point.speed_kmh,
            geofence_name=name,
        )

    def _speed_alert(self, vehicle: Vehicle, point: LocationPoint) -> Alert:
        excess = point.speed_kmh - vehicle.speed_limit_kmh
        return Alert(
            id=str(uuid4()),
            type=AlertType.SPEED,
            priority=speed_priority(excess, self.settings.speed_critical_margin_kmh),
            vehicle_id=vehicle.id,
            vehicle_name=vehicle.name,
            message=(
                f"{vehicle.name} at {point.speed_kmh:.0f} km/h "
                f"(limit {vehicle.speed_limit_kmh:.0f} km/h)"
            ),
            timestamp=point.timestamp,
            lat=point.lat,
            lon=point.lon,
            speed_kmh=point.speed_kmh,
            speed_limit_kmh=vehicle.speed_limit_kmh,
        )
