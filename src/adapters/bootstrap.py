from __future__ import annotations

import logging
from dataclasses import dataclass

from src.adapters.notifications.logging_sink import LoggingNotificationSink
from src.adapters.persistence.dynamodb_repositories import (
    DynamoDbAlertRepository,
    DynamoDbPositionHistoryRepository,
    DynamoDbTripRepository,
    DynamoDbVehicleRepository,
)
from src.adapters.persistence.local_geofence_repository import LocalGeofenceRepository
from src.adapters.persistence.memory_repositories import (
    InMemoryAlertRepository,
    InMemoryPositionHistoryRepository,
    InMemoryTripRepository,
    InMemoryVehicleRepository,
)
from src.app.config import TrackingSettings
from src.app.ports.output import (
    IAlertRepository,
    IPositionHistoryRepository,
    ITripRepository,
    IVehicleRepository,
)
from src.app.services.ingest_service import FixIngestService
from src.app.services.liveness_service import FleetLivenessService
from src.app.services.speed_report_service import SpeedReportService
from src.app.services.trip_replay_service import TripReplayService
from src.app.services.vehicle_locks import VehicleLocks
from src.domain.algorithms.geofence_evaluation import GeofenceEvaluator

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FleetContainer:
    """Services wired against one set of storage backends."""

    settings: TrackingSettings
    vehicles: IVehicleRepository
    alerts: IAlertRepository
    ingest: FixIngestService
    replay: TripReplayService
    liveness: FleetLivenessService
    reports: SpeedReportService


def build_container(settings: TrackingSettings | None = None) -> FleetContainer:
    settings = settings or TrackingSettings.from_env()

    vehicles: IVehicleRepository
    positions: IPositionHistoryRepository
    trips: ITripRepository
    alerts: IAlertRepository
    if settings.storage_backend == "dynamodb":
        vehicles = DynamoDbVehicleRepository()
        positions = DynamoDbPositionHistoryRepository()
        trips = DynamoDbTripRepository()
        alerts = DynamoDbAlertRepository()
    else:
        vehicles = InMemoryVehicleRepository()
        positions = InMemoryPositionHistoryRepository()
        trips = InMemoryTripRepository()
        alerts = InMemoryAlertRepository()

    geofences = LocalGeofenceRepository(path=settings.geofences_path)
    notifier = LoggingNotificationSink()
    locks = VehicleLocks()

    logger.info("Storage backend: %s", settings.storage_backend)

    return FleetContainer(
        settings=settings,
        vehicles=vehicles,
        alerts=alerts,
        ingest=FixIngestService(
            vehicles=vehicles,
            positions=positions,
            geofences=geofences,
            alerts=alerts,
            trips=trips,
            notifier=notifier,
            settings=settings,
            locks=locks,
            evaluator=GeofenceEvaluator(tz=settings.tz()),
        ),
        replay=TripReplayService(positions=positions, trips=trips, settings=settings),
        liveness=FleetLivenessService(
            vehicles=vehicles, locks=locks, notifier=notifier, settings=settings
        ),
        reports=SpeedReportService(alerts=alerts),
    )
