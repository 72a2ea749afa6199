from __future__ import annotations

from functools import lru_cache

from src.adapters.bootstrap import FleetContainer, build_container
from src.app.ports.output import IAlertRepository, IVehicleRepository
from src.app.services.ingest_service import FixIngestService
from src.app.services.speed_report_service import SpeedReportService
from src.app.services.trip_replay_service import TripReplayService


@lru_cache(maxsize=1)
def get_container() -> FleetContainer:
    return build_container()


def get_ingest_service() -> FixIngestService:
    return get_container().ingest


def get_replay_service() -> TripReplayService:
    return get_container().replay


def get_report_service() -> SpeedReportService:
    return get_container().reports


def get_vehicle_repository() -> IVehicleRepository:
    return get_container().vehicles


def get_alert_repository() -> IAlertRepository:
    return get_container().alerts
