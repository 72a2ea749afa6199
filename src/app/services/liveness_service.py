from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from src.app.config import TrackingSettings
from src.app.ports.output import INotificationSink, IVehicleRepository
from src.domain.models import Vehicle, VehicleStatus
from src.domain.models.tracking import require_aware

from .vehicle_locks import VehicleLocks

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FleetLivenessService:
    """Marks vehicles offline once they stop reporting."""

    vehicles: IVehicleRepository
    locks: VehicleLocks
    notifier: INotificationSink | None = None
    settings: TrackingSettings = field(default_factory=TrackingSettings)

    def mark_offline(self, now: datetime) -> list[Vehicle]:
        require_aware(now)
        cutoff = now - timedelta(seconds=self.settings.offline_after_s)

        changed: list[Vehicle] = []
        for candidate in self.vehicles.list():
            if candidate.status is VehicleStatus.OFFLINE:
                continue
            with self.locks.hold(candidate.id):
                # Re-read under the lock; a fix may have landed meanwhile.
                vehicle = self.vehicles.get(candidate.id)
                if vehicle is None or vehicle.status is VehicleStatus.OFFLINE:
                    continue
                if vehicle.last_update >= cutoff:
                    continue
                vehicle.status = VehicleStatus.OFFLINE
                self.vehicles.save(vehicle)
            changed.append(vehicle)

        for vehicle in changed:
            logger.info(
                "Vehicle %s offline (last update %s)",
                vehicle.id,
                vehicle.last_update.isoformat(),
            )
            if self.notifier is not None:
                self.notifier.publish_vehicle(vehicle)
        return changed
