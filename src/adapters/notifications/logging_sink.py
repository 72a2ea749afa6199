from __future__ import annotations

import logging
from dataclasses import dataclass, field

from src.app.ports.output import INotificationSink
from src.domain.models import Alert, Vehicle


@dataclass(slots=True)
class LoggingNotificationSink(INotificationSink):
    """Writes live updates to a logger instead of pushing them to clients."""

    logger: logging.Logger = field(
        default_factory=lambda: logging.getLogger("fleettrack.notifications")
    )

    def publish_vehicle(self, vehicle: Vehicle) -> None:
        self.logger.debug(
            "vehicle %s status=%s speed=%.1f at (%.6f, %.6f)",
            vehicle.id,
            vehicle.status.value,
            vehicle.current_speed_kmh,
            vehicle.lat,
            vehicle.lon,
        )

    def publish_alert(self, alert: Alert) -> None:
        self.logger.info(
            "alert %s [%s/%s] vehicle=%s: %s",
            alert.id,
            alert.type.value,
            alert.priority.value,
            alert.vehicle_id,
            alert.message,
        )
