from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models import Alert, Vehicle


class INotificationSink(ABC):
    """Outbound port for live updates; delivery is the adapter's business."""

    @abstractmethod
    def publish_vehicle(self, vehicle: Vehicle) -> None:
        raise NotImplementedError

    @abstractmethod
    def publish_alert(self, alert: Alert) -> None:
        raise NotImplementedError
