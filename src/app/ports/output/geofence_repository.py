from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from src.domain.models import Geofence


class IGeofenceRepository(ABC):
    """Port for geofence definitions."""

    @abstractmethod
    def list(self) -> tuple[Geofence, ...]:
        raise NotImplementedError

    @abstractmethod
    def list_for_vehicle(self, vehicle_id: str) -> tuple[Geofence, ...]:
        """Active geofences assigned to the vehicle."""

    @abstractmethod
    def mark_triggered(self, geofence_id: str, at: datetime) -> None:
        raise NotImplementedError
