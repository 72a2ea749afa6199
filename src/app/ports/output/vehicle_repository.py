from __future__ import annotations

from abc import ABC, abstractmethod

from src.domain.models import Vehicle


class IVehicleRepository(ABC):
    """Port for the live vehicle state store."""

    @abstractmethod
    def get(self, vehicle_id: str) -> Vehicle | None:
        raise NotImplementedError

    @abstractmethod
    def get_by_license_plate(self, license_plate: str) -> Vehicle | None:
        """Case-insensitive exact match on the license plate."""

    @abstractmethod
    def list(self) -> tuple[Vehicle, ...]:
        raise NotImplementedError

    @abstractmethod
    def save(self, vehicle: Vehicle) -> None:
        """Insert or replace the vehicle keyed by id."""

    @abstractmethod
    def delete(self, vehicle_id: str) -> bool:
        raise NotImplementedError
