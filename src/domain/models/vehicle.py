from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class VehicleStatus(str, Enum):
    MOVING = "moving"
    STOPPED = "stopped"
    IDLE = "idle"
    OFFLINE = "offline"


class IgnitionStatus(str, Enum):
    ON = "on"
    OFF = "off"


@dataclass(slots=True)
class Vehicle:
    """Live state of a vehicle, updated in place by every accepted fix."""

    id: str
    name: str
    license_plate: str
    status: VehicleStatus
    ignition: IgnitionStatus
    current_speed_kmh: float
    speed_limit_kmh: float
    heading_deg: float
    lat: float
    lon: float
    accuracy_m: float
    last_update: datetime
    model: str | None = None
    battery_level: float | None = None

    def matches_plate(self, license_plate: str) -> bool:
        return self.license_plate.strip().casefold() == license_plate.strip().casefold()
