from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from src.adapters.api.schemas.alerts import AlertSchema
from src.adapters.api.schemas.trips import RouteEventSchema


class TrackingRequestSchema(BaseModel):
    license_plate: str = Field(..., min_length=1)
    lat: float = Field(..., ge=-90.0, le=90.0)
    lon: float = Field(..., ge=-180.0, le=180.0)
    speed_kmh: float = Field(..., ge=0.0)
    timestamp: datetime | None = None
    heading_deg: float | None = None
    accuracy_m: float | None = Field(default=None, ge=0.0)
    battery_level: float | None = Field(default=None, ge=0.0, le=100.0)


class VehicleSchema(BaseModel):
    id: str
    name: str
    license_plate: str
    model: str | None = None
    status: Literal["moving", "stopped", "idle", "offline"]
    ignition: Literal["on", "off"]
    current_speed_kmh: float
    speed_limit_kmh: float
    heading_deg: float
    lat: float
    lon: float
    accuracy_m: float
    last_update: datetime
    battery_level: float | None = None


class TrackingResponseSchema(BaseModel):
    success: bool = True
    action: Literal["created", "updated"]
    vehicle: VehicleSchema
    events: list[RouteEventSchema] = []
    alerts: list[AlertSchema] = []
    completed_trip_id: str | None = None
