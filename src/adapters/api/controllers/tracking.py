from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from src.adapters.api.dependencies import get_ingest_service
from src.adapters.api.schemas.alerts import AlertSchema
from src.adapters.api.schemas.tracking import (
    TrackingRequestSchema,
    TrackingResponseSchema,
    VehicleSchema,
)
from src.adapters.api.schemas.trips import RouteEventSchema
from src.adapters.serialization import alert_to_dict, route_event_to_dict, vehicle_to_dict
from src.app.services.ingest_service import FixIngestService

router = APIRouter(tags=["tracking"])


@router.post("/tracking", response_model=TrackingResponseSchema)
def ingest_fix(
    req: TrackingRequestSchema,
    service: FixIngestService = Depends(get_ingest_service),
) -> TrackingResponseSchema:
    result = service.ingest_fix(
        req.license_plate,
        req.lat,
        req.lon,
        req.speed_kmh,
        req.timestamp or datetime.now(timezone.utc),
        heading_deg=req.heading_deg,
        accuracy_m=req.accuracy_m,
        battery_level=req.battery_level,
    )
    return TrackingResponseSchema(
        action="created" if result.created else "updated",
        vehicle=VehicleSchema(**vehicle_to_dict(result.vehicle)),
        events=[RouteEventSchema(**route_event_to_dict(e)) for e in result.events],
        alerts=[AlertSchema(**alert_to_dict(a)) for a in result.alerts],
        completed_trip_id=result.completed_trip.id if result.completed_trip else None,
    )
