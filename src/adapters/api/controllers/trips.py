from __future__ import annotations

from datetime import datetime, timedelta

from fastapi import APIRouter, Depends

from src.adapters.api.dependencies import get_replay_service
from src.adapters.api.query import resolve_range
from src.adapters.api.schemas.trips import TripSchema
from src.adapters.serialization import trip_to_dict
from src.app.services.trip_replay_service import TripReplayService

router = APIRouter(tags=["trips"])


@router.get("/trips", response_model=list[TripSchema])
def list_trips(
    vehicle_id: str,
    start: datetime | None = None,
    end: datetime | None = None,
    service: TripReplayService = Depends(get_replay_service),
) -> list[TripSchema]:
    """Trips rebuilt from the position history (default: the last 24 hours)."""

    start, end = resolve_range(start, end, default_span=timedelta(days=1))
    trips = service.replay(vehicle_id=vehicle_id, start=start, end=end)
    return [TripSchema(**trip_to_dict(t)) for t in trips]
