from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response

from src.adapters.api.dependencies import get_ingest_service, get_vehicle_repository
from src.adapters.api.schemas.tracking import VehicleSchema
from src.adapters.serialization import vehicle_to_dict
from src.app.ports.output import IVehicleRepository
from src.app.services.ingest_service import FixIngestService

router = APIRouter(tags=["vehicles"])


@router.get("/vehicles", response_model=list[VehicleSchema])
def list_vehicles(
    repo: IVehicleRepository = Depends(get_vehicle_repository),
) -> list[VehicleSchema]:
    vehicles = sorted(repo.list(), key=lambda v: v.name.casefold())
    return [VehicleSchema(**vehicle_to_dict(v)) for v in vehicles]


@router.get("/vehicles/{vehicle_id}", response_model=VehicleSchema)
def get_vehicle(
    vehicle_id: str,
    repo: IVehicleRepository = Depends(get_vehicle_repository),
) -> VehicleSchema:
    vehicle = repo.get(vehicle_id)
    if vehicle is None:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return VehicleSchema(**vehicle_to_dict(vehicle))


@router.delete("/vehicles/{vehicle_id}", status_code=204)
def delete_vehicle(
    vehicle_id: str,
    service: FixIngestService = Depends(get_ingest_service),
) -> Response:
    if not service.delete_vehicle(vehicle_id):
        raise HTTPException(status_code=404, detail="Vehicle not found")
    return Response(status_code=204)
