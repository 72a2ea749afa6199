from __future__ import annotations

from datetime import datetime, timedelta

from fastapi import APIRouter, Depends

from src.adapters.api.dependencies import get_report_service
from src.adapters.api.query import resolve_range
from src.adapters.api.schemas.alerts import (
    DailyCountSchema,
    SpeedStatsSchema,
    SpeedViolationSchema,
    ViolatorSummarySchema,
)
from src.app.services.speed_report_service import SpeedReportService

router = APIRouter(prefix="/reports", tags=["reports"])

_DEFAULT_SPAN = timedelta(days=30)


@router.get("/violations", response_model=list[SpeedViolationSchema])
def list_violations(
    start: datetime | None = None,
    end: datetime | None = None,
    service: SpeedReportService = Depends(get_report_service),
) -> list[SpeedViolationSchema]:
    start, end = resolve_range(start, end, default_span=_DEFAULT_SPAN)
    return [
        SpeedViolationSchema(
            id=v.id,
            vehicle_id=v.vehicle_id,
            vehicle_name=v.vehicle_name,
            speed_kmh=v.speed_kmh,
            speed_limit_kmh=v.speed_limit_kmh,
            excess_speed_kmh=v.excess_speed_kmh,
            timestamp=v.timestamp,
            lat=v.lat,
            lon=v.lon,
        )
        for v in service.violations(start=start, end=end)
    ]


@router.get("/speed-stats", response_model=SpeedStatsSchema)
def speed_stats(
    start: datetime | None = None,
    end: datetime | None = None,
    service: SpeedReportService = Depends(get_report_service),
) -> SpeedStatsSchema:
    start, end = resolve_range(start, end, default_span=_DEFAULT_SPAN)
    stats = service.stats(start=start, end=end)
    return SpeedStatsSchema(
        total_violations=stats.total_violations,
        vehicles_with_violations=stats.vehicles_with_violations,
        average_excess_speed_kmh=stats.average_excess_speed_kmh,
        violations_by_day=[
            DailyCountSchema(day=d.day, count=d.count) for d in stats.violations_by_day
        ],
        top_violators=[
            ViolatorSummarySchema(
                vehicle_id=s.vehicle_id,
                vehicle_name=s.vehicle_name,
                total_violations=s.total_violations,
                average_excess_speed_kmh=s.average_excess_speed_kmh,
                last_violation=s.last_violation,
            )
            for s in stats.top_violators
        ],
    )
