from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime

from src.app.ports.output import IAlertRepository
from src.domain.exceptions import ValidationError
from src.domain.models import (
    AlertType,
    DailyCount,
    SpeedStats,
    SpeedViolation,
    ViolatorSummary,
)


@dataclass(slots=True)
class SpeedReportService:
    """Speed violation listings and aggregates, built from stored speed alerts."""

    alerts: IAlertRepository
    top_violators: int = 10

    def violations(self, *, start: datetime, end: datetime) -> tuple[SpeedViolation, ...]:
        if start > end:
            raise ValidationError("Report range starts after it ends")

        out: list[SpeedViolation] = []
        for alert in self.alerts.list(start=start, end=end, alert_type=AlertType.SPEED):
            if alert.speed_kmh is None or alert.speed_limit_kmh is None:
                continue
            out.append(
                SpeedViolation(
                    id=alert.id,
                    vehicle_id=alert.vehicle_id,
                    vehicle_name=alert.vehicle_name,
                    speed_kmh=alert.speed_kmh,
                    speed_limit_kmh=alert.speed_limit_kmh,
                    timestamp=alert.timestamp,
                    lat=alert.lat,
                    lon=alert.lon,
                )
            )

        out.sort(key=lambda v: v.timestamp, reverse=True)
        return tuple(out)

    def stats(self, *, start: datetime, end: datetime) -> SpeedStats:
        violations = self.violations(start=start, end=end)
        if not violations:
            return SpeedStats(
                total_violations=0,
                vehicles_with_violations=0,
                average_excess_speed_kmh=0.0,
            )

        by_vehicle: dict[str, list[SpeedViolation]] = {}
        for v in violations:
            by_vehicle.setdefault(v.vehicle_id, []).append(v)

        by_day: Counter[date] = Counter(v.timestamp.date() for v in violations)

        summaries = [
            ViolatorSummary(
                vehicle_id=vehicle_id,
                vehicle_name=items[0].vehicle_name,
                total_violations=len(items),
                average_excess_speed_kmh=sum(v.excess_speed_kmh for v in items)
                / len(items),
                last_violation=max(v.timestamp for v in items),
            )
            for vehicle_id, items in by_vehicle.items()
        ]
        summaries.sort(key=lambda s: (-s.total_violations, s.vehicle_id))

        return SpeedStats(
            total_violations=len(violations),
            vehicles_with_violations=len(by_vehicle),
            average_excess_speed_kmh=sum(v.excess_speed_kmh for v in violations)
            / len(violations),
            violations_by_day=tuple(
                DailyCount(day=day, count=count) for day, count in sorted(by_day.items())
            ),
            top_violators=tuple(summaries[: self.top_violators]),
        )
