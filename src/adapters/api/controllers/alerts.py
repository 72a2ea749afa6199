from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response

from src.adapters.api.dependencies import get_alert_repository
from src.adapters.api.schemas.alerts import AlertSchema, ClearedAlertsSchema
from src.adapters.serialization import alert_to_dict
from src.app.ports.output import IAlertRepository
from src.domain.models import AlertType
from src.domain.models.tracking import require_aware

router = APIRouter(tags=["alerts"])


@router.get("/alerts", response_model=list[AlertSchema])
def list_alerts(
    start: datetime | None = None,
    end: datetime | None = None,
    alert_type: AlertType | None = Query(default=None, alias="type"),
    repo: IAlertRepository = Depends(get_alert_repository),
) -> list[AlertSchema]:
    for bound in (start, end):
        if bound is not None:
            require_aware(bound)
    alerts = repo.list(start=start, end=end, alert_type=alert_type)
    return [AlertSchema(**alert_to_dict(a)) for a in alerts]


@router.post("/alerts/mark-all-read", status_code=204)
def mark_all_read(repo: IAlertRepository = Depends(get_alert_repository)) -> Response:
    repo.mark_all_read()
    return Response(status_code=204)


@router.delete("/alerts/read", response_model=ClearedAlertsSchema)
def clear_read(repo: IAlertRepository = Depends(get_alert_repository)) -> ClearedAlertsSchema:
    return ClearedAlertsSchema(removed=repo.clear_read())
