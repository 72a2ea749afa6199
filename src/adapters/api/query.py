from __future__ import annotations

from datetime import datetime, timedelta, timezone

from src.domain.exceptions import ValidationError
from src.domain.models.tracking import require_aware


def resolve_range(
    start: datetime | None, end: datetime | None, *, default_span: timedelta
) -> tuple[datetime, datetime]:
    """Fill in a missing query range ending now; naive bounds are rejected."""

    end = end or datetime.now(timezone.utc)
    start = start or end - default_span
    require_aware(start)
    require_aware(end)
    if start > end:
        raise ValidationError(
            f"Range starts after it ends: {start.isoformat()} > {end.isoformat()}"
        )
    return start, end
