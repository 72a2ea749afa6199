from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from src.app.config import TrackingSettings
from src.app.ports.output import IPositionHistoryRepository, ITripRepository
from src.domain.algorithms.trip_segmentation import segment_trips
from src.domain.exceptions import ValidationError
from src.domain.models import Trip

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TripReplayService:
    """Rebuilds trips from the position history for a reporting range.

    Read-only on the history log. Trips reach the sink only once the whole
    range has been segmented; a cancelled or failed replay persists nothing.
    """

    positions: IPositionHistoryRepository
    trips: ITripRepository
    settings: TrackingSettings = field(default_factory=TrackingSettings)

    def replay(
        self,
        *,
        vehicle_id: str,
        start: datetime,
        end: datetime,
        persist: bool = False,
        should_cancel: Callable[[], bool] | None = None,
    ) -> list[Trip]:
        if start > end:
            raise ValidationError(
                f"Replay range starts after it ends: {start.isoformat()} > {end.isoformat()}"
            )

        points = self.positions.get_points_in_range(vehicle_id, start, end)
        if not points:
            return []

        trips = segment_trips(
            vehicle_id,
            points,
            params=self.settings.segmentation_params(),
            should_cancel=self._cancel_check(should_cancel),
        )
        logger.debug(
            "Replayed %d points into %d trips for vehicle %s",
            len(points),
            len(trips),
            vehicle_id,
        )

        if persist and trips:
            self.trips.persist_trips(trips)
        return trips

    def _cancel_check(
        self, should_cancel: Callable[[], bool] | None
    ) -> Callable[[], bool] | None:
        timeout_s = self.settings.replay_timeout_s
        if timeout_s is None:
            return should_cancel

        deadline = time.monotonic() + timeout_s

        def _check() -> bool:
            if should_cancel is not None and should_cancel():
                return True
            return time.monotonic() > deadline

        return _check
