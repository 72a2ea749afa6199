from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from src.domain.models import LocationPoint, PositionRecord


class IPositionHistoryRepository(ABC):
    """Port for the append-only position history log."""

    @abstractmethod
    def append(self, record: PositionRecord) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_points_in_range(
        self, vehicle_id: str, start: datetime, end: datetime
    ) -> tuple[LocationPoint, ...]:
        """Points with start <= timestamp <= end, ascending by timestamp."""
