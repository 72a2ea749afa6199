from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Sequence

from src.domain.models import Trip


class ITripRepository(ABC):
    """Port for finalized trips."""

    @abstractmethod
    def persist_trips(self, trips: Sequence[Trip]) -> None:
        """Store all trips or none of them."""

    @abstractmethod
    def list(self, vehicle_id: str, start: datetime, end: datetime) -> tuple[Trip, ...]:
        raise NotImplementedError
