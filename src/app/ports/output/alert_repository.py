from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from src.domain.models import Alert, AlertType


class IAlertRepository(ABC):
    """Port for persisting and querying alerts."""

    @abstractmethod
    def persist(self, alert: Alert) -> None:
        raise NotImplementedError

    @abstractmethod
    def list(
        self,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        alert_type: AlertType | None = None,
    ) -> tuple[Alert, ...]:
        """Alerts in [start, end], newest first."""

    @abstractmethod
    def mark_all_read(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear_read(self) -> int:
        """Delete read alerts and return how many were removed."""
