from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping


class IFixQueue(ABC):
    """Messaging port carrying raw GPS fixes to the ingest worker."""

    @abstractmethod
    def publish_fix(self, message: Mapping[str, Any]) -> str:
        """Publish a fix message and return its provider message id."""

    @abstractmethod
    def consume_fixes(
        self, *, max_messages: int = 1, wait_time_s: int = 10
    ) -> list[Mapping[str, Any]]:
        """Consume up to N messages and return decoded message bodies."""
