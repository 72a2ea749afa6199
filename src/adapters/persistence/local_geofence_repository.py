from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from src.adapters.serialization import geofence_from_dict
from src.app.ports.output import IGeofenceRepository
from src.domain.models import Geofence

from .memory_repositories import InMemoryGeofenceRepository

logger = logging.getLogger(__name__)


def load_geofences(path: str | Path) -> tuple[Geofence, ...]:
    """Read geofence definitions from a JSON file (a list, or {"geofences": [...]})."""

    with Path(path).open("r", encoding="utf-8") as fp:
        raw = json.load(fp)

    items = raw.get("geofences", []) if isinstance(raw, dict) else raw
    return tuple(geofence_from_dict(item) for item in items)


@dataclass(slots=True)
class LocalGeofenceRepository(IGeofenceRepository):
    """Geofences loaded once from a local JSON file.

    Env vars:
      - FLEET_GEOFENCES_PATH: path to the JSON file (missing file = no geofences)

    `last_triggered` updates are kept in memory only.
    """

    path: str | Path | None = None
    _loaded: InMemoryGeofenceRepository | None = field(default=None, repr=False)

    def _repo(self) -> InMemoryGeofenceRepository:
        if self._loaded is None:
            value = self.path or os.getenv("FLEET_GEOFENCES_PATH")
            geofences: tuple[Geofence, ...] = ()
            if value and Path(value).exists():
                geofences = load_geofences(value)
                logger.info("Loaded %d geofences from %s", len(geofences), value)
            elif value:
                logger.warning("Geofence file %s not found; no geofences loaded", value)
            self._loaded = InMemoryGeofenceRepository.of(geofences)
        return self._loaded

    def list(self) -> tuple[Geofence, ...]:
        return self._repo().list()

    def list_for_vehicle(self, vehicle_id: str) -> tuple[Geofence, ...]:
        return self._repo().list_for_vehicle(vehicle_id)

    def mark_triggered(self, geofence_id: str, at: datetime) -> None:
        self._repo().mark_triggered(geofence_id, at)
