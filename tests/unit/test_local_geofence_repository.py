from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from src.adapters.persistence.local_geofence_repository import (
    LocalGeofenceRepository,
    load_geofences,
)

GEOFENCES = {
    "geofences": [
        {
            "id": "depot",
            "name": "Depot",
            "type": "circle",
            "center": {"lat": -23.5505, "lon": -46.6333},
            "radius_m": 500,
            "vehicle_ids": ["v1"],
            "rules": [{"type": "entry"}],
        },
        {
            "id": "yard",
            "name": "Yard",
            "type": "polygon",
            "active": False,
            "points": [
                {"lat": 0, "lon": 0},
                {"lat": 0, "lon": 1},
                {"lat": 1, "lon": 1},
            ],
            "vehicle_ids": ["v1"],
        },
    ]
}


@pytest.fixture
def geofences_file(tmp_path: Path) -> Path:
    path = tmp_path / "geofences.json"
    path.write_text(json.dumps(GEOFENCES), encoding="utf-8")
    return path


def test_load_geofences_accepts_list_or_wrapper(tmp_path: Path, geofences_file: Path) -> None:
    bare = tmp_path / "bare.json"
    bare.write_text(json.dumps(GEOFENCES["geofences"]), encoding="utf-8")

    assert [g.id for g in load_geofences(geofences_file)] == ["depot", "yard"]
    assert [g.id for g in load_geofences(bare)] == ["depot", "yard"]


def test_repository_filters_active_assigned(geofences_file: Path) -> None:
    repo = LocalGeofenceRepository(path=geofences_file)

    assert len(repo.list()) == 2
    assert [g.id for g in repo.list_for_vehicle("v1")] == ["depot"]
    assert repo.list_for_vehicle("v2") == ()


def test_mark_triggered_is_kept_in_memory(geofences_file: Path) -> None:
    repo = LocalGeofenceRepository(path=geofences_file)
    at = datetime(2024, 3, 4, 12, 0, tzinfo=timezone.utc)

    repo.mark_triggered("depot", at)

    (depot,) = repo.list_for_vehicle("v1")
    assert depot.last_triggered == at


def test_path_from_env(monkeypatch: pytest.MonkeyPatch, geofences_file: Path) -> None:
    monkeypatch.setenv("FLEET_GEOFENCES_PATH", str(geofences_file))
    assert len(LocalGeofenceRepository().list()) == 2


def test_missing_file_means_no_geofences(tmp_path: Path) -> None:
    assert LocalGeofenceRepository(path=tmp_path / "nope.json").list() == ()
