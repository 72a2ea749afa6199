from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterator

import httpx
import pytest

from src.adapters.api.dependencies import (
    get_alert_repository,
    get_ingest_service,
    get_replay_service,
    get_report_service,
    get_vehicle_repository,
)
from src.adapters.bootstrap import FleetContainer, build_container
from src.app.config import TrackingSettings
from src.domain.exceptions import StorageError
from src.main import app

T0 = datetime(2024, 3, 4, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def container() -> Iterator[FleetContainer]:
    c = build_container(TrackingSettings(storage_backend="memory"))
    app.dependency_overrides[get_ingest_service] = lambda: c.ingest
    app.dependency_overrides[get_replay_service] = lambda: c.replay
    app.dependency_overrides[get_report_service] = lambda: c.reports
    app.dependency_overrides[get_vehicle_repository] = lambda: c.vehicles
    app.dependency_overrides[get_alert_repository] = lambda: c.alerts
    yield c
    app.dependency_overrides.clear()


def _fix(minutes: float, speed: float = 40.0, lat: float = -23.5505, **extra) -> dict:
    return {
        "license_plate": "ABC-1234",
        "lat": lat,
        "lon": -46.6333,
        "speed_kmh": speed,
        "timestamp": (T0 + timedelta(minutes=minutes)).isoformat(),
        **extra,
    }


def _client(raise_app_exceptions: bool = True) -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
    return httpx.AsyncClient(transport=transport, base_url="http://test")


@pytest.mark.unit
@pytest.mark.anyio
async def test_health() -> None:
    async with _client() as client:
        resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.unit
@pytest.mark.anyio
async def test_post_tracking_creates_then_updates(container: FleetContainer) -> None:
    async with _client() as client:
        created = await client.post("/tracking", json=_fix(0))
        updated = await client.post("/tracking", json=_fix(1, speed=95.0))

    assert created.status_code == 200
    assert created.json()["action"] == "created"
    body = updated.json()
    assert body["action"] == "updated"
    assert body["vehicle"]["status"] == "moving"
    assert [e["type"] for e in body["events"]] == ["speed_violation"]
    assert body["alerts"][0]["type"] == "speed"


@pytest.mark.unit
@pytest.mark.anyio
async def test_post_tracking_rejects_out_of_order_fix(container: FleetContainer) -> None:
    async with _client() as client:
        await client.post("/tracking", json=_fix(5))
        resp = await client.post("/tracking", json=_fix(4))

    assert resp.status_code == 409
    assert resp.json()["error"] == "SequenceError"


@pytest.mark.unit
@pytest.mark.anyio
async def test_post_tracking_rejects_invalid_payload(container: FleetContainer) -> None:
    naive = _fix(0)
    naive["timestamp"] = "2024-03-04T12:00:00"

    async with _client() as client:
        out_of_range = await client.post("/tracking", json=_fix(0, lat=123.0))
        naive_resp = await client.post("/tracking", json=naive)

    assert out_of_range.status_code == 422
    assert naive_resp.status_code == 422


@pytest.mark.unit
@pytest.mark.anyio
async def test_vehicle_endpoints(container: FleetContainer) -> None:
    async with _client() as client:
        vehicle_id = (await client.post("/tracking", json=_fix(0))).json()["vehicle"]["id"]

        listed = await client.get("/vehicles")
        one = await client.get(f"/vehicles/{vehicle_id}")
        deleted = await client.delete(f"/vehicles/{vehicle_id}")
        missing = await client.get(f"/vehicles/{vehicle_id}")
        deleted_again = await client.delete(f"/vehicles/{vehicle_id}")

    assert [v["license_plate"] for v in listed.json()] == ["ABC-1234"]
    assert one.json()["id"] == vehicle_id
    assert deleted.status_code == 204
    assert missing.status_code == 404
    assert deleted_again.status_code == 404


@pytest.mark.unit
@pytest.mark.anyio
async def test_trips_are_replayed_from_history(container: FleetContainer) -> None:
    async with _client() as client:
        vehicle_id = (await client.post("/tracking", json=_fix(0))).json()["vehicle"]["id"]
        await client.post("/tracking", json=_fix(5, speed=0.0, lat=-23.5515))
        await client.post("/tracking", json=_fix(60, lat=-23.56))

        resp = await client.get(
            "/trips",
            params={
                "vehicle_id": vehicle_id,
                "start": T0.isoformat(),
                "end": (T0 + timedelta(hours=2)).isoformat(),
            },
        )

    assert resp.status_code == 200
    trips = resp.json()
    assert [len(t["points"]) for t in trips] == [2, 1]
    assert trips[0]["events"][0]["type"] == "departure"


@pytest.mark.unit
@pytest.mark.anyio
async def test_trips_require_vehicle_and_ordered_range(container: FleetContainer) -> None:
    async with _client() as client:
        missing = await client.get("/trips")
        inverted = await client.get(
            "/trips",
            params={
                "vehicle_id": "v1",
                "start": (T0 + timedelta(hours=1)).isoformat(),
                "end": T0.isoformat(),
            },
        )

    assert missing.status_code == 422
    assert inverted.status_code == 422


@pytest.mark.unit
@pytest.mark.anyio
async def test_alert_maintenance(container: FleetContainer) -> None:
    async with _client() as client:
        await client.post("/tracking", json=_fix(0, speed=95.0))
        await client.post("/tracking", json=_fix(1, speed=120.0))

        listed = await client.get("/alerts", params={"type": "speed"})
        marked = await client.post("/alerts/mark-all-read")
        cleared = await client.delete("/alerts/read")
        after = await client.get("/alerts")

    assert [a["priority"] for a in listed.json()] == ["critical", "warning"]
    assert marked.status_code == 204
    assert cleared.json() == {"removed": 2}
    assert after.json() == []


@pytest.mark.unit
@pytest.mark.anyio
async def test_speed_reports(container: FleetContainer) -> None:
    params = {"start": T0.isoformat(), "end": (T0 + timedelta(days=1)).isoformat()}
    async with _client() as client:
        await client.post("/tracking", json=_fix(0, speed=90.0))
        await client.post("/tracking", json=_fix(1, speed=110.0))

        violations = await client.get("/reports/violations", params=params)
        stats = await client.get("/reports/speed-stats", params=params)

    assert [v["excess_speed_kmh"] for v in violations.json()] == [30.0, 10.0]
    body = stats.json()
    assert body["total_violations"] == 2
    assert body["vehicles_with_violations"] == 1
    assert body["average_excess_speed_kmh"] == 20.0
    assert body["violations_by_day"] == [{"day": "2024-03-04", "count": 2}]
    assert body["top_violators"][0]["total_violations"] == 2


@pytest.mark.unit
@pytest.mark.anyio
async def test_storage_failure_maps_to_503() -> None:
    class _BrokenReplay:
        def replay(self, **kwargs):
            raise StorageError("history unavailable")

    app.dependency_overrides[get_replay_service] = lambda: _BrokenReplay()
    async with _client() as client:
        resp = await client.get("/trips", params={"vehicle_id": "v1"})
    app.dependency_overrides.clear()

    assert resp.status_code == 503
    assert resp.json()["detail"] == "history unavailable"


@pytest.mark.unit
@pytest.mark.anyio
async def test_unexpected_errors_are_json_500() -> None:
    class _BrokenReports:
        def violations(self, **kwargs):
            raise KeyError("boom")

    app.dependency_overrides[get_report_service] = lambda: _BrokenReports()
    async with _client(raise_app_exceptions=False) as client:
        resp = await client.get("/reports/violations")
    app.dependency_overrides.clear()

    assert resp.status_code == 500
    assert resp.json() == {"detail": "Internal Server Error"}
