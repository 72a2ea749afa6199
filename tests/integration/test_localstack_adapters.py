from __future__ import annotations

import os
import time
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from src.adapters.aws import dynamodb_client, sqs_client
from src.adapters.messaging.sqs_queue_adapter import SQSFixQueue
from src.adapters.persistence.dynamodb_repositories import (
    DynamoDbAlertRepository,
    DynamoDbPositionHistoryRepository,
    DynamoDbTripRepository,
    DynamoDbVehicleRepository,
)
from src.domain.algorithms.trip_segmentation import segment_trips
from src.domain.models import (
    Alert,
    AlertPriority,
    AlertType,
    IgnitionStatus,
    LocationPoint,
    PositionRecord,
    Vehicle,
    VehicleStatus,
)

T0 = datetime(2024, 3, 4, 12, 0, tzinfo=timezone.utc)


def _ensure_table(name: str, hash_key: str, range_key: str | None = None) -> str:
    ddb = dynamodb_client()
    if name in ddb.list_tables().get("TableNames", []):
        return name

    attributes = [{"AttributeName": hash_key, "AttributeType": "S"}]
    schema = [{"AttributeName": hash_key, "KeyType": "HASH"}]
    if range_key:
        attributes.append({"AttributeName": range_key, "AttributeType": "S"})
        schema.append({"AttributeName": range_key, "KeyType": "RANGE"})

    ddb.create_table(
        TableName=name,
        BillingMode="PAY_PER_REQUEST",
        AttributeDefinitions=attributes,
        KeySchema=schema,
    )
    ddb.get_waiter("table_exists").wait(TableName=name)
    return name


def _point(minutes: float, speed: float = 40.0) -> LocationPoint:
    return LocationPoint(
        lat=-23.55 - minutes * 0.001,
        lon=-46.63,
        speed_kmh=speed,
        heading_deg=180.0,
        timestamp=T0 + timedelta(minutes=minutes),
    )


@pytest.mark.integration
def test_sqs_fix_queue_publish_and_consume(require_localstack: str) -> None:
    queue_url = sqs_client().create_queue(QueueName="fleettrack-test-fixes")["QueueUrl"]
    os.environ["SQS_QUEUE_URL"] = queue_url

    queue = SQSFixQueue()
    fix = {"license_plate": "ABC-1234", "lat": -23.55, "lon": -46.63, "speed_kmh": 30}
    assert queue.publish_fix(fix)

    # Retry a bit to account for async delivery.
    deadline = time.time() + 5.0
    received: list[dict] = []
    while time.time() < deadline and not received:
        received = [dict(m) for m in queue.consume_fixes(max_messages=1, wait_time_s=1)]
        if not received:
            time.sleep(0.1)

    assert received == [fix]


@pytest.mark.integration
def test_dynamodb_vehicle_repository(require_localstack: str) -> None:
    repo = DynamoDbVehicleRepository(table_name=_ensure_table("fleettrack-test-vehicles", "id"))
    vehicle_id = str(uuid4())
    plate = f"IT-{vehicle_id[:8]}"
    vehicle = Vehicle(
        id=vehicle_id,
        name="Integration truck",
        license_plate=plate,
        status=VehicleStatus.MOVING,
        ignition=IgnitionStatus.ON,
        current_speed_kmh=42.0,
        speed_limit_kmh=80.0,
        heading_deg=90.0,
        lat=-23.55,
        lon=-46.63,
        accuracy_m=5.0,
        last_update=T0,
    )

    repo.save(vehicle)

    assert repo.get(vehicle_id) == vehicle
    assert repo.get_by_license_plate(plate.lower()) == vehicle
    assert repo.delete(vehicle_id)
    assert repo.get(vehicle_id) is None
    assert not repo.delete(vehicle_id)


@pytest.mark.integration
def test_dynamodb_position_history_range_query(require_localstack: str) -> None:
    repo = DynamoDbPositionHistoryRepository(
        table_name=_ensure_table("fleettrack-test-positions", "vehicle_id", "recorded_at")
    )
    vehicle_id = str(uuid4())
    for minutes in (10, 0, 5, 30):
        repo.append(
            PositionRecord(
                id=str(uuid4()),
                vehicle_id=vehicle_id,
                license_plate="IT-1",
                point=_point(minutes),
                status=VehicleStatus.MOVING,
                ignition=IgnitionStatus.ON,
            )
        )

    points = repo.get_points_in_range(vehicle_id, T0, T0 + timedelta(minutes=10))

    assert [p.timestamp for p in points] == [T0 + timedelta(minutes=m) for m in (0, 5, 10)]


@pytest.mark.integration
def test_dynamodb_trip_repository_writes_batch(require_localstack: str) -> None:
    repo = DynamoDbTripRepository(
        table_name=_ensure_table("fleettrack-test-trips", "vehicle_id", "started_at")
    )
    vehicle_id = str(uuid4())
    trips = segment_trips(vehicle_id, [_point(0), _point(5), _point(60), _point(65)])

    repo.persist_trips(trips)

    stored = repo.list(vehicle_id, T0, T0 + timedelta(hours=2))
    assert [t.id for t in stored] == [t.id for t in reversed(trips)]


@pytest.mark.integration
def test_dynamodb_alert_repository(require_localstack: str) -> None:
    table = f"fleettrack-test-alerts-{uuid4().hex[:8]}"
    repo = DynamoDbAlertRepository(table_name=_ensure_table(table, "id"))
    for i, alert_type in enumerate((AlertType.SPEED, AlertType.GEOFENCE_EXIT)):
        repo.persist(
            Alert(
                id=f"a{i}",
                type=alert_type,
                priority=AlertPriority.WARNING,
                vehicle_id="v1",
                vehicle_name="V1",
                message="integration",
                timestamp=T0 + timedelta(minutes=i),
            )
        )

    assert [a.id for a in repo.list()] == ["a1", "a0"]
    assert [a.id for a in repo.list(alert_type=AlertType.SPEED)] == ["a0"]

    repo.mark_all_read()
    assert repo.clear_read() == 2
    assert repo.list() == ()
