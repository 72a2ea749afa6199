from __future__ import annotations

import json
import os
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Iterator, Mapping, Sequence

from botocore.exceptions import BotoCoreError, ClientError

from src.adapters.aws import dynamodb_client
from src.adapters.serialization import (
    alert_from_dict,
    alert_to_dict,
    location_point_from_dict,
    location_point_to_dict,
    trip_from_dict,
    trip_to_dict,
    vehicle_from_dict,
    vehicle_to_dict,
)
from src.app.ports.output import (
    IAlertRepository,
    IPositionHistoryRepository,
    ITripRepository,
    IVehicleRepository,
)
from src.domain.exceptions import StorageError
from src.domain.models import Alert, AlertType, LocationPoint, PositionRecord, Trip, Vehicle

# DynamoDB caps a single transaction at 100 items.
_TRANSACT_CHUNK = 100


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    try:
        yield
    except (ClientError, BotoCoreError) as exc:
        raise StorageError(f"DynamoDB {action} failed: {exc}") from exc


def sort_key(ts: datetime) -> str:
    """Fixed-width UTC timestamp; lexicographic order equals time order."""

    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _payload(item: Mapping[str, Any]) -> dict[str, Any]:
    return json.loads(item["payload"]["S"])


def _paginate(operation: str, **kwargs: Any) -> Iterator[Mapping[str, Any]]:
    ddb = dynamodb_client()
    call = getattr(ddb, operation)
    while True:
        resp = call(**kwargs)
        yield from resp.get("Items", []) or []
        last_key = resp.get("LastEvaluatedKey")
        if not last_key:
            return
        kwargs["ExclusiveStartKey"] = last_key


@dataclass(slots=True)
class DynamoDbVehicleRepository(IVehicleRepository):
    """Live vehicle state, one item per vehicle.

    Env vars:
      - FLEET_VEHICLES_TABLE (default: fleettrack-vehicles)
      - ENDPOINT_URL (preferred for LocalStack)
      - AWS_REGION

    Key: id (S). Plate lookups scan on the case-folded `plate_key`.
    """

    table_name: str | None = None

    def _table(self) -> str:
        return self.table_name or os.getenv("FLEET_VEHICLES_TABLE") or "fleettrack-vehicles"

    def get(self, vehicle_id: str) -> Vehicle | None:
        with _storage_errors("get vehicle"):
            resp = dynamodb_client().get_item(
                TableName=self._table(),
                Key={"id": {"S": vehicle_id}},
                ConsistentRead=True,
            )
        item = resp.get("Item")
        return vehicle_from_dict(_payload(item)) if item else None

    def get_by_license_plate(self, license_plate: str) -> Vehicle | None:
        with _storage_errors("scan vehicles"):
            items = list(
                _paginate(
                    "scan",
                    TableName=self._table(),
                    FilterExpression="plate_key = :p",
                    ExpressionAttributeValues={":p": {"S": license_plate.strip().casefold()}},
                )
            )
        return vehicle_from_dict(_payload(items[0])) if items else None

    def list(self) -> tuple[Vehicle, ...]:
        with _storage_errors("scan vehicles"):
            items = list(_paginate("scan", TableName=self._table()))
        return tuple(vehicle_from_dict(_payload(i)) for i in items)

    def save(self, vehicle: Vehicle) -> None:
        with _storage_errors("put vehicle"):
            dynamodb_client().put_item(
                TableName=self._table(),
                Item={
                    "id": {"S": vehicle.id},
                    "plate_key": {"S": vehicle.license_plate.strip().casefold()},
                    "payload": {"S": json.dumps(vehicle_to_dict(vehicle))},
                },
            )

    def delete(self, vehicle_id: str) -> bool:
        with _storage_errors("delete vehicle"):
            resp = dynamodb_client().delete_item(
                TableName=self._table(),
                Key={"id": {"S": vehicle_id}},
                ReturnValues="ALL_OLD",
            )
        return bool(resp.get("Attributes"))


@dataclass(slots=True)
class DynamoDbPositionHistoryRepository(IPositionHistoryRepository):
    """Append-only position log.

    Env vars:
      - FLEET_POSITIONS_TABLE (default: fleettrack-positions)

    Keys: vehicle_id (S, hash), recorded_at (S, range) = "<utc ts>#<record id>".
    """

    table_name: str | None = None

    def _table(self) -> str:
        return self.table_name or os.getenv("FLEET_POSITIONS_TABLE") or "fleettrack-positions"

    def append(self, record: PositionRecord) -> None:
        body = {
            "id": record.id,
            "license_plate": record.license_plate,
            "status": record.status.value,
            "ignition": record.ignition.value,
            "point": location_point_to_dict(record.point),
        }
        with _storage_errors("append position"):
            dynamodb_client().put_item(
                TableName=self._table(),
                Item={
                    "vehicle_id": {"S": record.vehicle_id},
                    "recorded_at": {"S": f"{sort_key(record.point.timestamp)}#{record.id}"},
                    "payload": {"S": json.dumps(body)},
                },
            )

    def get_points_in_range(
        self, vehicle_id: str, start: datetime, end: datetime
    ) -> tuple[LocationPoint, ...]:
        with _storage_errors("query positions"):
            items = list(
                _paginate(
                    "query",
                    TableName=self._table(),
                    KeyConditionExpression="vehicle_id = :v AND recorded_at BETWEEN :s AND :e",
                    ExpressionAttributeValues={
                        ":v": {"S": vehicle_id},
                        ":s": {"S": sort_key(start)},
                        # "~" sorts after "#", so records at exactly `end` are included.
                        ":e": {"S": f"{sort_key(end)}~"},
                    },
                    ScanIndexForward=True,
                    ConsistentRead=True,
                )
            )
        points = [location_point_from_dict(_payload(i)["point"]) for i in items]
        points.sort(key=lambda p: p.timestamp)
        return tuple(points)


@dataclass(slots=True)
class DynamoDbTripRepository(ITripRepository):
    """Finalized trips.

    Env vars:
      - FLEET_TRIPS_TABLE (default: fleettrack-trips)

    Keys: vehicle_id (S, hash), started_at (S, range) = "<utc start>#<trip id>".
    A batch is written with TransactWriteItems; batches above 100 trips are
    split and are only atomic per chunk.
    """

    table_name: str | None = None

    def _table(self) -> str:
        return self.table_name or os.getenv("FLEET_TRIPS_TABLE") or "fleettrack-trips"

    def persist_trips(self, trips: Sequence[Trip]) -> None:
        table = self._table()
        ops = [
            {
                "Put": {
                    "TableName": table,
                    "Item": {
                        "vehicle_id": {"S": trip.vehicle_id},
                        "started_at": {"S": f"{sort_key(trip.start_time)}#{trip.id}"},
                        "payload": {"S": json.dumps(trip_to_dict(trip))},
                    },
                }
            }
            for trip in trips
        ]
        ddb = dynamodb_client()
        with _storage_errors("write trips"):
            for i in range(0, len(ops), _TRANSACT_CHUNK):
                ddb.transact_write_items(TransactItems=ops[i : i + _TRANSACT_CHUNK])

    def list(self, vehicle_id: str, start: datetime, end: datetime) -> tuple[Trip, ...]:
        with _storage_errors("query trips"):
            items = list(
                _paginate(
                    "query",
                    TableName=self._table(),
                    KeyConditionExpression="vehicle_id = :v AND started_at BETWEEN :s AND :e",
                    ExpressionAttributeValues={
                        ":v": {"S": vehicle_id},
                        ":s": {"S": sort_key(start)},
                        ":e": {"S": f"{sort_key(end)}~"},
                    },
                    ScanIndexForward=False,
                )
            )
        trips = [trip_from_dict(_payload(i)) for i in items]
        return tuple(t for t in trips if t.end_time <= end)


@dataclass(slots=True)
class DynamoDbAlertRepository(IAlertRepository):
    """Alerts keyed by id.

    Env vars:
      - FLEET_ALERTS_TABLE (default: fleettrack-alerts)

    Listing scans the table and filters client side.
    """

    table_name: str | None = None

    def _table(self) -> str:
        return self.table_name or os.getenv("FLEET_ALERTS_TABLE") or "fleettrack-alerts"

    def _put(self, alert: Alert) -> None:
        dynamodb_client().put_item(
            TableName=self._table(),
            Item={
                "id": {"S": alert.id},
                "is_read": {"BOOL": alert.read},
                "payload": {"S": json.dumps(alert_to_dict(alert))},
            },
        )

    def _scan(self) -> list[Alert]:
        return [alert_from_dict(_payload(i)) for i in _paginate("scan", TableName=self._table())]

    def persist(self, alert: Alert) -> None:
        with _storage_errors("put alert"):
            self._put(alert)

    def list(
        self,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        alert_type: AlertType | None = None,
    ) -> tuple[Alert, ...]:
        with _storage_errors("scan alerts"):
            alerts = self._scan()
        selected = [
            a
            for a in alerts
            if (start is None or a.timestamp >= start)
            and (end is None or a.timestamp <= end)
            and (alert_type is None or a.type is alert_type)
        ]
        selected.sort(key=lambda a: a.timestamp, reverse=True)
        return tuple(selected)

    def mark_all_read(self) -> None:
        with _storage_errors("mark alerts read"):
            for alert in self._scan():
                if not alert.read:
                    self._put(replace(alert, read=True))

    def clear_read(self) -> int:
        ddb = dynamodb_client()
        removed = 0
        with _storage_errors("clear read alerts"):
            for alert in self._scan():
                if alert.read:
                    ddb.delete_item(TableName=self._table(), Key={"id": {"S": alert.id}})
                    removed += 1
        return removed
