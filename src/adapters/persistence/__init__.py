from .dynamodb_repositories import (
    DynamoDbAlertRepository,
    DynamoDbPositionHistoryRepository,
    DynamoDbTripRepository,
    DynamoDbVehicleRepository,
)
from .local_geofence_repository import LocalGeofenceRepository
from .memory_repositories import (
    InMemoryAlertRepository,
    InMemoryGeofenceRepository,
    InMemoryPositionHistoryRepository,
    InMemoryTripRepository,
    InMemoryVehicleRepository,
)

__all__ = [
    "DynamoDbAlertRepository",
    "DynamoDbPositionHistoryRepository",
    "DynamoDbTripRepository",
    "DynamoDbVehicleRepository",
    "InMemoryAlertRepository",
    "InMemoryGeofenceRepository",
    "InMemoryPositionHistoryRepository",
    "InMemoryTripRepository",
    "InMemoryVehicleRepository",
    "LocalGeofenceRepository",
]
