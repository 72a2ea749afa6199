from .alert_repository import IAlertRepository
from .geofence_repository import IGeofenceRepository
from .notification_sink import INotificationSink
from .position_history_repository import IPositionHistoryRepository
from .queue_service import IFixQueue
from .trip_repository import ITripRepository
from .vehicle_repository import IVehicleRepository

__all__ = [
    "IAlertRepository",
    "IFixQueue",
    "IGeofenceRepository",
    "INotificationSink",
    "IPositionHistoryRepository",
    "ITripRepository",
    "IVehicleRepository",
]
