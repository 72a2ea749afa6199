from .tracking import (
    ReplayCancelled,
    SequenceError,
    StorageError,
    TrackingError,
    ValidationError,
)

__all__ = [
    "TrackingError",
    "ValidationError",
    "SequenceError",
    "StorageError",
    "ReplayCancelled",
]
