class TrackingError(Exception):
    """Base exception for fleet tracking failures."""


class ValidationError(TrackingError, ValueError):
    """Raised when an input is malformed (non-finite coordinates, negative speed, ...)."""


class SequenceError(TrackingError):
    """Raised when fixes for one vehicle arrive out of timestamp order."""


class StorageError(TrackingError):
    """Raised when a storage collaborator fails."""


class ReplayCancelled(TrackingError):
    """Raised when a trip replay is cancelled before it finished."""
