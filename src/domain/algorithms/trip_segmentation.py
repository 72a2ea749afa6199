from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Sequence
from uuid import uuid4

from src.domain.exceptions import ReplayCancelled, SequenceError, ValidationError
from src.domain.models import LocationPoint, RouteEvent, RouteEventType, Trip

from .geo_utils import distance_m
from .trip_finalizer import TripAccumulator, finalize_trip


@dataclass(frozen=True, slots=True)
class SegmentationParams:
    # Speeds at or below this are "stopped".
    stop_speed_threshold_kmh: float = 5.0
    # Shorter stops are not surfaced as STOP events.
    min_stop_duration: timedelta = timedelta(minutes=5)
    # A gap strictly longer than this between two fixes closes the trip.
    trip_gap_threshold: timedelta = timedelta(minutes=30)


def _new_id() -> str:
    return str(uuid4())


class TripSegmenter:
    """Streaming trip segmentation for a single vehicle.

    Points must be pushed in non-decreasing timestamp order. `push` returns a
    trip whenever a time gap closes the open one; `finish` closes whatever is
    still open.
    """

    def __init__(
        self,
        vehicle_id: str,
        params: SegmentationParams | None = None,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self.vehicle_id = vehicle_id
        self.params = params or SegmentationParams()
        self._new_id = id_factory
        self._current: TripAccumulator | None = None
        self._last_point: LocationPoint | None = None

    @property
    def has_open_trip(self) -> bool:
        return self._current is not None

    @property
    def last_timestamp(self) -> datetime | None:
        return self._last_point.timestamp if self._last_point is not None else None

    def push(self, point: LocationPoint) -> Trip | None:
        last = self._last_point
        if last is not None and point.timestamp < last.timestamp:
            raise SequenceError(
                f"Vehicle {self.vehicle_id}: point at {point.timestamp.isoformat()} "
                f"is older than previous point at {last.timestamp.isoformat()}"
            )

        closed: Trip | None = None
        if self._current is None:
            self._current = self._open(point)
        elif last is not None and point.timestamp - last.timestamp > self.params.trip_gap_threshold:
            closed = self._close()
            self._current = self._open(point)

        acc = self._current
        prev = acc.points[-1] if acc.points else None
        acc.points.append(point)
        acc.end_time = point.timestamp
        acc.max_speed_kmh = max(acc.max_speed_kmh, point.speed_kmh)
        if prev is not None:
            acc.total_distance_m += distance_m(prev.lat, prev.lon, point.lat, point.lon)

        self._track_stop(acc, point)
        self._last_point = point
        return closed

    def add_event(self, event: RouteEvent) -> None:
        """Attach an externally derived event (speed, geofence) to the open trip."""

        if self._current is None:
            raise RuntimeError(f"Vehicle {self.vehicle_id} has no open trip")
        if event.timestamp < self._current.start_time:
            raise SequenceError(
                f"Event at {event.timestamp.isoformat()} precedes the open trip"
            )
        self._current.events.append(event)

    def finish(self) -> Trip | None:
        if self._current is None:
            return None
        return self._close()

    def _open(self, point: LocationPoint) -> TripAccumulator:
        acc = TripAccumulator(
            vehicle_id=self.vehicle_id,
            start_time=point.timestamp,
            end_time=point.timestamp,
            max_speed_kmh=point.speed_kmh,
        )
        acc.events.append(self._event(RouteEventType.DEPARTURE, point, point.timestamp))
        return acc

    def _close(self) -> Trip:
        acc = self._current
        if acc is None:
            raise RuntimeError(f"Vehicle {self.vehicle_id} has no open trip")
        self._current = None

        if acc.stop_start is not None:
            self._close_stop(acc, acc.end_time)

        last = acc.points[-1]
        acc.events.append(self._event(RouteEventType.ARRIVAL, last, last.timestamp))
        return finalize_trip(acc, trip_id=self._new_id())

    def _track_stop(self, acc: TripAccumulator, point: LocationPoint) -> None:
        if point.speed_kmh <= self.params.stop_speed_threshold_kmh:
            if acc.stop_start is None:
                acc.stop_start = point
        elif acc.stop_start is not None:
            self._close_stop(acc, point.timestamp)

    def _close_stop(self, acc: TripAccumulator, until: datetime) -> None:
        start = acc.stop_start
        acc.stop_start = None
        if start is None:
            return

        duration = until - start.timestamp
        if duration < self.params.min_stop_duration:
            return

        minutes = duration.total_seconds() / 60.0
        acc.events.append(
            self._event(RouteEventType.STOP, start, start.timestamp, duration_min=minutes)
        )
        acc.stopped_time_min += minutes

    def _event(
        self,
        event_type: RouteEventType,
        point: LocationPoint,
        timestamp: datetime,
        duration_min: float | None = None,
    ) -> RouteEvent:
        return RouteEvent(
            id=self._new_id(),
            type=event_type,
            lat=point.lat,
            lon=point.lon,
            timestamp=timestamp,
            duration_min=duration_min,
        )


def segment_trips(
    vehicle_id: str,
    points: Sequence[LocationPoint],
    *,
    params: SegmentationParams | None = None,
    should_cancel: Callable[[], bool] | None = None,
    id_factory: Callable[[], str] = _new_id,
) -> list[Trip]:
    """Partition a time-ordered point list into finalized trips.

    Every input point ends up in exactly one trip, in input order. Raises
    ReplayCancelled (and returns nothing) when `should_cancel` fires.
    """

    if not points:
        raise ValidationError(f"No points to segment for vehicle {vehicle_id}")

    segmenter = TripSegmenter(vehicle_id, params=params, id_factory=id_factory)
    trips: list[Trip] = []
    for point in points:
        if should_cancel is not None and should_cancel():
            raise ReplayCancelled(f"Trip segmentation cancelled for vehicle {vehicle_id}")
        closed = segmenter.push(point)
        if closed is not None:
            trips.append(closed)

    last = segmenter.finish()
    if last is not None:
        trips.append(last)
    return trips
