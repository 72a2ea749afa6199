from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator


@dataclass(slots=True)
class VehicleLocks:
    """Lock registry keyed by vehicle id.

    All work for one vehicle (live state, trip accumulators, geofence
    debounce) runs under its lock; different vehicles never contend.
    `registry` serialises vehicle lookup-or-create. Locks are never dropped,
    so every caller for an id contends on the same lock.
    """

    registry: threading.Lock = field(default_factory=threading.Lock)
    _locks: dict[str, threading.Lock] = field(default_factory=dict, repr=False)
    _guard: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def lock_for(self, vehicle_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(vehicle_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[vehicle_id] = lock
            return lock

    @contextmanager
    def hold(self, vehicle_id: str) -> Iterator[None]:
        with self.lock_for(vehicle_id):
            yield
