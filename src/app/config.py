from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta, timezone, tzinfo
from typing import Literal, cast
from zoneinfo import ZoneInfo

from src.domain.algorithms.trip_segmentation import SegmentationParams

StorageBackend = Literal["memory", "dynamodb"]


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _env_optional_float(name: str, default: float | None) -> float | None:
    raw = os.getenv(name)
    if raw is None:
        return default
    raw = raw.strip().lower()
    if raw in {"", "none", "off", "0"}:
        return None
    return float(raw)


def _env_str(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    return raw.strip() or None


@dataclass(frozen=True, slots=True)
class TrackingSettings:
    """Tunables of the tracking core.

    Env vars (all optional):
      - FLEET_STOP_SPEED_KMH (default 5)
      - FLEET_MIN_STOP_S (default 300)
      - FLEET_TRIP_GAP_S (default 1800)
      - FLEET_MOVING_SPEED_KMH (default 5)
      - FLEET_DEFAULT_SPEED_LIMIT_KMH (default 80)
      - FLEET_SPEED_CRITICAL_MARGIN_KMH (default 20)
      - FLEET_OFFLINE_AFTER_S (default 600)
      - FLEET_REPLAY_TIMEOUT_S (default 30; "off" disables)
      - FLEET_TIMEZONE (default UTC; used for geofence time windows)
      - FLEET_STORAGE_BACKEND (memory | dynamodb, default memory)
      - FLEET_GEOFENCES_PATH (JSON file with geofence definitions)
    """

    stop_speed_threshold_kmh: float = 5.0
    min_stop_duration_s: float = 300.0
    trip_gap_threshold_s: float = 1800.0
    moving_speed_threshold_kmh: float = 5.0
    default_speed_limit_kmh: float = 80.0
    default_heading_deg: float = 0.0
    default_accuracy_m: float = 5.0
    speed_critical_margin_kmh: float = 20.0
    offline_after_s: float = 600.0
    replay_timeout_s: float | None = 30.0
    timezone_name: str = "UTC"
    storage_backend: StorageBackend = "memory"
    geofences_path: str | None = None

    @staticmethod
    def from_env() -> "TrackingSettings":
        backend = (_env_str("FLEET_STORAGE_BACKEND") or "memory").lower()
        if backend not in {"memory", "dynamodb"}:
            raise RuntimeError(f"Unsupported FLEET_STORAGE_BACKEND: {backend}")

        return TrackingSettings(
            stop_speed_threshold_kmh=_env_float("FLEET_STOP_SPEED_KMH", 5.0),
            min_stop_duration_s=_env_float("FLEET_MIN_STOP_S", 300.0),
            trip_gap_threshold_s=_env_float("FLEET_TRIP_GAP_S", 1800.0),
            moving_speed_threshold_kmh=_env_float("FLEET_MOVING_SPEED_KMH", 5.0),
            default_speed_limit_kmh=_env_float("FLEET_DEFAULT_SPEED_LIMIT_KMH", 80.0),
            speed_critical_margin_kmh=_env_float(
                "FLEET_SPEED_CRITICAL_MARGIN_KMH", 20.0
            ),
            offline_after_s=_env_float("FLEET_OFFLINE_AFTER_S", 600.0),
            replay_timeout_s=_env_optional_float("FLEET_REPLAY_TIMEOUT_S", 30.0),
            timezone_name=_env_str("FLEET_TIMEZONE") or "UTC",
            storage_backend=cast(StorageBackend, backend),
            geofences_path=_env_str("FLEET_GEOFENCES_PATH"),
        )

    def segmentation_params(self) -> SegmentationParams:
        return SegmentationParams(
            stop_speed_threshold_kmh=self.stop_speed_threshold_kmh,
            min_stop_duration=timedelta(seconds=self.min_stop_duration_s),
            trip_gap_threshold=timedelta(seconds=self.trip_gap_threshold_s),
        )

    def tz(self) -> tzinfo:
        if self.timezone_name.upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.timezone_name)
