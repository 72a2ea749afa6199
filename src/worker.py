from __future__ import annotations

import logging
import os
import time
from datetime import datetime, timezone
from typing import Any, Mapping

from src.adapters.bootstrap import FleetContainer, build_container
from src.adapters.messaging.sqs_queue_adapter import SQSFixQueue
from src.adapters.serialization import dt_from_str
from src.app.ports.output import IFixQueue
from src.app.services.ingest_service import IngestResult
from src.domain.exceptions import StorageError, TrackingError, ValidationError

logger = logging.getLogger("fleettrack.worker")


def _opt_float(raw: Any) -> float | None:
    return float(raw) if raw is not None else None


def ingest_message(container: FleetContainer, msg: Mapping[str, Any]) -> IngestResult:
    """Apply one queued fix; malformed messages raise ValidationError."""

    identifier = str(msg.get("vehicle_id") or msg.get("license_plate") or "")
    raw_ts = msg.get("timestamp")
    timestamp = dt_from_str(raw_ts) if isinstance(raw_ts, str) else datetime.now(timezone.utc)
    try:
        lat = float(msg["lat"])
        lon = float(msg["lon"])
        speed_kmh = float(msg["speed_kmh"])
        heading_deg = _opt_float(msg.get("heading_deg"))
        accuracy_m = _opt_float(msg.get("accuracy_m"))
        battery_level = _opt_float(msg.get("battery_level"))
    except (KeyError, TypeError, ValueError) as exc:
        raise ValidationError(f"Malformed fix message: {exc!r}") from exc

    return container.ingest.ingest_fix(
        identifier,
        lat,
        lon,
        speed_kmh,
        timestamp,
        heading_deg=heading_deg,
        accuracy_m=accuracy_m,
        battery_level=battery_level,
    )


def drain_once(
    container: FleetContainer, queue: IFixQueue, *, max_messages: int = 10, wait_time_s: int = 10
) -> tuple[int, int]:
    """Consume one batch; returns (messages received, fixes applied)."""

    messages = queue.consume_fixes(max_messages=max_messages, wait_time_s=wait_time_s)
    applied = 0
    for msg in messages:
        try:
            ingest_message(container, msg)
        except StorageError:
            logger.exception("Storage failure while ingesting fix %s", dict(msg))
            continue
        except TrackingError as exc:
            # Already deleted from the queue.
            logger.warning("Rejected fix %s: %s", dict(msg), exc)
            continue
        applied += 1
    return len(messages), applied


def main() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    container = build_container()
    queue = SQSFixQueue()

    loop = os.getenv("WORKER_LOOP", "1").strip().lower() not in {"0", "false", "no"}
    sweep_every_s = float(os.getenv("FLEET_OFFLINE_SWEEP_S", "60"))
    next_sweep = time.monotonic() + sweep_every_s

    try:
        while True:
            received, _ = drain_once(container, queue, max_messages=10, wait_time_s=10)

            if time.monotonic() >= next_sweep:
                container.liveness.mark_offline(datetime.now(timezone.utc))
                next_sweep = time.monotonic() + sweep_every_s

            if not received:
                if not loop:
                    return
                time.sleep(0.2)
    finally:
        closed = container.ingest.close_open_trips()
        if closed:
            logger.info("Closed %d open trips on shutdown", len(closed))


if __name__ == "__main__":
    main()
