from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Iterable, Mapping

from src.domain.exceptions import SequenceError
from src.domain.models import GeoPoint, Geofence, GeofenceRuleType
from src.domain.models.tracking import require_aware

from .containment import geofence_contains


@dataclass(frozen=True, slots=True)
class GeofenceState:
    """Debounced containment state of one vehicle for one geofence."""

    geofence_id: str
    inside: bool
    last_seen_at: datetime
    # Start of a not-yet-confirmed change of `inside`.
    candidate_since: datetime | None = None
    inside_since: datetime | None = None
    dwell_fired: bool = False
    time_violation_fired: bool = False


@dataclass(frozen=True, slots=True)
class GeofenceTransition:
    geofence_id: str
    geofence_name: str
    rule_type: GeofenceRuleType
    timestamp: datetime
    position: GeoPoint
    dwell_minutes: float | None = None


@dataclass(frozen=True, slots=True)
class GeofenceEvaluation:
    transitions: tuple[GeofenceTransition, ...] = ()
    states: Mapping[str, GeofenceState] = field(default_factory=dict)


def in_time_window(moment: time, start: time, end: time) -> bool:
    """Inclusive window check; `start > end` means the window wraps past midnight."""

    if start <= end:
        return start <= moment <= end
    return moment >= start or moment <= end


@dataclass(frozen=True, slots=True)
class GeofenceEvaluator:
    """Entry/exit/dwell/time-window evaluation with per-rule debounce.

    A change of side starts at the last fix seen on the confirmed side and
    becomes real once it has persisted for the directional rule's
    `tolerance_seconds`. Flipping back earlier drops it silently, so GPS
    jitter around a boundary never fires. Dwell and time-window alerts fire
    at most once per confirmed stay inside.

    The evaluator is pure: prior states are read, new states are returned.
    """

    tz: tzinfo = timezone.utc

    def evaluate(
        self,
        vehicle_id: str,
        position: GeoPoint,
        timestamp: datetime,
        geofences: Iterable[Geofence],
        prior_states: Mapping[str, GeofenceState],
    ) -> GeofenceEvaluation:
        require_aware(timestamp)

        transitions: list[GeofenceTransition] = []
        states: dict[str, GeofenceState] = {}
        for geofence in geofences:
            if not geofence.applies_to(vehicle_id):
                continue
            state, fired = self._step(
                geofence, prior_states.get(geofence.id), position, timestamp
            )
            states[geofence.id] = state
            transitions.extend(fired)

        return GeofenceEvaluation(transitions=tuple(transitions), states=states)

    def _step(
        self,
        geofence: Geofence,
        prior: GeofenceState | None,
        position: GeoPoint,
        timestamp: datetime,
    ) -> tuple[GeofenceState, list[GeofenceTransition]]:
        observed = geofence_contains(geofence, position)

        if prior is None:
            seeded = GeofenceState(
                geofence_id=geofence.id,
                inside=observed,
                last_seen_at=timestamp,
                inside_since=timestamp if observed else None,
            )
            return self._occupancy(geofence, seeded, position, timestamp)

        if timestamp < prior.last_seen_at:
            raise SequenceError(
                f"Geofence {geofence.id}: fix at {timestamp.isoformat()} is older "
                f"than last evaluated fix at {prior.last_seen_at.isoformat()}"
            )

        fired: list[GeofenceTransition] = []
        if observed == prior.inside:
            state = replace(prior, candidate_since=None, last_seen_at=timestamp)
        else:
            since = prior.candidate_since or prior.last_seen_at
            rule_type = GeofenceRuleType.ENTRY if observed else GeofenceRuleType.EXIT
            rule = geofence.rule(rule_type)
            tolerance = timedelta(
                seconds=(rule.tolerance_seconds or 0.0) if rule is not None else 0.0
            )

            if timestamp - since >= tolerance:
                state = GeofenceState(
                    geofence_id=geofence.id,
                    inside=observed,
                    last_seen_at=timestamp,
                    inside_since=since if observed else None,
                )
                if rule is not None and rule.enabled:
                    fired.append(self._transition(geofence, rule_type, position, timestamp))
            else:
                state = replace(prior, candidate_since=since, last_seen_at=timestamp)

        state, occupancy = self._occupancy(geofence, state, position, timestamp)
        return state, fired + occupancy

    def _occupancy(
        self,
        geofence: Geofence,
        state: GeofenceState,
        position: GeoPoint,
        timestamp: datetime,
    ) -> tuple[GeofenceState, list[GeofenceTransition]]:
        if not state.inside or state.inside_since is None:
            return state, []

        fired: list[GeofenceTransition] = []

        dwell = geofence.rule(GeofenceRuleType.DWELL)
        if (
            dwell is not None
            and dwell.enabled
            and dwell.dwell_time_minutes is not None
            and not state.dwell_fired
        ):
            dwell_minutes = (timestamp - state.inside_since).total_seconds() / 60.0
            if dwell_minutes >= dwell.dwell_time_minutes:
                fired.append(
                    self._transition(
                        geofence,
                        GeofenceRuleType.DWELL,
                        position,
                        timestamp,
                        dwell_minutes=dwell_minutes,
                    )
                )
                state = replace(state, dwell_fired=True)

        window = geofence.rule(GeofenceRuleType.TIME_VIOLATION)
        if (
            window is not None
            and window.enabled
            and window.start_time is not None
            and window.end_time is not None
            and not state.time_violation_fired
        ):
            local_time = timestamp.astimezone(self.tz).time()
            if not in_time_window(local_time, window.start_time, window.end_time):
                fired.append(
                    self._transition(
                        geofence, GeofenceRuleType.TIME_VIOLATION, position, timestamp
                    )
                )
                state = replace(state, time_violation_fired=True)

        return state, fired

    @staticmethod
    def _transition(
        geofence: Geofence,
        rule_type: GeofenceRuleType,
        position: GeoPoint,
        timestamp: datetime,
        dwell_minutes: float | None = None,
    ) -> GeofenceTransition:
        return GeofenceTransition(
            geofence_id=geofence.id,
            geofence_name=geofence.name,
            rule_type=rule_type,
            timestamp=timestamp,
            position=position,
            dwell_minutes=dwell_minutes,
        )
