from __future__ import annotations

from datetime import datetime, time
from typing import Any, Mapping

from src.domain.exceptions import ValidationError
from src.domain.models import (
    Alert,
    AlertPriority,
    AlertType,
    GeoPoint,
    Geofence,
    GeofenceRule,
    GeofenceRuleType,
    GeofenceType,
    IgnitionStatus,
    LocationPoint,
    RouteEvent,
    RouteEventType,
    Trip,
    Vehicle,
    VehicleStatus,
)


def dt_to_str(value: datetime) -> str:
    return value.isoformat()


def dt_from_str(raw: str) -> datetime:
    # fromisoformat only accepts a trailing "Z" from Python 3.11 on.
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValidationError(f"Invalid timestamp: {raw!r}") from exc


def _opt_dt(raw: Any) -> datetime | None:
    return dt_from_str(raw) if isinstance(raw, str) and raw else None


def _opt_float(raw: Any) -> float | None:
    return float(raw) if raw is not None else None


def location_point_to_dict(p: LocationPoint) -> dict[str, Any]:
    return {
        "lat": p.lat,
        "lon": p.lon,
        "speed_kmh": p.speed_kmh,
        "heading_deg": p.heading_deg,
        "timestamp": dt_to_str(p.timestamp),
        "accuracy_m": p.accuracy_m,
    }


def location_point_from_dict(d: Mapping[str, Any]) -> LocationPoint:
    return LocationPoint(
        lat=float(d["lat"]),
        lon=float(d["lon"]),
        speed_kmh=float(d["speed_kmh"]),
        heading_deg=float(d.get("heading_deg") or 0.0),
        timestamp=dt_from_str(d["timestamp"]),
        accuracy_m=_opt_float(d.get("accuracy_m")),
    )


def route_event_to_dict(e: RouteEvent) -> dict[str, Any]:
    return {
        "id": e.id,
        "type": e.type.value,
        "lat": e.lat,
        "lon": e.lon,
        "timestamp": dt_to_str(e.timestamp),
        "duration_min": e.duration_min,
        "speed_kmh": e.speed_kmh,
        "speed_limit_kmh": e.speed_limit_kmh,
        "geofence_name": e.geofence_name,
        "address": e.address,
    }


def route_event_from_dict(d: Mapping[str, Any]) -> RouteEvent:
    return RouteEvent(
        id=str(d["id"]),
        type=RouteEventType(d["type"]),
        lat=float(d["lat"]),
        lon=float(d["lon"]),
        timestamp=dt_from_str(d["timestamp"]),
        duration_min=_opt_float(d.get("duration_min")),
        speed_kmh=_opt_float(d.get("speed_kmh")),
        speed_limit_kmh=_opt_float(d.get("speed_limit_kmh")),
        geofence_name=d.get("geofence_name"),
        address=d.get("address"),
    )


def trip_to_dict(trip: Trip) -> dict[str, Any]:
    return {
        "id": trip.id,
        "vehicle_id": trip.vehicle_id,
        "start_time": dt_to_str(trip.start_time),
        "end_time": dt_to_str(trip.end_time),
        "total_distance_m": trip.total_distance_m,
        "travel_time_min": trip.travel_time_min,
        "stopped_time_min": trip.stopped_time_min,
        "average_speed_kmh": trip.average_speed_kmh,
        "max_speed_kmh": trip.max_speed_kmh,
        "stops_count": trip.stops_count,
        "points": [location_point_to_dict(p) for p in trip.points],
        "events": [route_event_to_dict(e) for e in trip.events],
    }


def trip_from_dict(d: Mapping[str, Any]) -> Trip:
    return Trip(
        id=str(d["id"]),
        vehicle_id=str(d["vehicle_id"]),
        start_time=dt_from_str(d["start_time"]),
        end_time=dt_from_str(d["end_time"]),
        total_distance_m=float(d["total_distance_m"]),
        travel_time_min=float(d["travel_time_min"]),
        stopped_time_min=float(d["stopped_time_min"]),
        average_speed_kmh=float(d["average_speed_kmh"]),
        max_speed_kmh=float(d["max_speed_kmh"]),
        stops_count=int(d["stops_count"]),
        points=tuple(location_point_from_dict(p) for p in d.get("points", [])),
        events=tuple(route_event_from_dict(e) for e in d.get("events", [])),
    )


def vehicle_to_dict(v: Vehicle) -> dict[str, Any]:
    return {
        "id": v.id,
        "name": v.name,
        "license_plate": v.license_plate,
        "model": v.model,
        "status": v.status.value,
        "ignition": v.ignition.value,
        "current_speed_kmh": v.current_speed_kmh,
        "speed_limit_kmh": v.speed_limit_kmh,
        "heading_deg": v.heading_deg,
        "lat": v.lat,
        "lon": v.lon,
        "accuracy_m": v.accuracy_m,
        "last_update": dt_to_str(v.last_update),
        "battery_level": v.battery_level,
    }


def vehicle_from_dict(d: Mapping[str, Any]) -> Vehicle:
    return Vehicle(
        id=str(d["id"]),
        name=str(d["name"]),
        license_plate=str(d["license_plate"]),
        model=d.get("model"),
        status=VehicleStatus(d["status"]),
        ignition=IgnitionStatus(d["ignition"]),
        current_speed_kmh=float(d["current_speed_kmh"]),
        speed_limit_kmh=float(d["speed_limit_kmh"]),
        heading_deg=float(d["heading_deg"]),
        lat=float(d["lat"]),
        lon=float(d["lon"]),
        accuracy_m=float(d["accuracy_m"]),
        last_update=dt_from_str(d["last_update"]),
        battery_level=_opt_float(d.get("battery_level")),
    )


def alert_to_dict(a: Alert) -> dict[str, Any]:
    return {
        "id": a.id,
        "type": a.type.value,
        "priority": a.priority.value,
        "vehicle_id": a.vehicle_id,
        "vehicle_name": a.vehicle_name,
        "message": a.message,
        "timestamp": dt_to_str(a.timestamp),
        "read": a.read,
        "lat": a.lat,
        "lon": a.lon,
        "speed_kmh": a.speed_kmh,
        "speed_limit_kmh": a.speed_limit_kmh,
        "geofence_name": a.geofence_name,
    }


def alert_from_dict(d: Mapping[str, Any]) -> Alert:
    return Alert(
        id=str(d["id"]),
        type=AlertType(d["type"]),
        priority=AlertPriority(d["priority"]),
        vehicle_id=str(d["vehicle_id"]),
        vehicle_name=str(d["vehicle_name"]),
        message=str(d["message"]),
        timestamp=dt_from_str(d["timestamp"]),
        read=bool(d.get("read", False)),
        lat=_opt_float(d.get("lat")),
        lon=_opt_float(d.get("lon")),
        speed_kmh=_opt_float(d.get("speed_kmh")),
        speed_limit_kmh=_opt_float(d.get("speed_limit_kmh")),
        geofence_name=d.get("geofence_name"),
    )


def _geo_point(d: Mapping[str, Any]) -> GeoPoint:
    return GeoPoint(lat=float(d["lat"]), lon=float(d["lon"]))


def _opt_time(raw: Any) -> time | None:
    if not raw:
        return None
    try:
        return time.fromisoformat(str(raw))
    except ValueError as exc:
        raise ValidationError(f"Invalid time of day: {raw!r}") from exc


def geofence_rule_from_dict(d: Mapping[str, Any]) -> GeofenceRule:
    return GeofenceRule(
        type=GeofenceRuleType(d["type"]),
        enabled=bool(d.get("enabled", True)),
        dwell_time_minutes=_opt_float(d.get("dwell_time_minutes")),
        tolerance_seconds=_opt_float(d.get("tolerance_seconds")),
        start_time=_opt_time(d.get("start_time")),
        end_time=_opt_time(d.get("end_time")),
    )


def geofence_from_dict(d: Mapping[str, Any]) -> Geofence:
    center = d.get("center")
    return Geofence(
        id=str(d["id"]),
        name=str(d["name"]),
        type=GeofenceType(d["type"]),
        active=bool(d.get("active", True)),
        center=_geo_point(center) if center else None,
        radius_m=_opt_float(d.get("radius_m")),
        points=tuple(_geo_point(p) for p in d.get("points") or ()),
        rules=tuple(geofence_rule_from_dict(r) for r in d.get("rules") or ()),
        vehicle_ids=frozenset(str(v) for v in d.get("vehicle_ids") or ()),
        description=d.get("description"),
        last_triggered=_opt_dt(d.get("last_triggered")),
        color=d.get("color"),
    )
