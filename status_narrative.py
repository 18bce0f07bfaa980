"""Text helpers for the partner-facing status narrative."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from trip_legs import TripLeg


def format_countdown(target: datetime, now: datetime) -> str:
    """Render the time left until ``target`` as ``"1d 4h 20m"``, ``"4h 20m"`` or ``"20m"``."""

    total_seconds = int((target - now).total_seconds())
    if total_seconds <= 0:
        return "now!"

    days, remainder = divmod(total_seconds, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes = remainder // 60

    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def _first_flight(
    legs: Iterable[TripLeg],
    predicate: Callable[[TripLeg], bool],
) -> Optional[TripLeg]:
    for leg in sorted(legs, key=lambda item: item.start_time):
        if leg.is_flight and predicate(leg):
            return leg
    return None


def current_arrival_city(
    legs: Iterable[TripLeg],
    now: datetime,
    fallback: Optional[str] = None,
) -> Optional[str]:
    flight = _first_flight(legs, lambda leg: leg.contains(now))
    if flight is not None and flight.arrival_city:
        return flight.arrival_city
    return fallback


def next_flight_city(
    legs: Iterable[TripLeg],
    now: datetime,
    fallback: Optional[str] = None,
) -> Optional[str]:
    flight = _first_flight(legs, lambda leg: leg.start_time > now)
    if flight is not None and flight.arrival_city:
        return flight.arrival_city
    return fallback


def next_flight_departure_time(
    legs: Iterable[TripLeg],
    now: datetime,
    fallback: Optional[datetime] = None,
) -> Optional[datetime]:
    flight = _first_flight(legs, lambda leg: leg.start_time > now)
    if flight is not None:
        return flight.start_time
    return fallback


def local_time_at(tz_name: Optional[str], now: datetime) -> Optional[str]:
    """Wall-clock ``HH:MM`` in ``tz_name``, or ``None`` for unknown zones."""

    if not tz_name or not tz_name.strip():
        return None
    try:
        zone = ZoneInfo(tz_name.strip())
    except (ZoneInfoNotFoundError, ValueError):
        return None
    return now.astimezone(zone).strftime("%H:%M")
