"""Shared pilot status record and its re-resolution from trip legs."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from trip_legs import TripLeg, TripLegDecodeError, decode_trip_legs_json, safe_parse_dt
from trip_state_resolver import ResolvedPilotState, resolve_trip_state

LOGGER = logging.getLogger(__name__)

RECORD_TYPE = "SharedPilotStatus"


class StatusType(Enum):
    HOME = "home"
    IN_FLIGHT = "inFlight"
    ON_DUTY = "onDuty"
    ON_LAYOVER = "onLayover"

    @property
    def display_text(self) -> str:
        return {
            StatusType.HOME: "Home",
            StatusType.IN_FLIGHT: "In Flight",
            StatusType.ON_DUTY: "On Duty",
            StatusType.ON_LAYOVER: "On Layover",
        }[self]


# (attribute, record key, kind)
_OPTIONAL_FIELDS: Tuple[Tuple[str, str, str], ...] = (
    ("display_status", "displayStatus", "str"),
    ("current_airport", "currentAirport", "str"),
    ("current_city", "currentCity", "str"),
    ("current_timezone", "currentTimezone", "str"),
    ("local_time_at_pilot", "localTimeAtPilot", "str"),
    ("current_latitude", "currentLatitude", "float"),
    ("current_longitude", "currentLongitude", "float"),
    ("current_flight_number", "currentFlightNumber", "str"),
    ("current_flight_departure", "currentFlightDeparture", "str"),
    ("current_flight_arrival", "currentFlightArrival", "str"),
    ("current_flight_departure_time", "currentFlightDepartureTime", "datetime"),
    ("current_flight_arrival_time", "currentFlightArrivalTime", "datetime"),
    ("current_flight_arrival_timezone", "currentFlightArrivalTimezone", "str"),
    ("home_arrival_time", "homeArrivalTime", "datetime"),
    ("next_departure_time", "nextDepartureTime", "datetime"),
    ("next_flight_number", "nextFlightNumber", "str"),
    ("next_flight_destination", "nextFlightDestination", "str"),
    ("current_trip_id", "currentTripId", "str"),
    ("trip_day_number", "tripDayNumber", "int"),
    ("trip_total_days", "tripTotalDays", "int"),
    ("trip_legs_json", "tripLegsJSON", "str"),
)

_DUTY_FLAGS: Tuple[Tuple[str, str], ...] = (
    ("is_home", "isHome"),
    ("is_in_flight", "isInFlight"),
    ("is_on_duty", "isOnDuty"),
)


@dataclass(frozen=True)
class SharedPilotStatus:
    """Status published by the pilot for their partner.

    Carries no crew names, hotel details or pay information. When
    ``trip_legs_json`` is present the flat fields are recomputed locally from
    the legs, so stale publisher values are never shown.
    """

    pilot_id: str
    pilot_first_name: str
    last_updated: datetime
    app_version: str

    is_home: bool = False
    is_in_flight: bool = False
    is_on_duty: bool = False
    display_status: Optional[str] = None

    current_airport: Optional[str] = None
    current_city: Optional[str] = None
    current_timezone: Optional[str] = None
    local_time_at_pilot: Optional[str] = None

    current_latitude: Optional[float] = None
    current_longitude: Optional[float] = None
    current_flight_number: Optional[str] = None
    current_flight_departure: Optional[str] = None
    current_flight_arrival: Optional[str] = None
    current_flight_departure_time: Optional[datetime] = None
    current_flight_arrival_time: Optional[datetime] = None
    current_flight_arrival_timezone: Optional[str] = None

    home_arrival_time: Optional[datetime] = None
    next_departure_time: Optional[datetime] = None
    next_flight_number: Optional[str] = None
    next_flight_destination: Optional[str] = None

    current_trip_id: Optional[str] = None
    trip_day_number: Optional[int] = None
    trip_total_days: Optional[int] = None
    upcoming_cities: List[str] = field(default_factory=list)
    trip_legs_json: Optional[str] = None

    @property
    def trip_legs(self) -> List[TripLeg]:
        legs, _ = decode_trip_legs_json(self.trip_legs_json)
        return legs

    @property
    def has_trip_legs(self) -> bool:
        return bool(self.trip_legs)

    def computed_status(self, now: datetime) -> StatusType:
        """Best guess from the flat fields, for records published without legs."""

        departure = self.current_flight_departure_time
        arrival = self.current_flight_arrival_time
        if departure is not None and arrival is not None and departure <= now < arrival:
            return StatusType.IN_FLIGHT

        if self.home_arrival_time is not None and self.home_arrival_time <= now:
            if self.next_departure_time is None or self.next_departure_time > now:
                return StatusType.HOME

        if self.next_departure_time is not None or departure is not None:
            return StatusType.ON_DUTY

        return StatusType.ON_LAYOVER

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> Optional["SharedPilotStatus"]:
        """Build a status from record fields; ``None`` if identity fields are missing."""

        pilot_id = record.get("pilotId")
        first_name = record.get("pilotFirstName")
        app_version = record.get("appVersion")
        if not all(isinstance(value, str) for value in (pilot_id, first_name, app_version)):
            return None
        last_updated = _decode_value(record.get("lastUpdated"), "datetime")
        if last_updated is None:
            return None

        kwargs: Dict[str, Any] = {}
        for attr, key in _DUTY_FLAGS:
            kwargs[attr] = _decode_flag(record.get(key))
        for attr, key, kind in _OPTIONAL_FIELDS:
            kwargs[attr] = _decode_value(record.get(key), kind)

        cities = record.get("upcomingCities")
        kwargs["upcoming_cities"] = (
            [str(city) for city in cities if city] if isinstance(cities, list) else []
        )

        return cls(
            pilot_id=pilot_id,
            pilot_first_name=first_name,
            last_updated=last_updated,
            app_version=app_version,
            **kwargs,
        )

    def to_record(self) -> Dict[str, Any]:
        """Record fields for this status; absent optionals are omitted."""

        record: Dict[str, Any] = {
            "pilotId": self.pilot_id,
            "pilotFirstName": self.pilot_first_name,
        }
        for attr, key in _DUTY_FLAGS:
            record[key] = 1 if getattr(self, attr) else 0
        for attr, key, _ in _OPTIONAL_FIELDS:
            value = getattr(self, attr)
            if value is not None:
                record[key] = value
        record["upcomingCities"] = list(self.upcoming_cities)
        record["lastUpdated"] = self.last_updated
        record["appVersion"] = self.app_version
        return record


def _decode_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    try:
        return int(value) == 1
    except (TypeError, ValueError):
        return False


def _decode_value(value: Any, kind: str) -> Any:
    if value is None:
        return None
    if kind == "str":
        return value if isinstance(value, str) else None
    if kind == "int":
        return value if isinstance(value, int) and not isinstance(value, bool) else None
    if kind == "float":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return float(value)
    if kind == "datetime":
        try:
            return safe_parse_dt(value)
        except TripLegDecodeError:
            return None
    raise ValueError(f"Unsupported record field kind: {kind}")


def apply_resolved_state(raw: SharedPilotStatus, resolved: ResolvedPilotState) -> SharedPilotStatus:
    """Overlay a resolved state onto ``raw``, keeping its identity and metadata."""

    return dataclasses.replace(
        raw,
        display_status=resolved.display_status,
        is_home=resolved.is_home,
        is_in_flight=resolved.is_in_flight,
        is_on_duty=resolved.is_on_duty,
        current_airport=resolved.current_airport,
        current_city=resolved.current_city,
        current_timezone=resolved.current_timezone,
        local_time_at_pilot=None,
        current_latitude=None,
        current_longitude=None,
        current_flight_number=resolved.current_flight_number,
        current_flight_departure=resolved.current_flight_departure,
        current_flight_arrival=resolved.current_flight_arrival,
        current_flight_departure_time=resolved.current_flight_departure_time,
        current_flight_arrival_time=resolved.current_flight_arrival_time,
        current_flight_arrival_timezone=resolved.current_flight_arrival_timezone,
        home_arrival_time=resolved.home_arrival_time,
        next_departure_time=resolved.next_departure_time,
        next_flight_number=resolved.next_flight_number,
        next_flight_destination=resolved.next_flight_destination,
        trip_day_number=resolved.trip_day_number,
        trip_total_days=resolved.trip_total_days,
        upcoming_cities=list(resolved.upcoming_cities),
    )


def resolve_pilot_status(
    raw: SharedPilotStatus,
    now: datetime,
    *,
    tz_table: Optional[Mapping[str, str]] = None,
    max_upcoming_cities: Optional[int] = None,
) -> Tuple[SharedPilotStatus, Optional[ResolvedPilotState]]:
    """Re-resolve ``raw`` from its trip legs at ``now``.

    Records without legs are returned unchanged with ``None`` in place of the
    resolved state.
    """

    legs = raw.trip_legs
    if not legs:
        LOGGER.debug("Status for %s has no trip legs; using published fields", raw.pilot_id)
        return raw, None

    options: Dict[str, Any] = {"tz_table": tz_table}
    if max_upcoming_cities is not None:
        options["max_upcoming_cities"] = max_upcoming_cities
    resolved = resolve_trip_state(legs, now, **options)
    return apply_resolved_state(raw, resolved), resolved
