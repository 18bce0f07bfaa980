"""Pure resolver turning a pilot's trip legs and a clock reading into display state."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, List, Mapping, Optional, Sequence

import pytz

from airport_timezones import airport_timezone
from trip_legs import LegType, TripLeg

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_UPCOMING_CITIES = 5

_STATUS_LABELS = {
    LegType.FLIGHT: "In Flight",
    LegType.TURN: "Turn",
    LegType.LAYOVER: "Layover",
    LegType.HOME: "Home",
    LegType.RESERVE: "Reserve",
    LegType.HOT_STANDBY: "Hot Standby",
    LegType.EVENT: "Event",
    LegType.UNKNOWN: "On Duty",
}


@dataclass(frozen=True)
class ResolvedPilotState:
    """Everything the status display needs, recomputed on every resolve."""

    display_status: str
    is_home: bool
    is_in_flight: bool
    is_on_duty: bool

    current_airport: Optional[str] = None
    current_city: Optional[str] = None
    current_timezone: Optional[str] = None

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

    trip_day_number: Optional[int] = None
    trip_total_days: Optional[int] = None
    upcoming_cities: List[str] = field(default_factory=list)

    # Seconds; None when the boundary is not in the future.
    time_until_next_transition: Optional[float] = None


def status_label(leg_type: LegType) -> str:
    return _STATUS_LABELS.get(leg_type, _STATUS_LABELS[LegType.UNKNOWN])


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=pytz.UTC)
    return moment


def _first_matching(
    legs: Iterable[TripLeg],
    predicate: Callable[[TripLeg], bool],
) -> Optional[TripLeg]:
    for leg in legs:
        if predicate(leg):
            return leg
    return None


def _positive_seconds(target: datetime, now: datetime) -> Optional[float]:
    seconds = (target - now).total_seconds()
    return seconds if seconds > 0 else None


def derive_upcoming_cities(
    future_legs: Iterable[TripLeg],
    limit: int = DEFAULT_MAX_UPCOMING_CITIES,
) -> List[str]:
    """Return distinct upcoming city names in chronological order.

    Flights contribute their arrival city, ground legs their own city. Blank
    names are skipped and the list stops at ``limit`` entries.
    """

    cities: List[str] = []
    if limit <= 0:
        return cities
    seen = set()
    for leg in future_legs:
        city = leg.arrival_city if leg.is_flight else leg.city
        if not city or city in seen:
            continue
        seen.add(city)
        cities.append(city)
        if len(cities) >= limit:
            break
    return cities


def _home_arrival_time(sorted_legs: Sequence[TripLeg], current: TripLeg) -> Optional[datetime]:
    """End of the last non-home leg between ``current`` and the next home leg."""

    current_index = next(
        (idx for idx, leg in enumerate(sorted_legs) if leg.id == current.id),
        None,
    )
    if current_index is None:
        return None

    segment_end = next(
        (idx for idx in range(current_index, len(sorted_legs)) if sorted_legs[idx].is_home),
        len(sorted_legs),
    )
    last_duty_leg = _first_matching(
        reversed(sorted_legs[current_index:segment_end]),
        lambda leg: not leg.is_home,
    )
    return last_duty_leg.end_time if last_duty_leg else None


def _home_state(next_flight: Optional[TripLeg], now: datetime) -> ResolvedPilotState:
    return ResolvedPilotState(
        display_status=status_label(LegType.HOME),
        is_home=True,
        is_in_flight=False,
        is_on_duty=False,
        next_departure_time=next_flight.start_time if next_flight else None,
        next_flight_number=next_flight.flight_number if next_flight else None,
        next_flight_destination=next_flight.arrival_airport if next_flight else None,
        time_until_next_transition=(
            _positive_seconds(next_flight.start_time, now) if next_flight else None
        ),
    )


def resolve_trip_state(
    legs: Iterable[TripLeg],
    now: datetime,
    *,
    tz_table: Optional[Mapping[str, str]] = None,
    max_upcoming_cities: int = DEFAULT_MAX_UPCOMING_CITIES,
) -> ResolvedPilotState:
    """Work out what the pilot is doing at ``now``.

    The current leg is the earliest-starting leg whose ``[start, end)`` window
    contains ``now``; overlapping legs therefore resolve to the one that began
    first. With no current leg the pilot is considered home and only the next
    flight is reported. ``tz_table`` replaces the embedded airport timezone
    table; a leg's own ``timezone_identifier`` is used when the airport is not
    in the table. Naive ``now`` values are treated as UTC.
    """

    now = _as_utc(now)
    sorted_legs = sorted(legs, key=lambda leg: leg.start_time)

    current = _first_matching(sorted_legs, lambda leg: leg.contains(now))
    current_id = current.id if current else None
    future_legs = [
        leg for leg in sorted_legs if leg.start_time >= now and leg.id != current_id
    ]
    next_flight = _first_matching(future_legs, lambda leg: leg.is_flight)

    if current is None:
        state = _home_state(next_flight, now)
        LOGGER.debug(
            "No current leg among %d; home until %s",
            len(sorted_legs),
            state.next_departure_time,
        )
        return state

    is_home = current.is_home
    is_in_flight = current.is_flight

    if is_in_flight:
        current_airport = current.departure_airport
        current_city = None
        current_timezone = (
            airport_timezone(current.departure_airport, tz_table) or current.timezone_identifier
        )
        arrival_timezone = airport_timezone(current.arrival_airport, tz_table) or (
            future_legs[0].timezone_identifier if future_legs else None
        )
    else:
        current_airport = current.airport_code
        current_city = current.city
        current_timezone = (
            airport_timezone(current.airport_code, tz_table) or current.timezone_identifier
        )
        arrival_timezone = None

    state = ResolvedPilotState(
        display_status=status_label(current.type),
        is_home=is_home,
        is_in_flight=is_in_flight,
        is_on_duty=not is_home,
        current_airport=current_airport,
        current_city=current_city,
        current_timezone=current_timezone,
        current_flight_number=current.flight_number if is_in_flight else None,
        current_flight_departure=current.departure_airport if is_in_flight else None,
        current_flight_arrival=current.arrival_airport if is_in_flight else None,
        current_flight_departure_time=current.start_time if is_in_flight else None,
        current_flight_arrival_time=current.end_time if is_in_flight else None,
        current_flight_arrival_timezone=arrival_timezone,
        home_arrival_time=None if is_home else _home_arrival_time(sorted_legs, current),
        next_departure_time=next_flight.start_time if next_flight else None,
        next_flight_number=next_flight.flight_number if next_flight else None,
        next_flight_destination=next_flight.arrival_airport if next_flight else None,
        trip_day_number=current.trip_day_number,
        trip_total_days=current.trip_total_days,
        upcoming_cities=derive_upcoming_cities(future_legs, max_upcoming_cities),
        time_until_next_transition=_positive_seconds(current.end_time, now),
    )

    LOGGER.debug(
        "Resolved status: %s, next transition in %s s",
        state.display_status,
        "nil" if state.time_until_next_transition is None else f"{state.time_until_next_transition:.0f}",
    )
    return state
