"""Tests for :mod:`trip_state_resolver`."""

from __future__ import annotations

import pathlib
import sys
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from trip_legs import LegType, TripLeg
from trip_state_resolver import derive_upcoming_cities, resolve_trip_state, status_label

T0 = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)
HOUR = timedelta(hours=1)


def _leg(
    leg_id: str,
    leg_type: LegType,
    start: datetime,
    end: datetime,
    **fields,
) -> TripLeg:
    return TripLeg(id=leg_id, type=leg_type, start_time=start, end_time=end, **fields)


def _flight(
    leg_id: str,
    start: datetime,
    end: datetime,
    dep: str,
    arr: str,
    *,
    number: str = "5X100",
    arrival_city: Optional[str] = None,
    **fields,
) -> TripLeg:
    return _leg(
        leg_id,
        LegType.FLIGHT,
        start,
        end,
        flight_number=number,
        departure_airport=dep,
        arrival_airport=arr,
        arrival_city=arrival_city,
        **fields,
    )


def _anchorage_trip() -> list[TripLeg]:
    return [
        _leg("home-1", LegType.HOME, T0 - 48 * HOUR, T0, airport_code="SDF", city="Louisville"),
        _flight(
            "fl-1",
            T0,
            T0 + 4 * HOUR,
            "SDF",
            "ANC",
            number="5X61",
            arrival_city="Anchorage",
            trip_day_number=1,
            trip_total_days=2,
        ),
        _leg(
            "lay-1",
            LegType.LAYOVER,
            T0 + 4 * HOUR,
            T0 + 20 * HOUR,
            airport_code="ANC",
            city="Anchorage",
            trip_day_number=1,
            trip_total_days=2,
        ),
        _leg("home-2", LegType.HOME, T0 + 20 * HOUR, T0 + 72 * HOUR, airport_code="SDF", city="Louisville"),
    ]


def test_in_flight_scenario_reports_departure_airport_and_home_arrival() -> None:
    state = resolve_trip_state(_anchorage_trip(), T0 + HOUR)

    assert state.display_status == "In Flight"
    assert state.is_in_flight is True
    assert state.is_home is False
    assert state.is_on_duty is True
    assert state.current_airport == "SDF"
    assert state.current_city is None
    assert state.current_timezone == "America/New_York"
    assert state.current_flight_arrival_timezone == "America/Anchorage"
    assert state.current_flight_number == "5X61"
    assert state.current_flight_departure == "SDF"
    assert state.current_flight_arrival == "ANC"
    assert state.current_flight_departure_time == T0
    assert state.current_flight_arrival_time == T0 + 4 * HOUR
    assert state.home_arrival_time == T0 + 20 * HOUR
    assert state.time_until_next_transition == pytest.approx(3 * 3600)
    assert state.trip_day_number == 1
    assert state.trip_total_days == 2


def test_shuffled_input_is_sorted_before_resolving() -> None:
    legs = list(reversed(_anchorage_trip()))

    state = resolve_trip_state(legs, T0 + 5 * HOUR)

    assert state.display_status == "Layover"
    assert state.current_airport == "ANC"
    assert state.current_city == "Anchorage"
    assert state.current_timezone == "America/Anchorage"
    assert state.current_flight_number is None
    assert state.current_flight_arrival_timezone is None
    assert state.home_arrival_time == T0 + 20 * HOUR
    assert state.upcoming_cities == ["Louisville"]


def test_empty_leg_list_returns_home_default() -> None:
    state = resolve_trip_state([], T0)

    assert state.display_status == "Home"
    assert state.is_home is True
    assert state.is_on_duty is False
    assert state.is_in_flight is False
    assert state.current_airport is None
    assert state.current_timezone is None
    assert state.next_departure_time is None
    assert state.next_flight_number is None
    assert state.time_until_next_transition is None
    assert state.upcoming_cities == []


def test_gap_before_trip_reports_next_flight_countdown() -> None:
    legs = [
        _flight("fl-1", T0 + 2 * HOUR, T0 + 5 * HOUR, "SDF", "ONT", number="5X10"),
        _flight("fl-2", T0 + 8 * HOUR, T0 + 10 * HOUR, "ONT", "SDF", number="5X11"),
    ]

    state = resolve_trip_state(legs, T0)

    assert state.is_home is True
    assert state.current_airport is None
    assert state.current_city is None
    assert state.trip_day_number is None
    assert state.home_arrival_time is None
    assert state.next_departure_time == T0 + 2 * HOUR
    assert state.next_flight_number == "5X10"
    assert state.next_flight_destination == "ONT"
    assert state.time_until_next_transition == pytest.approx(2 * 3600)
    assert state.upcoming_cities == []


def test_after_trip_end_is_home_without_next_departure() -> None:
    legs = [_flight("fl-1", T0 - 5 * HOUR, T0 - 2 * HOUR, "SDF", "ONT")]

    state = resolve_trip_state(legs, T0)

    assert state.is_home is True
    assert state.next_departure_time is None
    assert state.time_until_next_transition is None


def test_leg_end_is_exclusive() -> None:
    legs = [
        _leg("turn-1", LegType.TURN, T0 - HOUR, T0, airport_code="ONT"),
        _flight("fl-1", T0, T0 + HOUR, "ONT", "SDF"),
    ]

    state = resolve_trip_state(legs, T0)

    assert state.display_status == "In Flight"


def test_unknown_leg_type_resolves_to_on_duty() -> None:
    legs = [
        _leg(
            "mystery",
            LegType("simulatorSession"),
            T0 - HOUR,
            T0 + HOUR,
            airport_code="SDF",
            raw_type="simulatorSession",
        )
    ]

    state = resolve_trip_state(legs, T0)

    assert state.display_status == "On Duty"
    assert state.is_on_duty is True
    assert state.is_home is False
    assert state.is_in_flight is False
    assert state.home_arrival_time == T0 + HOUR


@pytest.mark.parametrize(
    "leg_type, expected",
    [
        (LegType.FLIGHT, "In Flight"),
        (LegType.TURN, "Turn"),
        (LegType.LAYOVER, "Layover"),
        (LegType.HOME, "Home"),
        (LegType.RESERVE, "Reserve"),
        (LegType.HOT_STANDBY, "Hot Standby"),
        (LegType.EVENT, "Event"),
        (LegType.UNKNOWN, "On Duty"),
    ],
)
def test_status_label_mapping(leg_type: LegType, expected: str) -> None:
    assert status_label(leg_type) == expected


@pytest.mark.parametrize("leg_type", list(LegType))
def test_duty_flags_follow_current_leg_type(leg_type: LegType) -> None:
    legs = [_leg("only", leg_type, T0 - HOUR, T0 + HOUR, airport_code="SDF")]

    state = resolve_trip_state(legs, T0)

    assert state.is_on_duty is (not state.is_home)
    assert state.is_home is (leg_type is LegType.HOME)
    assert state.is_in_flight is (leg_type is LegType.FLIGHT)
    assert not (state.is_home and state.is_in_flight)


def test_current_home_leg_has_no_home_arrival_time() -> None:
    legs = [
        _leg("home-1", LegType.HOME, T0 - HOUR, T0 + HOUR, airport_code="SDF", city="Louisville"),
        _flight("fl-1", T0 + 2 * HOUR, T0 + 4 * HOUR, "SDF", "ANC", arrival_city="Anchorage"),
    ]

    state = resolve_trip_state(legs, T0)

    assert state.display_status == "Home"
    assert state.is_home is True
    assert state.home_arrival_time is None
    assert state.current_city == "Louisville"
    assert state.time_until_next_transition == pytest.approx(3600)
    assert state.next_departure_time == T0 + 2 * HOUR
    assert state.upcoming_cities == ["Anchorage"]


def test_home_arrival_without_trailing_home_leg_uses_last_leg() -> None:
    legs = [
        _flight("fl-1", T0 - HOUR, T0 + HOUR, "SDF", "ANC"),
        _leg("lay-1", LegType.LAYOVER, T0 + HOUR, T0 + 10 * HOUR, airport_code="ANC"),
        _flight("fl-2", T0 + 10 * HOUR, T0 + 14 * HOUR, "ANC", "SDF"),
    ]

    state = resolve_trip_state(legs, T0)

    assert state.home_arrival_time == T0 + 14 * HOUR


def test_next_flight_may_lie_beyond_current_trip() -> None:
    legs = [
        _leg("lay-1", LegType.LAYOVER, T0 - HOUR, T0 + HOUR, airport_code="ANC"),
        _leg("home-1", LegType.HOME, T0 + HOUR, T0 + 48 * HOUR, airport_code="SDF"),
        _flight("fl-9", T0 + 48 * HOUR, T0 + 50 * HOUR, "SDF", "MIA", number="5X99"),
    ]

    state = resolve_trip_state(legs, T0)

    assert state.home_arrival_time == T0 + HOUR
    assert state.next_departure_time == T0 + 48 * HOUR
    assert state.next_flight_number == "5X99"
    assert state.next_flight_destination == "MIA"


def test_overlapping_legs_prefer_earliest_start() -> None:
    legs = [
        _leg("late", LegType.EVENT, T0 - HOUR, T0 + 2 * HOUR),
        _leg("early", LegType.RESERVE, T0 - 3 * HOUR, T0 + HOUR),
    ]

    state = resolve_trip_state(legs, T0)

    assert state.display_status == "Reserve"
    assert state.time_until_next_transition == pytest.approx(3600)


def test_malformed_interval_never_becomes_current() -> None:
    legs = [_leg("backwards", LegType.LAYOVER, T0 + HOUR, T0 - HOUR)]

    state = resolve_trip_state(legs, T0)

    assert state.is_home is True


def test_airport_lookup_is_case_insensitive() -> None:
    upper = resolve_trip_state([_leg("a", LegType.LAYOVER, T0 - HOUR, T0 + HOUR, airport_code="LAX")], T0)
    lower = resolve_trip_state([_leg("a", LegType.LAYOVER, T0 - HOUR, T0 + HOUR, airport_code="lax")], T0)

    assert upper.current_timezone == lower.current_timezone == "America/Los_Angeles"


def test_unmapped_airport_falls_back_to_leg_timezone() -> None:
    legs = [
        _leg(
            "lay-1",
            LegType.LAYOVER,
            T0 - HOUR,
            T0 + HOUR,
            airport_code="ZZZ",
            timezone_identifier="Europe/Lisbon",
        )
    ]

    state = resolve_trip_state(legs, T0)

    assert state.current_timezone == "Europe/Lisbon"


def test_unmapped_arrival_airport_falls_back_to_next_leg_timezone() -> None:
    legs = [
        _flight("fl-1", T0 - HOUR, T0 + HOUR, "ZZZ", "QQQ", timezone_identifier="Asia/Tokyo"),
        _leg(
            "lay-1",
            LegType.LAYOVER,
            T0 + HOUR,
            T0 + 9 * HOUR,
            airport_code="QQQ",
            timezone_identifier="Asia/Seoul",
        ),
    ]

    state = resolve_trip_state(legs, T0)

    assert state.current_timezone == "Asia/Tokyo"
    assert state.current_flight_arrival_timezone == "Asia/Seoul"


def test_unmapped_airport_without_fallback_is_absent() -> None:
    legs = [_leg("lay-1", LegType.LAYOVER, T0 - HOUR, T0 + HOUR, airport_code="ZZZ")]

    state = resolve_trip_state(legs, T0)

    assert state.current_timezone is None


def test_custom_tz_table_takes_precedence() -> None:
    legs = [_leg("lay-1", LegType.LAYOVER, T0 - HOUR, T0 + HOUR, airport_code="ZZZ")]

    state = resolve_trip_state(legs, T0, tz_table={"ZZZ": "Pacific/Fiji"})

    assert state.current_timezone == "Pacific/Fiji"


def test_upcoming_cities_use_arrival_city_for_flights_and_skip_blanks() -> None:
    legs = [
        _leg("turn-1", LegType.TURN, T0 - HOUR, T0 + HOUR, airport_code="SDF", city="Louisville"),
        _flight(
            "fl-1",
            T0 + HOUR,
            T0 + 3 * HOUR,
            "SDF",
            "PHL",
            arrival_city="Philadelphia",
            departure_city="Louisville",
        ),
        _leg("turn-2", LegType.TURN, T0 + 3 * HOUR, T0 + 4 * HOUR, airport_code="PHL", city=None),
        _flight("fl-2", T0 + 4 * HOUR, T0 + 6 * HOUR, "PHL", "BOS", arrival_city="Boston"),
        _leg("lay-1", LegType.LAYOVER, T0 + 6 * HOUR, T0 + 20 * HOUR, airport_code="BOS", city="Boston"),
    ]

    state = resolve_trip_state(legs, T0)

    assert state.upcoming_cities == ["Philadelphia", "Boston"]


def test_upcoming_cities_are_capped() -> None:
    legs = [_leg("now", LegType.LAYOVER, T0 - HOUR, T0 + HOUR, city="Here")]
    for idx, city in enumerate(["A", "B", "C", "D", "E", "F", "G"]):
        start = T0 + (idx + 1) * HOUR
        legs.append(_leg(f"l{idx}", LegType.LAYOVER, start, start + HOUR, city=city))

    state = resolve_trip_state(legs, T0)

    assert state.upcoming_cities == ["A", "B", "C", "D", "E"]
    assert resolve_trip_state(legs, T0, max_upcoming_cities=2).upcoming_cities == ["A", "B"]


def test_derive_upcoming_cities_deduplicates_in_order() -> None:
    legs = [
        _leg("a", LegType.LAYOVER, T0, T0 + HOUR, city="Cologne"),
        _flight("b", T0 + HOUR, T0 + 2 * HOUR, "CGN", "LGG", arrival_city="Liege"),
        _leg("c", LegType.LAYOVER, T0 + 2 * HOUR, T0 + 3 * HOUR, city="Cologne"),
        _leg("d", LegType.EVENT, T0 + 3 * HOUR, T0 + 4 * HOUR, city=""),
    ]

    assert derive_upcoming_cities(legs) == ["Cologne", "Liege"]
    assert derive_upcoming_cities(legs, limit=0) == []


def test_naive_now_is_treated_as_utc() -> None:
    naive_now = (T0 + HOUR).replace(tzinfo=None)

    state = resolve_trip_state(_anchorage_trip(), naive_now)

    assert state.display_status == "In Flight"


def test_resolve_does_not_mutate_input_order() -> None:
    legs = list(reversed(_anchorage_trip()))
    snapshot = list(legs)

    resolve_trip_state(legs, T0 + HOUR)

    assert legs == snapshot


def test_naive_legs_with_naive_now_resolve() -> None:
    start = T0.replace(tzinfo=None)
    legs = [_leg("lay-1", LegType.LAYOVER, start, start + 2 * HOUR, airport_code="ANC", city="Anchorage")]

    state = resolve_trip_state(legs, start + HOUR)

    assert state.display_status == "Layover"
    assert state.current_city == "Anchorage"
    assert state.time_until_next_transition == pytest.approx(3600)
