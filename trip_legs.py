"""Trip leg model and the decode boundary for leg lists shared by the pilot app."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd
import pytz

LOGGER = logging.getLogger(__name__)


class TripLegDecodeError(ValueError):
    """Raised when a single leg payload cannot be turned into a :class:`TripLeg`."""


class LegType(str, Enum):
    FLIGHT = "flight"
    TURN = "turn"
    LAYOVER = "layover"
    HOME = "home"
    RESERVE = "reserve"
    HOT_STANDBY = "hotStandby"
    EVENT = "event"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> "LegType":
        # Newer publishers may send tags this client does not know yet.
        return cls.UNKNOWN


@dataclass(frozen=True)
class TripLeg:
    """One scheduled segment of a pilot's duty period.

    ``start_time``/``end_time`` form the half-open interval during which the
    leg is current. ``raw_type`` keeps the tag exactly as received so that an
    ``UNKNOWN`` leg still records what the publisher sent.
    """

    id: str
    type: LegType
    start_time: datetime
    end_time: datetime
    airport_code: Optional[str] = None
    city: Optional[str] = None
    timezone_identifier: Optional[str] = None
    flight_number: Optional[str] = None
    departure_airport: Optional[str] = None
    arrival_airport: Optional[str] = None
    departure_city: Optional[str] = None
    arrival_city: Optional[str] = None
    trip_day_number: Optional[int] = None
    trip_total_days: Optional[int] = None
    raw_type: Optional[str] = None

    @property
    def is_flight(self) -> bool:
        return self.type is LegType.FLIGHT

    @property
    def is_home(self) -> bool:
        return self.type is LegType.HOME

    def __post_init__(self) -> None:
        # Naive times are UTC, the same rule safe_parse_dt applies on decode.
        for attr in ("start_time", "end_time"):
            value = getattr(self, attr)
            if isinstance(value, datetime) and value.tzinfo is None:
                object.__setattr__(self, attr, value.replace(tzinfo=pytz.UTC))

    def contains(self, moment: datetime) -> bool:
        return self.start_time <= moment < self.end_time


def _epoch_to_dt_utc(epoch_val: float) -> datetime:
    numeric = float(epoch_val)
    # Scale ms/µs/ns values down to seconds; bounded for corrupted input.
    for _ in range(6):
        if abs(numeric) < 10**12:
            break
        numeric /= 1000.0
    try:
        return datetime.fromtimestamp(numeric, tz=pytz.UTC)
    except (OverflowError, ValueError, OSError) as exc:
        raise TripLegDecodeError(f"Epoch value out of range: {epoch_val!r}") from exc


def safe_parse_dt(value: Any) -> datetime:
    """Parse ISO strings, epoch numbers or datetimes into aware UTC datetimes.

    Naive values are assumed to be UTC. Raises :class:`TripLegDecodeError`
    when the value cannot be interpreted.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, bool) or value is None:
        raise TripLegDecodeError(f"Unsupported timestamp value: {value!r}")
    elif isinstance(value, (int, float)):
        return _epoch_to_dt_utc(value)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            try:
                dt = pd.to_datetime(text, utc=True).to_pydatetime()
            except (ValueError, TypeError, OverflowError) as exc:
                raise TripLegDecodeError(f"Unparseable timestamp: {value!r}") from exc
            if pd.isna(dt):
                raise TripLegDecodeError(f"Unparseable timestamp: {value!r}")
    else:
        raise TripLegDecodeError(f"Unsupported timestamp value: {value!r}")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=pytz.UTC)
    try:
        return dt.astimezone(pytz.UTC)
    except (OverflowError, ValueError, OSError) as exc:
        raise TripLegDecodeError(f"Timestamp out of range: {value!r}") from exc


def _coerce_to_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coerce_to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def parse_trip_leg(payload: Mapping[str, Any]) -> TripLeg:
    """Build a :class:`TripLeg` from one camelCase leg payload."""

    if not isinstance(payload, Mapping):
        raise TripLegDecodeError(f"Leg payload must be a mapping, got {type(payload).__name__}")

    leg_id = _coerce_to_str(payload.get("id"))
    if leg_id is None:
        raise TripLegDecodeError("Leg payload is missing 'id'")

    for key in ("startTime", "endTime"):
        if payload.get(key) is None:
            raise TripLegDecodeError(f"Leg {leg_id} is missing '{key}'")

    raw_type = _coerce_to_str(payload.get("type"))
    return TripLeg(
        id=leg_id,
        type=LegType(raw_type) if raw_type else LegType.UNKNOWN,
        start_time=safe_parse_dt(payload["startTime"]),
        end_time=safe_parse_dt(payload["endTime"]),
        airport_code=_coerce_to_str(payload.get("airportCode")),
        city=_coerce_to_str(payload.get("city")),
        timezone_identifier=_coerce_to_str(payload.get("timezoneIdentifier")),
        flight_number=_coerce_to_str(payload.get("flightNumber")),
        departure_airport=_coerce_to_str(payload.get("departureAirport")),
        arrival_airport=_coerce_to_str(payload.get("arrivalAirport")),
        departure_city=_coerce_to_str(payload.get("departureCity")),
        arrival_city=_coerce_to_str(payload.get("arrivalCity")),
        trip_day_number=_coerce_to_int(payload.get("tripDayNumber")),
        trip_total_days=_coerce_to_int(payload.get("tripTotalDays")),
        raw_type=raw_type,
    )


def _iter_leg_payloads(payload: Any) -> Iterable[Any]:
    if payload is None:
        return []
    if isinstance(payload, list):
        return payload
    if isinstance(payload, Mapping):
        for key in ("legs", "items"):
            items = payload.get(key)
            if isinstance(items, list):
                return items
        raise TripLegDecodeError("Unsupported leg payload structure: mapping without 'legs' list")
    raise TripLegDecodeError("Unsupported leg payload structure")


def decode_trip_legs(payload: Any) -> Tuple[List[TripLeg], Dict[str, int]]:
    """Decode a batch of legs, skipping (and counting) the ones that are malformed."""

    items = list(_iter_leg_payloads(payload))
    stats = {
        "total": len(items),
        "decoded": 0,
        "skipped": 0,
        "unknown_type": 0,
    }

    legs: List[TripLeg] = []
    for index, item in enumerate(items):
        try:
            leg = parse_trip_leg(item)
        except TripLegDecodeError as exc:
            stats["skipped"] += 1
            LOGGER.warning("Skipping trip leg #%d: %s", index, exc)
            continue
        if leg.type is LegType.UNKNOWN:
            stats["unknown_type"] += 1
            LOGGER.debug("Leg %s has unrecognised type %r", leg.id, leg.raw_type)
        legs.append(leg)
        stats["decoded"] += 1

    return legs, stats


def decode_trip_legs_json(text: Optional[str]) -> Tuple[List[TripLeg], Dict[str, int]]:
    """Decode the ``tripLegsJSON`` document carried on the shared status record."""

    empty_stats = {"total": 0, "decoded": 0, "skipped": 0, "unknown_type": 0}
    if not text or not text.strip():
        return [], empty_stats

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        LOGGER.warning("Trip legs JSON is invalid: %s", exc)
        return [], empty_stats

    try:
        return decode_trip_legs(payload)
    except TripLegDecodeError as exc:
        LOGGER.warning("Trip legs JSON has an unexpected shape: %s", exc)
        return [], empty_stats
