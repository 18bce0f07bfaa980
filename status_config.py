"""Environment driven settings for resolving and refreshing the pilot status."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from airport_timezones import AIRPORT_TIME_ZONES, load_airport_tz_table
from trip_state_resolver import DEFAULT_MAX_UPCOMING_CITIES

DEFAULT_TRANSITION_GRACE_SECONDS = 0.5
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class StatusConfig:
    """Settings shared by the resolver callers."""

    airport_tz_path: Optional[Path] = None
    max_upcoming_cities: int = DEFAULT_MAX_UPCOMING_CITIES
    transition_grace_seconds: float = DEFAULT_TRANSITION_GRACE_SECONDS
    log_level: str = DEFAULT_LOG_LEVEL

    def tz_table(self) -> Mapping[str, str]:
        if self.airport_tz_path is None:
            return AIRPORT_TIME_ZONES
        return load_airport_tz_table(self.airport_tz_path)


def _read_number(env: Mapping[str, str], name: str, default: str, cast):
    raw = env.get(name, default)
    try:
        value = cast(str(raw).strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {raw!r}")
    return value


def load_status_config(env: Optional[Mapping[str, str]] = None) -> StatusConfig:
    """Build a :class:`StatusConfig` from ``env`` (defaults to ``os.environ``)."""

    source = os.environ if env is None else env

    tz_path_raw = (source.get("AIRPORT_TZ_PATH") or "").strip()
    log_level = (source.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL).strip().upper()

    return StatusConfig(
        airport_tz_path=Path(tz_path_raw) if tz_path_raw else None,
        max_upcoming_cities=_read_number(
            source, "MAX_UPCOMING_CITIES", str(DEFAULT_MAX_UPCOMING_CITIES), int
        ),
        transition_grace_seconds=_read_number(
            source, "TRANSITION_GRACE_SECONDS", str(DEFAULT_TRANSITION_GRACE_SECONDS), float
        ),
        log_level=log_level or DEFAULT_LOG_LEVEL,
    )
