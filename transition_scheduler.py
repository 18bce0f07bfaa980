"""Re-run the trip resolver at each predicted leg boundary."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Iterable, Mapping, Optional

import pytz

from status_config import DEFAULT_TRANSITION_GRACE_SECONDS, StatusConfig
from trip_legs import TripLeg
from trip_state_resolver import (
    DEFAULT_MAX_UPCOMING_CITIES,
    ResolvedPilotState,
    resolve_trip_state,
)

LOGGER = logging.getLogger(__name__)


def next_resolve_delay(
    resolved: ResolvedPilotState,
    grace_seconds: float = DEFAULT_TRANSITION_GRACE_SECONDS,
) -> Optional[float]:
    """Seconds until the resolver should run again, or ``None`` if nothing is pending."""

    remaining = resolved.time_until_next_transition
    if remaining is None or remaining <= 0:
        return None
    return remaining + max(0.0, grace_seconds)


def _utc_now() -> datetime:
    return datetime.now(pytz.UTC)


class TransitionScheduler:
    """Keeps a resolved state fresh by re-resolving when the current leg ends.

    ``legs_provider`` returns the latest legs from whatever sync layer owns
    them; ``on_resolved`` receives every new state. At most one timer is armed
    at a time and :meth:`cancel` can be called at any point.
    """

    def __init__(
        self,
        legs_provider: Callable[[], Iterable[TripLeg]],
        on_resolved: Callable[[ResolvedPilotState], None],
        *,
        clock: Optional[Callable[[], datetime]] = None,
        grace_seconds: float = DEFAULT_TRANSITION_GRACE_SECONDS,
        tz_table: Optional[Mapping[str, str]] = None,
        max_upcoming_cities: int = DEFAULT_MAX_UPCOMING_CITIES,
        timer_factory: Callable[[float, Callable[[], None]], threading.Timer] = threading.Timer,
    ) -> None:
        self._legs_provider = legs_provider
        self._on_resolved = on_resolved
        self._clock = clock or _utc_now
        self._grace_seconds = grace_seconds
        self._tz_table = tz_table
        self._max_upcoming_cities = max_upcoming_cities
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._latest: Optional[ResolvedPilotState] = None

    @classmethod
    def from_config(
        cls,
        legs_provider: Callable[[], Iterable[TripLeg]],
        on_resolved: Callable[[ResolvedPilotState], None],
        config: StatusConfig,
        **kwargs,
    ) -> "TransitionScheduler":
        return cls(
            legs_provider,
            on_resolved,
            grace_seconds=config.transition_grace_seconds,
            tz_table=config.tz_table(),
            max_upcoming_cities=config.max_upcoming_cities,
            **kwargs,
        )

    @property
    def latest(self) -> Optional[ResolvedPilotState]:
        with self._lock:
            return self._latest

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def resolve_now(self) -> ResolvedPilotState:
        """Resolve immediately, publish the result and arm the next timer."""

        resolved = resolve_trip_state(
            list(self._legs_provider()),
            self._clock(),
            tz_table=self._tz_table,
            max_upcoming_cities=self._max_upcoming_cities,
        )
        delay = next_resolve_delay(resolved, self._grace_seconds)

        with self._lock:
            self._cancel_locked()
            self._latest = resolved
            if delay is not None:
                timer = self._timer_factory(delay, self._on_timer)
                timer.daemon = True
                self._timer = timer
                timer.start()

        if delay is None:
            LOGGER.debug("No upcoming transition for %s; timer not armed", resolved.display_status)
        else:
            LOGGER.debug("Next re-resolve in %.1f s", delay)

        self._on_resolved(resolved)
        return resolved

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        with self._lock:
            if self._timer is None:
                return
            self._timer = None
        self.resolve_now()
