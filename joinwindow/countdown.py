"""Countdown phases for the live registration pill."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable

from .config import get_settings
from .models import (
    CountdownColor,
    CountdownPhase,
    EventFlags,
    JoinWindowConfig,
    Phase,
    WindowBoundaries,
)
from .ticker import SchedulerTicker, Ticker
from .utils import format_remaining, to_naive_utc, utcnow

logger = logging.getLogger("uvicorn.error")

OPENS_IN = "Registration opens in"
CLOSES_IN = "Registration closes in"
STARTS_IN = "Starts in"
LATE_JOIN_CLOSES_IN = "Late join closes in"
ENDS_IN = "Ends in"


def current_phase(
    now: datetime,
    config: JoinWindowConfig,
    boundaries: WindowBoundaries | None = None,
) -> Phase:
    bounds = boundaries or WindowBoundaries.from_config(config)
    now = to_naive_utc(now)
    if now >= bounds.end_at:
        return Phase.ENDED
    if now >= bounds.start_at:
        if config.allow_join_late and (
            bounds.late_cutoff_at is None or now < bounds.late_cutoff_at
        ):
            return Phase.STARTED_LATE_JOIN
        return Phase.STARTED_NO_LATE_JOIN
    if bounds.pre_cutoff_at is not None and now >= bounds.pre_cutoff_at:
        return Phase.CUTOFF_BEFORE_START
    if bounds.opens_at is not None and now < bounds.opens_at:
        return Phase.BEFORE_OPEN
    return Phase.OPEN_BEFORE_CUTOFF


def _phase_target(
    phase: Phase, bounds: WindowBoundaries
) -> tuple[datetime, str, CountdownColor] | None:
    if phase is Phase.BEFORE_OPEN and bounds.opens_at is not None:
        return bounds.opens_at, OPENS_IN, CountdownColor.INFO
    if phase is Phase.OPEN_BEFORE_CUTOFF:
        if bounds.pre_cutoff_at is not None:
            return bounds.pre_cutoff_at, CLOSES_IN, CountdownColor.WARN
        return bounds.start_at, STARTS_IN, CountdownColor.SUCCESS
    if phase is Phase.CUTOFF_BEFORE_START:
        return bounds.start_at, STARTS_IN, CountdownColor.SUCCESS
    if phase is Phase.STARTED_LATE_JOIN:
        if bounds.late_cutoff_at is not None:
            return bounds.late_cutoff_at, LATE_JOIN_CLOSES_IN, CountdownColor.WARN
        return bounds.end_at, ENDS_IN, CountdownColor.ERROR
    if phase is Phase.STARTED_NO_LATE_JOIN:
        return bounds.end_at, ENDS_IN, CountdownColor.ERROR
    return None


def classify(
    now: datetime,
    config: JoinWindowConfig,
    flags: EventFlags | None = None,
    boundaries: WindowBoundaries | None = None,
    *,
    max_units: int | None = None,
) -> CountdownPhase | None:
    """Return the countdown to the next boundary, or ``None`` to show nothing.

    Nothing is shown for canceled, deleted or manually closed events, after
    the end, or when the target is not strictly in the future.
    """
    flags = flags or EventFlags()
    if flags.is_canceled or flags.is_deleted or config.join_manually_closed:
        return None

    bounds = boundaries or WindowBoundaries.from_config(config)
    now = to_naive_utc(now)
    phase = current_phase(now, config, bounds)
    resolved = _phase_target(phase, bounds)
    if resolved is None:
        return None

    target, label, color = resolved
    remaining = target - now
    if remaining.total_seconds() <= 0:
        return None
    units = max_units or get_settings().countdown_max_units
    text = format_remaining(remaining, max_units=units)
    return CountdownPhase(
        phase=phase,
        target=target,
        label=label,
        color=color,
        remaining=remaining,
        text=f"{label} {text}",
    )


class Countdown:
    """Re-classify on every tick and hand the result to ``on_tick``.

    The ticker is injected so callers can drive it with real time
    (``SchedulerTicker``) or step a virtual clock (``ManualTicker``). Once
    ``stop()`` returns no further ticks are delivered, even one that was
    already running on the scheduler thread.
    """

    def __init__(
        self,
        config: JoinWindowConfig,
        on_tick: Callable[[CountdownPhase | None], None],
        *,
        flags: EventFlags | None = None,
        clock: Callable[[], datetime] = utcnow,
        ticker: Ticker | None = None,
        stop_when_ended: bool = False,
    ):
        self.config = config
        self.flags = flags or EventFlags()
        self.boundaries = WindowBoundaries.from_config(config)
        self.last: CountdownPhase | None = None
        self._on_tick = on_tick
        self._clock = clock
        self._ticker = ticker or SchedulerTicker()
        self._stop_when_ended = stop_when_ended
        self._running = False
        self._lock = threading.RLock()

    @property
    def running(self) -> bool:
        return self._running

    def tick(self) -> CountdownPhase | None:
        if not self._running:
            return None
        now = self._clock()
        result = classify(now, self.config, self.flags, self.boundaries)
        ended = current_phase(now, self.config, self.boundaries) is Phase.ENDED
        # Delivery and stop() share the lock; a tick that was already computing
        # when stop() ran is dropped here.
        with self._lock:
            if not self._running:
                return None
            self.last = result
            self._on_tick(result)
            if self._stop_when_ended and ended:
                logger.debug("Countdown reached the end of the event; stopping")
                self.stop()
        return result

    def start(self) -> Countdown:
        with self._lock:
            if self._running:
                return self
            self._running = True
        self._ticker.start(self.tick)
        self.tick()
        return self

    def stop(self) -> None:
        with self._lock:
            self._running = False
        self._ticker.stop()

    def __enter__(self) -> Countdown:
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()
