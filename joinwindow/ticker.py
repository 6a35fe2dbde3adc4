"""Repeating tick sources for live countdowns."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Protocol

from apscheduler.schedulers.background import BackgroundScheduler

from .config import get_settings
from .utils import utcnow

logger = logging.getLogger("uvicorn.error")

TickCallback = Callable[[], None]


class Ticker(Protocol):
    def start(self, callback: TickCallback) -> None: ...

    def stop(self) -> None: ...


class SchedulerTicker:
    """Fire ``callback`` every ``interval_seconds`` on an APScheduler thread."""

    def __init__(
        self, interval_seconds: int | None = None, *, job_id: str = "countdown-tick"
    ):
        self.interval_seconds = (
            interval_seconds or get_settings().tick_interval_seconds
        )
        self.job_id = job_id
        self._scheduler: BackgroundScheduler | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return bool(self._scheduler and self._scheduler.running)

    def start(self, callback: TickCallback) -> None:
        with self._lock:
            if self.running:
                return
            scheduler = BackgroundScheduler(timezone="UTC")
            scheduler.add_job(
                callback,
                "interval",
                seconds=self.interval_seconds,
                id=self.job_id,
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
            scheduler.start()
            self._scheduler = scheduler
            logger.info(
                "Ticker %s started (every %ss)", self.job_id, self.interval_seconds
            )

    def stop(self) -> None:
        with self._lock:
            scheduler, self._scheduler = self._scheduler, None
        if scheduler and scheduler.running:
            scheduler.shutdown(wait=False)
            logger.info("Ticker %s stopped", self.job_id)


class VirtualClock:
    """Settable clock; call it to read the current virtual instant."""

    def __init__(self, start: datetime | None = None):
        self.now = start or utcnow()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class ManualTicker:
    """Ticker driven by hand, stepping a ``VirtualClock`` between ticks."""

    def __init__(self, clock: VirtualClock, interval_seconds: int = 1):
        self.clock = clock
        self.interval_seconds = interval_seconds
        self._callback: TickCallback | None = None

    @property
    def running(self) -> bool:
        return self._callback is not None

    def start(self, callback: TickCallback) -> None:
        if self._callback is None:
            self._callback = callback

    def stop(self) -> None:
        self._callback = None

    def advance(self, seconds: int) -> int:
        """Advance the clock by ``seconds``, ticking once per interval.

        Returns the number of ticks delivered.
        """
        fired = 0
        for _ in range(seconds // self.interval_seconds):
            self.clock.advance(seconds=self.interval_seconds)
            if self._callback is None:
                continue
            self._callback()
            fired += 1
        return fired
