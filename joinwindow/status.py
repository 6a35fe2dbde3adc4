"""Display status for an event badge."""

from __future__ import annotations

from datetime import datetime

from .models import (
    EventFlags,
    EventStatus,
    JoinDecision,
    JoinWindowConfig,
    LifecycleStatus,
    StatusReason,
    Tone,
)
from .utils import to_naive_utc

DELETED = EventStatus("Deleted", Tone.ERROR, StatusReason.DELETED)
CANCELED = EventStatus("Canceled", Tone.WARN, StatusReason.CANCELED)
ONGOING = EventStatus("Happening now", Tone.INFO, StatusReason.ONGOING)
MANUALLY_CLOSED = EventStatus(
    "Registration closed by organizer", Tone.ERROR, StatusReason.CLOSED
)
NOT_OPEN = EventStatus("Registration not open yet", Tone.INFO, StatusReason.NOT_OPEN)
PRE_CUTOFF_CLOSED = EventStatus(
    "Registration closed before start", Tone.WARN, StatusReason.LOCK
)
FULL = EventStatus("No spots left", Tone.ERROR, StatusReason.FULL)
STARTED = EventStatus("Started, joining locked", Tone.ERROR, StatusReason.STARTED)
AVAILABLE = EventStatus("Available", Tone.OK, StatusReason.OK)


def resolve(flags: EventFlags, decision: JoinDecision) -> EventStatus:
    """Return the badge status; the first matching condition wins.

    Unlike ``windows.evaluate`` this never checks "ended" itself: the caller's
    ``is_ongoing``/``has_started`` flags already encode the lifecycle.
    """
    if flags.is_deleted:
        return DELETED
    if flags.is_canceled:
        return CANCELED
    if flags.is_ongoing:
        return ONGOING
    if decision.is_manually_closed:
        return MANUALLY_CLOSED
    if decision.is_before_open:
        return NOT_OPEN
    if decision.is_pre_cutoff_closed:
        return PRE_CUTOFF_CLOSED
    if decision.is_full:
        return FULL
    if flags.has_started:
        return STARTED
    return AVAILABLE


def derive_event_flags(
    now: datetime,
    config: JoinWindowConfig,
    *,
    canceled_at: datetime | None = None,
    deleted_at: datetime | None = None,
) -> EventFlags:
    """Build caller-side flags from timestamps for callers without them."""
    now = to_naive_utc(now)
    return EventFlags(
        is_deleted=deleted_at is not None,
        is_canceled=canceled_at is not None,
        is_ongoing=config.start_at <= now < config.end_at,
        has_started=now >= config.start_at,
    )


def lifecycle_status(flags: EventFlags, *, has_ended: bool) -> LifecycleStatus:
    if flags.is_deleted:
        return LifecycleStatus.DELETED
    if flags.is_canceled:
        return LifecycleStatus.CANCELED
    if has_ended:
        return LifecycleStatus.PAST
    if flags.is_ongoing:
        return LifecycleStatus.ONGOING
    return LifecycleStatus.UPCOMING
