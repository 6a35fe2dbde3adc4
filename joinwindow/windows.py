"""Join-window evaluation.

``evaluate`` answers "may this user join right now, and what should the join
button say?" for a single event snapshot. Precedence between simultaneously
true conditions is an explicit, ordered rule table: the first matching rule
decides the outcome, and the mode default applies only when none match.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable

from .models import (
    CtaLabel,
    EventFlags,
    JoinAction,
    JoinDecision,
    JoinLockReason,
    JoinMode,
    JoinWindowConfig,
    WindowBoundaries,
)
from .utils import to_naive_utc

logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class WindowState:
    """Raw window booleans for one instant."""

    is_before_open: bool
    is_pre_cutoff_closed: bool
    is_manually_closed: bool
    is_full: bool
    is_late_join_open: bool
    is_ended: bool
    is_window_open: bool
    has_started: bool


def window_state(
    now: datetime,
    config: JoinWindowConfig,
    boundaries: WindowBoundaries | None = None,
) -> WindowState:
    bounds = boundaries or WindowBoundaries.from_config(config)
    now = to_naive_utc(now)
    start, end = bounds.start_at, bounds.end_at

    is_before_open = bounds.opens_at is not None and now < bounds.opens_at
    is_pre_cutoff_closed = (
        bounds.pre_cutoff_at is not None and bounds.pre_cutoff_at <= now < start
    )
    is_late_join_open = (
        start <= now < end
        and config.allow_join_late
        and (bounds.late_cutoff_at is None or now < bounds.late_cutoff_at)
    )
    is_full = config.max is not None and config.joined_count >= config.max
    in_main_window = not is_before_open and not is_pre_cutoff_closed and now < start
    is_window_open = (
        in_main_window or is_late_join_open
    ) and not config.join_manually_closed

    return WindowState(
        is_before_open=is_before_open,
        is_pre_cutoff_closed=is_pre_cutoff_closed,
        is_manually_closed=config.join_manually_closed,
        is_full=is_full,
        is_late_join_open=is_late_join_open,
        is_ended=now >= end,
        is_window_open=is_window_open,
        has_started=now >= start,
    )


OverrideRule = tuple[Callable[[WindowState], bool], CtaLabel, str]

# Highest priority first. An ended event reports "ended" even when it is also
# full, and a full event reports "full" even when it is also manually closed.
OVERRIDE_RULES: tuple[OverrideRule, ...] = (
    (lambda s: s.is_ended, CtaLabel.ENDED, "This event has already ended."),
    (lambda s: s.is_full, CtaLabel.FULL, "All spots for this event are taken."),
    (
        lambda s: s.is_manually_closed,
        CtaLabel.MANUALLY_CLOSED,
        "The organizer closed registration for this event.",
    ),
    (
        lambda s: s.is_pre_cutoff_closed,
        CtaLabel.CUTOFF,
        "Registration closed ahead of the start.",
    ),
    (
        lambda s: s.is_before_open,
        CtaLabel.NOT_OPEN_YET,
        "Registration has not opened yet.",
    ),
)

_MODE_LABELS = {
    JoinMode.OPEN: CtaLabel.JOIN,
    JoinMode.REQUEST: CtaLabel.REQUEST,
    JoinMode.INVITE_ONLY: CtaLabel.INVITE_ONLY,
}


def _mode_default(state: WindowState, config: JoinWindowConfig) -> JoinDecision:
    reason = None
    can_join = state.is_window_open and not state.is_full
    if config.join_mode is JoinMode.INVITE_ONLY:
        can_join = False
        reason = "Only invited members can join this event."
    elif not state.is_window_open and state.has_started:
        reason = (
            "Late joining has closed."
            if config.allow_join_late
            else "Joining after the start is not allowed."
        )
    return JoinDecision(
        can_join=can_join,
        cta_label=_MODE_LABELS[config.join_mode],
        reason=reason,
        is_before_open=state.is_before_open,
        is_pre_cutoff_closed=state.is_pre_cutoff_closed,
        is_manually_closed=state.is_manually_closed,
        is_full=state.is_full,
        is_late_join_open=state.is_late_join_open,
        is_ended=state.is_ended,
        is_window_open=state.is_window_open,
    )


def evaluate(
    now: datetime,
    config: JoinWindowConfig,
    boundaries: WindowBoundaries | None = None,
) -> JoinDecision:
    """Return the join decision for ``config`` at ``now``."""
    state = window_state(now, config, boundaries)
    decision = _mode_default(state, config)
    for predicate, label, reason in OVERRIDE_RULES:
        if predicate(state):
            logger.debug("Join override %s applied at %s", label.name, now)
            return replace(decision, can_join=False, cta_label=label, reason=reason)
    return decision


def join_lock_reason(
    now: datetime,
    config: JoinWindowConfig,
    flags: EventFlags | None = None,
    boundaries: WindowBoundaries | None = None,
) -> JoinLockReason | None:
    """Return why joins are locked server-side, or ``None`` when they are open.

    Hard blocks (deleted, canceled, ended, full, manual, invite-only) come
    before the time windows, which depend on whether the event has started.
    """
    flags = flags or EventFlags()
    bounds = boundaries or WindowBoundaries.from_config(config)
    state = window_state(now, config, bounds)
    now = to_naive_utc(now)

    if flags.is_deleted:
        return JoinLockReason.DELETED
    if flags.is_canceled:
        return JoinLockReason.CANCELED
    if state.is_ended:
        return JoinLockReason.ENDED
    if state.is_full:
        return JoinLockReason.FULL
    if config.join_manually_closed:
        return JoinLockReason.MANUAL
    if config.join_mode is JoinMode.INVITE_ONLY:
        return JoinLockReason.INVITE_ONLY

    if not state.has_started:
        if state.is_before_open:
            return JoinLockReason.NOT_OPEN_YET
        if bounds.pre_cutoff_at is not None and now >= bounds.pre_cutoff_at:
            return JoinLockReason.CUTOFF
        return None

    if not config.allow_join_late:
        return JoinLockReason.NO_LATE_JOIN
    if bounds.late_cutoff_at is not None and now >= bounds.late_cutoff_at:
        return JoinLockReason.LATE_CUTOFF
    return None


def suggest_action(decision: JoinDecision, join_mode: JoinMode) -> JoinAction:
    """Return which membership mutation the caller should offer."""
    join_mode = JoinMode(join_mode)
    if decision.can_join:
        return JoinAction.REQUEST if join_mode is JoinMode.REQUEST else JoinAction.JOIN
    if (
        decision.is_full
        and decision.is_window_open
        and not decision.is_ended
        and join_mode is not JoinMode.INVITE_ONLY
    ):
        return JoinAction.WAITLIST
    return JoinAction.NONE
