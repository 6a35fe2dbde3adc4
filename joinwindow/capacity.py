"""Capacity card text for event details.

Handles every capacity mode (ONE_TO_ONE, GROUP, CUSTOM) and every combination
of optional ``min``/``max`` limits. Nothing here depends on time.
"""

from __future__ import annotations

from .config import get_settings
from .models import CapacityDetail, CapacityMode, StatusVariant
from .utils import group_thousands

NEAR_FULL_PERCENT = 80
LARGE_EVENT = 50
HUGE_EVENT = 1000


def _of(joined_count: int, maximum: int) -> str:
    return f"{joined_count} of {maximum}"


def _count(joined_count: int, separator: str | None = None) -> str:
    if joined_count >= HUGE_EVENT:
        separator = separator or get_settings().thousands_separator
        return group_thousands(joined_count, separator)
    return str(joined_count)


def _fill_percent(joined_count: int, maximum: int) -> float:
    if maximum <= 0:
        return 100.0
    return joined_count / maximum * 100


def format_capacity_detail(
    joined_count: int,
    min: int | None,
    max: int | None,
    mode: CapacityMode = CapacityMode.GROUP,
    *,
    separator: str | None = None,
) -> CapacityDetail:
    """Return participant text plus a status sentence and severity.

    Fill thresholds are inclusive: exactly 80% of ``max`` is "almost full"
    and exactly ``max`` is full.
    """
    mode = CapacityMode(mode)

    if mode is CapacityMode.ONE_TO_ONE:
        if joined_count < 2:
            return CapacityDetail(
                participants_text=_of(joined_count, 2),
                status_text="Needs 1 more participant to start the 1:1 meeting",
                status_variant=StatusVariant.WARNING,
            )
        return CapacityDetail(
            participants_text=_of(2, 2),
            status_text="The event is full",
            status_variant=StatusVariant.SUCCESS,
        )

    if min is None and max is None:
        if joined_count < LARGE_EVENT:
            status = "The event is open, with no minimum or maximum number of participants"
        elif joined_count < HUGE_EVENT:
            status = "No limits, the event keeps growing"
        else:
            status = "No limits, the event has no set capacity"
        return CapacityDetail(
            participants_text=_count(joined_count, separator),
            status_text=status,
            status_variant=StatusVariant.INFO,
        )

    if min is None:
        if joined_count >= max:
            status, variant = "The event is full", StatusVariant.SUCCESS
        elif _fill_percent(joined_count, max) >= NEAR_FULL_PERCENT:
            status, variant = "Last spots left", StatusVariant.WARNING
        else:
            status, variant = "The event is open", StatusVariant.INFO
        return CapacityDetail(
            participants_text=_of(joined_count, max),
            status_text=status,
            status_variant=variant,
        )

    if max is None:
        if joined_count < min:
            return CapacityDetail(
                participants_text=str(joined_count),
                min_threshold_text=str(min),
                status_text=(
                    "The event starts once it reaches the minimum number of "
                    "participants (no maximum limit)"
                ),
                status_variant=StatusVariant.WARNING,
            )
        if joined_count < HUGE_EVENT:
            status = "The event is open, with no maximum number of participants"
        else:
            status = "No upper limit, participants can keep joining"
        return CapacityDetail(
            participants_text=_count(joined_count, separator),
            status_text=status,
            status_variant=StatusVariant.INFO,
        )

    group = mode is CapacityMode.GROUP
    participants = _of(joined_count, max)
    if joined_count >= max:
        return CapacityDetail(
            participants_text=participants,
            status_text=(
                "The event is full"
                if group
                else "The maximum number of participants has been reached"
            ),
            status_variant=StatusVariant.SUCCESS,
        )
    if joined_count < min:
        return CapacityDetail(
            participants_text=participants,
            min_threshold_text=f"{min} participants",
            status_text=(
                "The event has not reached its minimum number of participants yet"
                if group
                else "The event starts once it reaches the minimum number of participants"
            ),
            status_variant=StatusVariant.WARNING,
        )
    if _fill_percent(joined_count, max) >= NEAR_FULL_PERCENT:
        return CapacityDetail(
            participants_text=participants,
            status_text=(
                "Last spots left"
                if group
                else "Approaching the maximum number of participants"
            ),
            status_variant=StatusVariant.WARNING,
        )
    return CapacityDetail(
        participants_text=participants,
        status_text=(
            "The event is open for more participants"
            if group
            else "The event is active and open"
        ),
        status_variant=StatusVariant.INFO,
    )


def format_participants_short(
    joined_count: int,
    min: int | None,
    max: int | None,
    mode: CapacityMode | None = None,
) -> str:
    """Return compact card text such as ``5 of 12`` or ``250 participants``."""
    if mode is not None and CapacityMode(mode) is CapacityMode.ONE_TO_ONE:
        return _of(joined_count, 2)
    if max is None:
        return f"{joined_count} participants"
    return _of(joined_count, max)


def format_capacity_string(joined_count: int, min: int | None, max: int | None) -> str:
    """Return the one-line capacity label used in compact listings."""
    if max is None:
        if min is None:
            return f"{joined_count} • no participant limit"
        return f"{joined_count} • minimum {min} people"
    if joined_count >= max:
        return f"No spots left • {joined_count} / {max}"
    available = max - joined_count
    return f"{joined_count} / {max} • {available} free"
