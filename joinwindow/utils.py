"""Utility helpers for joinwindow."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta


def utcnow() -> datetime:
    """Return a naive UTC datetime."""

    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Return ``value`` as a naive UTC datetime; naive input is assumed UTC."""

    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def group_thousands(value: int, separator: str = ",") -> str:
    """Return ``value`` with its thousands grouped, e.g. ``12,500``."""
    return f"{value:,}".replace(",", separator)


def format_remaining(delta: timedelta, *, max_units: int = 2) -> str:
    """Return a compact "2d 3h" style string for a positive duration.

    Only the ``max_units`` most significant units are shown, starting at the
    largest non-zero one. Trailing zero units are dropped, so exactly four
    hours reads ``4h`` rather than ``4h 0m``.
    """
    seconds = max(int(delta.total_seconds()), 0)
    days, seconds = divmod(seconds, 24 * 3600)
    hours, seconds = divmod(seconds, 3600)
    mins, seconds = divmod(seconds, 60)
    units = [("d", days), ("h", hours), ("m", mins), ("s", seconds)]

    start = next(
        (index for index, (_, amount) in enumerate(units) if amount), len(units) - 1
    )
    shown = units[start : start + max_units]
    while len(shown) > 1 and shown[-1][1] == 0:
        shown.pop()
    return " ".join(f"{amount}{suffix}" for suffix, amount in shown)
