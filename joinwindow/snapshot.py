"""Event snapshot payloads shared by the HTTP API and the CLI."""

from __future__ import annotations

import json
import tomllib
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from .capacity import format_capacity_detail
from .countdown import classify
from .models import (
    CapacityDetail,
    CapacityMode,
    CountdownPhase,
    EventFlags,
    EventStatus,
    JoinDecision,
    JoinMode,
    JoinWindowConfig,
    WindowBoundaries,
)
from .status import derive_event_flags, lifecycle_status, resolve
from .utils import to_naive_utc, utcnow
from .windows import evaluate, join_lock_reason, suggest_action


def parse_datetime(raw: str, *, timezone_offset_minutes: int = 0) -> datetime:
    """Parse an ISO datetime and normalize it to naive UTC.

    Naive values are treated as local times ``timezone_offset_minutes`` behind
    UTC, the same convention browsers use for ``getTimezoneOffset()``.
    """
    try:
        parsed = datetime.fromisoformat(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid datetime: {raw!r}") from exc
    if parsed.tzinfo is not None:
        return to_naive_utc(parsed)
    return parsed + timedelta(minutes=timezone_offset_minutes)


class EventSnapshotPayload(BaseModel):
    start_time: str = Field(..., description="ISO datetime string")
    end_time: str = Field(..., description="ISO datetime string after start_time")
    timezone_offset_minutes: int = 0
    now: str | None = Field(
        None, description="Optional ISO datetime to evaluate at instead of now"
    )
    join_opens_minutes_before_start: int | None = Field(None, ge=0)
    join_cutoff_minutes_before_start: int | None = Field(None, ge=0)
    allow_join_late: bool = False
    late_join_cutoff_minutes_after_start: int | None = Field(None, ge=0)
    join_manually_closed: bool = False
    min: int | None = Field(None, ge=0)
    max: int | None = Field(
        None, ge=0, description="Maximum participants; 0 or empty means unlimited"
    )
    joined_count: int = Field(0, ge=0)
    join_mode: JoinMode = JoinMode.OPEN
    capacity_mode: CapacityMode = CapacityMode.GROUP
    is_deleted: bool | None = None
    is_canceled: bool | None = None
    is_ongoing: bool | None = None
    has_started: bool | None = None
    canceled_at: str | None = None
    deleted_at: str | None = None

    def _parse(self, raw: str) -> datetime:
        return parse_datetime(raw, timezone_offset_minutes=self.timezone_offset_minutes)

    def to_config(self) -> JoinWindowConfig:
        return JoinWindowConfig(
            start_at=self._parse(self.start_time),
            end_at=self._parse(self.end_time),
            join_opens_minutes_before_start=self.join_opens_minutes_before_start,
            join_cutoff_minutes_before_start=self.join_cutoff_minutes_before_start,
            allow_join_late=self.allow_join_late,
            late_join_cutoff_minutes_after_start=self.late_join_cutoff_minutes_after_start,
            join_manually_closed=self.join_manually_closed,
            min=self.min,
            max=self.max or None,
            joined_count=self.joined_count,
            join_mode=self.join_mode,
        )

    def evaluation_time(self) -> datetime:
        return self._parse(self.now) if self.now else utcnow()

    def to_flags(self, now: datetime, config: JoinWindowConfig) -> EventFlags:
        """Return caller-supplied flags, deriving any that were left out."""
        derived = derive_event_flags(
            now,
            config,
            canceled_at=self._parse(self.canceled_at) if self.canceled_at else None,
            deleted_at=self._parse(self.deleted_at) if self.deleted_at else None,
        )
        return EventFlags(
            is_deleted=_pick(self.is_deleted, derived.is_deleted),
            is_canceled=_pick(self.is_canceled, derived.is_canceled),
            is_ongoing=_pick(self.is_ongoing, derived.is_ongoing),
            has_started=_pick(self.has_started, derived.has_started),
        )


def _pick(explicit: bool | None, derived: bool) -> bool:
    return derived if explicit is None else explicit


def load_snapshot_file(path: Path) -> EventSnapshotPayload:
    """Load a snapshot from a ``.toml`` or ``.json`` file."""
    raw = path.read_bytes()
    data: Any
    if path.suffix.lower() == ".json":
        data = json.loads(raw)
    else:
        data = tomllib.loads(raw.decode("utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Snapshot must be a table of event fields")
    event = data.get("event", data)
    if not isinstance(event, dict):
        raise ValueError("Snapshot [event] must be a table of event fields")
    return EventSnapshotPayload.model_validate(event)


def serialize_decision(decision: JoinDecision) -> dict[str, Any]:
    return {
        "can_join": decision.can_join,
        "cta_label": decision.cta_label.value,
        "reason": decision.reason,
        "is_before_open": decision.is_before_open,
        "is_pre_cutoff_closed": decision.is_pre_cutoff_closed,
        "is_manually_closed": decision.is_manually_closed,
        "is_full": decision.is_full,
        "is_late_join_open": decision.is_late_join_open,
        "is_ended": decision.is_ended,
        "is_window_open": decision.is_window_open,
    }


def serialize_status(status: EventStatus) -> dict[str, Any]:
    return {
        "label": status.label,
        "tone": status.tone.value,
        "reason": status.reason.value,
    }


def serialize_countdown(countdown: CountdownPhase | None) -> dict[str, Any] | None:
    if countdown is None:
        return None
    return {
        "phase": countdown.phase.value,
        "target": countdown.target.isoformat(),
        "label": countdown.label,
        "color": countdown.color.value,
        "remaining_seconds": int(countdown.remaining.total_seconds()),
        "text": countdown.text,
    }


def serialize_capacity(detail: CapacityDetail) -> dict[str, Any]:
    return {
        "participants_text": detail.participants_text,
        "min_threshold_text": detail.min_threshold_text,
        "status_text": detail.status_text,
        "status_variant": detail.status_variant.value,
    }


def capacity_for(payload: EventSnapshotPayload) -> CapacityDetail:
    return format_capacity_detail(
        payload.joined_count, payload.min, payload.max or None, payload.capacity_mode
    )


def countdown_for(payload: EventSnapshotPayload) -> CountdownPhase | None:
    config = payload.to_config()
    now = payload.evaluation_time()
    return classify(now, config, payload.to_flags(now, config))


def snapshot_report(payload: EventSnapshotPayload) -> dict[str, Any]:
    """Run every engine component against one snapshot and serialize the results."""
    config = payload.to_config()
    now = payload.evaluation_time()
    flags = payload.to_flags(now, config)
    boundaries = WindowBoundaries.from_config(config)

    decision = evaluate(now, config, boundaries)
    lock_reason = join_lock_reason(now, config, flags, boundaries)
    return {
        "now": now.isoformat(),
        "decision": serialize_decision(decision),
        "action": suggest_action(decision, config.join_mode).value,
        "lock_reason": lock_reason.value if lock_reason else None,
        "status": serialize_status(resolve(flags, decision)),
        "lifecycle": lifecycle_status(flags, has_ended=decision.is_ended).value,
        "countdown": serialize_countdown(classify(now, config, flags, boundaries)),
        "capacity": serialize_capacity(capacity_for(payload)),
    }
