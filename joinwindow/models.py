"""Value types shared by the registration-window engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from .utils import to_naive_utc


class JoinMode(str, Enum):
    OPEN = "OPEN"
    REQUEST = "REQUEST"
    INVITE_ONLY = "INVITE_ONLY"


class CapacityMode(str, Enum):
    ONE_TO_ONE = "ONE_TO_ONE"
    GROUP = "GROUP"
    CUSTOM = "CUSTOM"


class CtaLabel(str, Enum):
    """User-facing call-to-action shown on the join button."""

    JOIN = "Join"
    REQUEST = "Request to join"
    INVITE_ONLY = "Invite only"
    NOT_OPEN_YET = "Registration not open yet"
    CUTOFF = "Registration closed"
    MANUALLY_CLOSED = "Registration closed by organizer"
    FULL = "No spots left"
    ENDED = "Event ended"


class Tone(str, Enum):
    OK = "ok"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class StatusReason(str, Enum):
    DELETED = "DELETED"
    CANCELED = "CANCELED"
    ONGOING = "ONGOING"
    CLOSED = "CLOSED"
    NOT_OPEN = "NOT_OPEN"
    LOCK = "LOCK"
    FULL = "FULL"
    STARTED = "STARTED"
    OK = "OK"


class Phase(str, Enum):
    BEFORE_OPEN = "BEFORE_OPEN"
    OPEN_BEFORE_CUTOFF = "OPEN_BEFORE_CUTOFF"
    CUTOFF_BEFORE_START = "CUTOFF_BEFORE_START"
    STARTED_LATE_JOIN = "STARTED_LATE_JOIN"
    STARTED_NO_LATE_JOIN = "STARTED_NO_LATE_JOIN"
    ENDED = "ENDED"


class CountdownColor(str, Enum):
    INFO = "info"
    WARN = "warn"
    SUCCESS = "success"
    ERROR = "error"


class StatusVariant(str, Enum):
    NEUTRAL = "neutral"
    WARNING = "warning"
    SUCCESS = "success"
    INFO = "info"


class JoinLockReason(str, Enum):
    DELETED = "DELETED"
    CANCELED = "CANCELED"
    ENDED = "ENDED"
    FULL = "FULL"
    MANUAL = "MANUAL"
    INVITE_ONLY = "INVITE_ONLY"
    NOT_OPEN_YET = "NOT_OPEN_YET"
    CUTOFF = "CUTOFF"
    NO_LATE_JOIN = "NO_LATE_JOIN"
    LATE_CUTOFF = "LATE_CUTOFF"


class JoinAction(str, Enum):
    JOIN = "JOIN"
    REQUEST = "REQUEST"
    WAITLIST = "WAITLIST"
    NONE = "NONE"


class LifecycleStatus(str, Enum):
    UPCOMING = "UPCOMING"
    ONGOING = "ONGOING"
    PAST = "PAST"
    CANCELED = "CANCELED"
    DELETED = "DELETED"


_MINUTE_FIELDS = (
    "join_opens_minutes_before_start",
    "join_cutoff_minutes_before_start",
    "late_join_cutoff_minutes_after_start",
)


@dataclass(frozen=True)
class JoinWindowConfig:
    """Scheduling and capacity snapshot of a single event.

    Instants are naive UTC; aware datetimes are converted on construction.
    Invalid snapshots raise ``ValueError`` instead of producing a decision.
    """

    start_at: datetime
    end_at: datetime
    join_opens_minutes_before_start: int | None = None
    join_cutoff_minutes_before_start: int | None = None
    allow_join_late: bool = False
    late_join_cutoff_minutes_after_start: int | None = None
    join_manually_closed: bool = False
    min: int | None = None
    max: int | None = None
    joined_count: int = 0
    join_mode: JoinMode = JoinMode.OPEN

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_at", to_naive_utc(self.start_at))
        object.__setattr__(self, "end_at", to_naive_utc(self.end_at))
        object.__setattr__(self, "join_mode", JoinMode(self.join_mode))
        if self.end_at <= self.start_at:
            raise ValueError("end_at must be after start_at")
        for name in _MINUTE_FIELDS:
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must not be negative")
        for name in ("min", "max"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must not be negative")
        if self.joined_count < 0:
            raise ValueError("joined_count must not be negative")


@dataclass(frozen=True)
class EventFlags:
    """Coarse lifecycle flags supplied by the caller."""

    is_deleted: bool = False
    is_canceled: bool = False
    is_ongoing: bool = False
    has_started: bool = False


@dataclass(frozen=True)
class WindowBoundaries:
    """Boundary instants derived once per evaluation and shared by consumers."""

    start_at: datetime
    end_at: datetime
    opens_at: datetime | None = None
    pre_cutoff_at: datetime | None = None
    late_cutoff_at: datetime | None = None

    @classmethod
    def from_config(cls, config: JoinWindowConfig) -> WindowBoundaries:
        start = config.start_at
        opens_at = None
        pre_cutoff_at = None
        late_cutoff_at = None
        if config.join_opens_minutes_before_start is not None:
            opens_at = start - timedelta(minutes=config.join_opens_minutes_before_start)
        if config.join_cutoff_minutes_before_start is not None:
            pre_cutoff_at = start - timedelta(
                minutes=config.join_cutoff_minutes_before_start
            )
        if (
            config.allow_join_late
            and config.late_join_cutoff_minutes_after_start is not None
        ):
            late_cutoff_at = start + timedelta(
                minutes=config.late_join_cutoff_minutes_after_start
            )
        return cls(
            start_at=start,
            end_at=config.end_at,
            opens_at=opens_at,
            pre_cutoff_at=pre_cutoff_at,
            late_cutoff_at=late_cutoff_at,
        )


@dataclass(frozen=True)
class JoinDecision:
    can_join: bool
    cta_label: CtaLabel
    reason: str | None = None
    is_before_open: bool = False
    is_pre_cutoff_closed: bool = False
    is_manually_closed: bool = False
    is_full: bool = False
    is_late_join_open: bool = False
    is_ended: bool = False
    is_window_open: bool = False


@dataclass(frozen=True)
class EventStatus:
    label: str
    tone: Tone
    reason: StatusReason


@dataclass(frozen=True)
class CountdownPhase:
    phase: Phase
    target: datetime
    label: str
    color: CountdownColor
    remaining: timedelta = field(default=timedelta(0))
    text: str = ""


@dataclass(frozen=True)
class CapacityDetail:
    participants_text: str
    status_text: str
    status_variant: StatusVariant
    min_threshold_text: str | None = None
