"""Development helpers for generating fake event snapshots."""

from __future__ import annotations

import random
from datetime import datetime, timedelta
from typing import Any, Iterator

from faker import Faker

from .models import CapacityMode, JoinMode
from .snapshot import EventSnapshotPayload
from .utils import utcnow

_minute_choices = [None, 0, 15, 30, 60, 120, 24 * 60, 7 * 24 * 60]


def _maybe(rng: random.Random, value: Any, probability: float = 0.5) -> Any:
    return value if rng.random() < probability else None


def fake_snapshot(
    faker: Faker,
    *,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> EventSnapshotPayload:
    """Return a valid snapshot with randomized windows and capacity."""
    rng = rng or random.Random()
    now = now or utcnow()
    start = faker.date_time_between(
        start_date=now - timedelta(days=2), end_date=now + timedelta(days=14)
    ).replace(microsecond=0)
    end = start + timedelta(minutes=rng.randint(15, 8 * 60))

    capacity_mode = rng.choice(list(CapacityMode))
    maximum = _maybe(rng, rng.randint(2, 200), 0.7)
    minimum = _maybe(rng, rng.randint(1, maximum or 50), 0.4)
    if capacity_mode is CapacityMode.ONE_TO_ONE:
        minimum, maximum = 2, 2
    joined = rng.randint(0, (maximum or 1500) + 3)

    return EventSnapshotPayload(
        start_time=start.isoformat(),
        end_time=end.isoformat(),
        now=now.isoformat(),
        join_opens_minutes_before_start=rng.choice(_minute_choices),
        join_cutoff_minutes_before_start=rng.choice(_minute_choices[:5]),
        allow_join_late=rng.random() < 0.5,
        late_join_cutoff_minutes_after_start=rng.choice(_minute_choices[:5]),
        join_manually_closed=rng.random() < 0.1,
        min=minimum,
        max=maximum,
        joined_count=joined,
        join_mode=rng.choice(list(JoinMode)),
        capacity_mode=capacity_mode,
    )


def fake_snapshots(
    count: int, *, seed: int | None = None, now: datetime | None = None
) -> Iterator[EventSnapshotPayload]:
    faker = Faker()
    rng = random.Random(seed)
    if seed is not None:
        faker.seed_instance(seed)
    for _ in range(count):
        yield fake_snapshot(faker, now=now, rng=rng)
