from __future__ import annotations

import threading
import time
from datetime import timedelta

import pytest

from joinwindow.countdown import (
    CLOSES_IN,
    ENDS_IN,
    LATE_JOIN_CLOSES_IN,
    OPENS_IN,
    STARTS_IN,
    Countdown,
    classify,
    current_phase,
)
from joinwindow.models import CountdownColor, EventFlags, Phase
from joinwindow.ticker import ManualTicker, SchedulerTicker, VirtualClock


def test_before_open_counts_to_opening(make_config, start):
    config = make_config(join_opens_minutes_before_start=24 * 60)
    result = classify(start - timedelta(days=3, hours=2), config)
    assert result.phase is Phase.BEFORE_OPEN
    assert result.target == start - timedelta(days=1)
    assert result.label == OPENS_IN
    assert result.color is CountdownColor.INFO
    assert result.text == "Registration opens in 2d 2h"


def test_open_with_cutoff_counts_to_cutoff(make_config, start):
    config = make_config(join_cutoff_minutes_before_start=30)
    result = classify(start - timedelta(hours=1), config)
    assert result.phase is Phase.OPEN_BEFORE_CUTOFF
    assert result.target == start - timedelta(minutes=30)
    assert result.label == CLOSES_IN
    assert result.color is CountdownColor.WARN
    assert result.text == "Registration closes in 30m"


def test_open_without_cutoff_counts_to_start(make_config, start):
    result = classify(start - timedelta(hours=4), make_config())
    assert result.phase is Phase.OPEN_BEFORE_CUTOFF
    assert result.target == start
    assert result.label == STARTS_IN
    assert result.color is CountdownColor.SUCCESS
    assert result.text == "Starts in 4h"


def test_cutoff_passed_counts_to_start(make_config, start):
    config = make_config(join_cutoff_minutes_before_start=60)
    result = classify(start - timedelta(minutes=10, seconds=5), config)
    assert result.phase is Phase.CUTOFF_BEFORE_START
    assert result.target == start
    assert result.text == "Starts in 10m 5s"


def test_late_join_counts_to_late_cutoff(make_config, start):
    config = make_config(allow_join_late=True, late_join_cutoff_minutes_after_start=20)
    result = classify(start + timedelta(minutes=5), config)
    assert result.phase is Phase.STARTED_LATE_JOIN
    assert result.target == start + timedelta(minutes=20)
    assert result.label == LATE_JOIN_CLOSES_IN
    assert result.color is CountdownColor.WARN


def test_late_join_without_cutoff_counts_to_end(make_config, start):
    config = make_config(allow_join_late=True)
    result = classify(start + timedelta(minutes=5), config)
    assert result.phase is Phase.STARTED_LATE_JOIN
    assert result.target == config.end_at
    assert result.label == ENDS_IN
    assert result.color is CountdownColor.ERROR


def test_started_without_late_join_counts_to_end(make_config, start):
    config = make_config()
    result = classify(start + timedelta(hours=1), config)
    assert result.phase is Phase.STARTED_NO_LATE_JOIN
    assert result.target == config.end_at
    assert result.text == "Ends in 1h"


def test_late_cutoff_passed_falls_back_to_no_late_join(make_config, start):
    config = make_config(allow_join_late=True, late_join_cutoff_minutes_after_start=10)
    assert current_phase(start + timedelta(minutes=10), config) is (
        Phase.STARTED_NO_LATE_JOIN
    )


def test_ended_shows_nothing(make_config):
    config = make_config()
    assert current_phase(config.end_at, config) is Phase.ENDED
    assert classify(config.end_at, config) is None
    assert classify(config.end_at + timedelta(days=1), config) is None


@pytest.mark.parametrize(
    "flags",
    [EventFlags(is_canceled=True), EventFlags(is_deleted=True)],
)
def test_canceled_or_deleted_shows_nothing(make_config, start, flags):
    assert classify(start - timedelta(hours=1), make_config(), flags) is None


def test_manually_closed_shows_nothing(make_config, start):
    config = make_config(join_manually_closed=True)
    assert classify(start - timedelta(hours=1), config) is None


def test_max_units_limits_text(make_config, start):
    config = make_config()
    now = start - timedelta(days=1, hours=2, minutes=3)
    assert classify(now, config, max_units=3).text == "Starts in 1d 2h 3m"
    assert classify(now, config, max_units=1).text == "Starts in 1d"


def test_target_is_always_in_the_future(make_config, start):
    config = make_config(
        join_opens_minutes_before_start=120,
        join_cutoff_minutes_before_start=15,
        allow_join_late=True,
        late_join_cutoff_minutes_after_start=30,
    )
    now = start - timedelta(hours=3)
    while now < config.end_at + timedelta(minutes=5):
        result = classify(now, config)
        if result is not None:
            assert result.target > now
            assert result.remaining == result.target - now
        now += timedelta(minutes=7, seconds=30)


def test_countdown_ticks_immediately_and_on_each_interval(make_config, start):
    clock = VirtualClock(start - timedelta(seconds=3))
    ticker = ManualTicker(clock)
    seen = []
    timer = Countdown(make_config(), seen.append, clock=clock, ticker=ticker)

    timer.start()
    assert [r.text for r in seen] == ["Starts in 3s"]
    assert ticker.advance(2) == 2
    assert [r.text for r in seen][1:] == ["Starts in 2s", "Starts in 1s"]
    assert timer.last.remaining == timedelta(seconds=1)


def test_countdown_moves_across_phases(make_config, start):
    config = make_config(join_cutoff_minutes_before_start=1)
    clock = VirtualClock(start - timedelta(seconds=62))
    ticker = ManualTicker(clock)
    seen = []
    with Countdown(config, seen.append, clock=clock, ticker=ticker):
        ticker.advance(4)
    phases = [r.phase for r in seen]
    assert phases[0] is Phase.OPEN_BEFORE_CUTOFF
    assert phases[-1] is Phase.CUTOFF_BEFORE_START


def test_no_ticks_after_stop(make_config, start):
    clock = VirtualClock(start - timedelta(hours=1))
    ticker = ManualTicker(clock)
    seen = []
    timer = Countdown(make_config(), seen.append, clock=clock, ticker=ticker)
    timer.start()
    timer.stop()

    assert ticker.advance(10) == 0
    assert timer.tick() is None
    assert len(seen) == 1
    assert timer.running is False


def test_stop_when_ended(make_config, start):
    config = make_config()
    clock = VirtualClock(config.end_at - timedelta(seconds=2))
    ticker = ManualTicker(clock)
    seen = []
    timer = Countdown(
        config, seen.append, clock=clock, ticker=ticker, stop_when_ended=True
    )
    timer.start()
    ticker.advance(5)

    assert seen[-1] is None
    assert len(seen) == 3
    assert timer.running is False
    assert ticker.running is False


def test_scheduler_tick_in_flight_is_dropped_by_stop(make_config, start):
    entered = threading.Event()
    release = threading.Event()
    calls = 0

    def blocking_clock():
        nonlocal calls
        calls += 1
        if calls == 2:
            # First scheduler tick: hold it until stop() has returned.
            entered.set()
            release.wait(timeout=5)
        return start - timedelta(hours=1)

    delivered = []
    timer = Countdown(
        make_config(),
        delivered.append,
        clock=blocking_clock,
        ticker=SchedulerTicker(1),
    )
    timer.start()
    assert len(delivered) == 1

    assert entered.wait(timeout=5)
    timer.stop()
    release.set()
    time.sleep(0.5)

    assert len(delivered) == 1
    assert timer.running is False


def test_scheduler_countdown_stops_itself_after_end(make_config):
    config = make_config()
    clock = VirtualClock(config.end_at + timedelta(minutes=1))
    delivered = []
    ticker = SchedulerTicker(1)
    timer = Countdown(
        config, delivered.append, clock=clock, ticker=ticker, stop_when_ended=True
    )
    timer.start()

    assert delivered == [None]
    assert timer.running is False
    assert ticker.running is False
    timer.stop()
