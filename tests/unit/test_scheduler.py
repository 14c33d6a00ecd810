from __future__ import annotations

from typing import Any, Callable, List

import pytest

from rulechain import NoRulesConfigured, RateLimitError, RuleSet, Scheduler


class FakeClock:
    def __init__(self, t: int = 0) -> None:
        self.t = t

    def __call__(self) -> int:
        return self.t

    def advance(self, dt: int) -> None:
        self.t += dt


class FakeTimer:
    def __init__(self, interval: float, fn: Callable[[], Any]) -> None:
        self.interval = interval
        self.fn = fn
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.fn()


def _scheduler(rules: RuleSet, timers: List[FakeTimer], sleeps: List[float] | None = None) -> Scheduler:
    def factory(interval: float, fn: Callable[[], Any]) -> FakeTimer:
        t = FakeTimer(interval, fn)
        timers.append(t)
        return t

    return Scheduler(rules, timer_factory=factory, sleeper=(sleeps.append if sleeps is not None else lambda s: None))


def test_push_runs_function_after_delay():
    timers: List[FakeTimer] = []
    ran: List[str] = []
    sched = _scheduler(RuleSet(clock=FakeClock()).secondly(1), timers)

    first = sched.push(lambda: ran.append("a"))
    second = sched.push(lambda: ran.append("b"))

    assert first is not None and first.delay == 0
    assert second is not None and second.delay == 1000
    assert [t.interval for t in timers] == [0.0, 1.0]
    assert all(t.started for t in timers)

    for t in timers:
        t.fire()
    assert ran == ["a", "b"]


def test_push_cancelled_by_condition():
    timers: List[FakeTimer] = []
    rules = RuleSet(clock=FakeClock()).secondly(1)
    sched = _scheduler(rules, timers)

    assert sched.push(lambda: None, lambda delay: False) is None
    assert timers == []
    assert len(rules.history) == 0


def test_push_without_rules():
    sched = _scheduler(RuleSet(), [])
    with pytest.raises(NoRulesConfigured):
        sched.push(lambda: None)


def test_cancel_keeps_reserved_slot():
    timers: List[FakeTimer] = []
    ran: List[int] = []
    rules = RuleSet(clock=FakeClock()).secondly(1)
    sched = _scheduler(rules, timers)

    call = sched.push(lambda: ran.append(1))
    assert call is not None
    call.cancel()
    timers[0].fire()

    assert ran == []
    assert rules.get_next_delay() == 1000


def test_non_blocking_acquire_exceeds_limit():
    clock = FakeClock()
    sched = _scheduler(RuleSet(clock=clock).minutely(2), [])

    sched.acquire()
    sched.acquire()
    with pytest.raises(RateLimitError):
        sched.acquire(blocking=False)

    clock.advance(60000)
    assert sched.acquire(blocking=False) == 0


def test_blocking_acquire_sleeps_for_delay():
    sleeps: List[float] = []
    sched = _scheduler(RuleSet(clock=FakeClock()).within(10000, 1), [], sleeps)

    assert sched.acquire() == 0
    assert sched.acquire() == 10000
    assert sleeps == [10.0]
