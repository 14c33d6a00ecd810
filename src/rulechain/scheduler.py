from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .errors import RateLimitError
from .ruleset import RuleSet


logger = logging.getLogger(__name__)

TimerFactory = Callable[[float, Callable[[], Any]], Any]


@dataclass
class ScheduledCall:
    delay: int
    timer: Any

    def cancel(self) -> None:
        """Stop the pending invocation. The reserved slot stays recorded."""
        self.timer.cancel()


class Scheduler:
    """
    Runs callables no sooner than a RuleSet allows.

    - `push(fn)` reserves a slot and arms a timer that calls `fn` after the delay.
    - `acquire()` reserves a slot and sleeps through the delay in the calling thread.

    The rule set does the bookkeeping; this class only waits.
    """

    def __init__(
        self,
        rules: RuleSet,
        *,
        timer_factory: TimerFactory = threading.Timer,
        sleeper: Callable[[float], None] = time.sleep,
    ) -> None:
        self._rules = rules
        self._timer_factory = timer_factory
        self._sleep = sleeper

    @property
    def rules(self) -> RuleSet:
        return self._rules

    def push(
        self, fn: Callable[[], Any], cond: Optional[Callable[[int], Any]] = None
    ) -> Optional[ScheduledCall]:
        """
        Schedule `fn` for the earliest permitted moment.

        `cond(delay)` returning False cancels the push; None is returned and
        nothing is recorded. Raises NoRulesConfigured without rules.
        """
        delay = self._rules.reserve(cond)
        if delay is None:
            return None
        timer = self._timer_factory(delay / 1000.0, fn)
        # Don't keep the interpreter alive just for pending calls
        if isinstance(timer, threading.Thread):
            timer.daemon = True
        timer.start()
        logger.debug("scheduled %r in %dms", fn, delay)
        return ScheduledCall(delay=delay, timer=timer)

    def acquire(self, *, blocking: bool = True) -> int:
        """
        Reserve the next slot on the rule set and wait it out in this thread.

        Returns the delay in milliseconds that was slept. Without `blocking`,
        only a zero delay is accepted; anything else raises RateLimitError and
        leaves the history untouched.
        """
        delay = self._rules.reserve(None if blocking else (lambda d: d == 0))
        if delay is None:
            raise RateLimitError("no free slot in the rule set right now")
        if delay > 0:
            self._sleep(delay / 1000.0)
        return delay


__all__ = ["Scheduler", "ScheduledCall"]
