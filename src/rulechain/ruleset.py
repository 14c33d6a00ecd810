from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Mapping, Optional, Tuple, Union

from .config import RuleSetOptions
from .errors import NoRulesConfigured
from .history import History
from .rules import PERIOD_MILLIS, CustomRule, EvaluationResult, Rule, WindowRule


logger = logging.getLogger(__name__)


def _now_millis() -> int:
    return int(time.time() * 1000)


class RuleSet:
    """
    Ordered collection of rate rules evaluated against one shared call history.

    - `get_next_delay()` returns how many milliseconds to wait before the next call
      satisfies every rule (max over rules) and drops history entries that no
      rule needs anymore (min safe truncation index over rules).
    - `record_call()` appends a committed call timestamp.
    - `reserve()` runs both steps as one transaction, optionally vetoed by `cond`.

    Thread-safe: evaluate, truncate and append run under an instance lock, so two
    callers can never both observe an under-quota state and both proceed.
    Not a distributed limiter; history lives in memory only.
    """

    def __init__(
        self,
        options: Optional[Union[RuleSetOptions, Mapping[str, Any]]] = None,
        *,
        history: Optional[History] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        if options is None:
            opts = RuleSetOptions()
        elif isinstance(options, RuleSetOptions):
            opts = options
        else:
            opts = RuleSetOptions.model_validate(dict(options))
        self._options = opts
        # An explicit History is shared on purpose; otherwise the seed is copied
        self._history = history if history is not None else History(opts.history)
        self._rules: list[Rule] = []
        self._lock = threading.RLock()
        self._clock = clock or _now_millis

        for name, quota in opts.period_quotas():
            self.within(PERIOD_MILLIS[name], quota)

    # -------- Introspection --------
    @property
    def rules(self) -> Tuple[Rule, ...]:
        return tuple(self._rules)

    @property
    def history(self) -> History:
        return self._history

    @property
    def options(self) -> RuleSetOptions:
        return self._options

    # -------- Rule registration --------
    def register_rule(self, rule: Union[Rule, Callable[[int, History], Any]]) -> "RuleSet":
        """Register a rule; plain callables are wrapped in CustomRule."""
        if not isinstance(rule, (WindowRule, CustomRule)):
            rule = CustomRule(rule)
        with self._lock:
            self._rules.append(rule)
        logger.debug("registered %r (%d rules)", rule, len(self._rules))
        return self

    def within(self, window_millis: int, max_calls: int) -> "RuleSet":
        """Allow at most `max_calls` calls within any `window_millis` span."""
        return self.register_rule(WindowRule(window_millis, max_calls))

    def secondly(self, max_calls: int) -> "RuleSet":
        return self.within(PERIOD_MILLIS["secondly"], max_calls)

    def minutely(self, max_calls: int) -> "RuleSet":
        return self.within(PERIOD_MILLIS["minutely"], max_calls)

    def quarterly(self, max_calls: int) -> "RuleSet":
        return self.within(PERIOD_MILLIS["quarterly"], max_calls)

    def hourly(self, max_calls: int) -> "RuleSet":
        return self.within(PERIOD_MILLIS["hourly"], max_calls)

    def daily(self, max_calls: int) -> "RuleSet":
        return self.within(PERIOD_MILLIS["daily"], max_calls)

    def weekly(self, max_calls: int) -> "RuleSet":
        return self.within(PERIOD_MILLIS["weekly"], max_calls)

    per_second = secondly
    per_minute = minutely
    per_quarter_hour = quarterly
    per_hour = hourly
    per_day = daily
    per_week = weekly

    # -------- Evaluation --------
    # Hooks fire after the lock is released, so a hook may safely use other rule sets.
    def _evaluate_locked(self, now: Optional[int]) -> Tuple[EvaluationResult, Optional[int]]:
        if not self._rules:
            raise NoRulesConfigured("there are no defined rules")
        if now is None:
            now = self._clock()

        results = [rule(now, self._history) for rule in self._rules]
        # Strictest rule wins; keep anything some rule still needs
        delay = max([0] + [r.delay for r in results])
        splice_idx = min(r.safe_truncation_index for r in results)

        oldest = None
        if splice_idx > 0:
            removed = min(splice_idx, len(self._history))
            oldest = self._history.truncate_prefix(splice_idx)
            logger.debug("cleared %d history entries (oldest=%s)", removed, oldest)

        return EvaluationResult(delay=delay, safe_truncation_index=splice_idx), oldest

    def _notify_clear(self, oldest: Optional[int]) -> None:
        if oldest is not None and self._options.on_clear is not None:
            self._options.on_clear(oldest)

    def _notify_call(self, delay: int) -> None:
        if self._options.on_call is not None:
            self._options.on_call(delay)

    def evaluate(self, now: Optional[int] = None) -> EvaluationResult:
        """Run every rule against one snapshot and truncate history that none needs.

        Raises NoRulesConfigured when no rule is registered.
        """
        with self._lock:
            result, oldest = self._evaluate_locked(now)
        self._notify_clear(oldest)
        return result

    def get_next_delay(self, now: Optional[int] = None) -> int:
        """Milliseconds to wait from `now` before a call satisfies every rule."""
        return self.evaluate(now).delay

    def record_call(self, timestamp: int, *, delay: int = 0) -> None:
        """Append a committed call at `timestamp` and notify `on_call(delay)`."""
        with self._lock:
            self._history.append(timestamp)
        self._notify_call(delay)

    def reserve(
        self,
        cond: Optional[Callable[[int], Any]] = None,
        now: Optional[int] = None,
    ) -> Optional[int]:
        """
        Compute the delay and commit a call slot in one step.

        - `cond(delay)` returning False vetoes; history then keeps only the
          truncation done during evaluation, and None is returned.
        - Otherwise records `now + delay` and returns the delay.

        `cond` runs under the lock; `on_clear` and `on_call` run after it is released.
        """
        with self._lock:
            if now is None:
                now = self._clock()
            result, oldest = self._evaluate_locked(now)
            delay = result.delay
            vetoed = cond is not None and cond(delay) is False
            if not vetoed:
                self._history.append(now + delay)

        self._notify_clear(oldest)
        if vetoed:
            logger.info("call vetoed by condition (delay=%dms)", delay)
            return None
        self._notify_call(delay)
        return delay


def new_rule_set(
    options: Optional[Union[RuleSetOptions, Mapping[str, Any]]] = None, **kwargs: Any
) -> RuleSet:
    """Convenience constructor: `new_rule_set(secondly=1, hourly=3)`."""
    if kwargs:
        if isinstance(options, RuleSetOptions):
            options = options.model_copy(update=kwargs)
        else:
            options = {**(options or {}), **kwargs}
    return RuleSet(options)


__all__ = ["RuleSet", "new_rule_set"]
