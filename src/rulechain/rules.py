from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol, Tuple

from .errors import InvalidQuota
from .history import History


# Named periods in registration order
PERIODS: Tuple[Tuple[str, int], ...] = (
    ("secondly", 1000),
    ("minutely", 60000),
    ("quarterly", 900000),
    ("hourly", 3600000),
    ("daily", 86400000),
    ("weekly", 604800000),
)

PERIOD_MILLIS = dict(PERIODS)


@dataclass(frozen=True)
class EvaluationResult:
    delay: int
    safe_truncation_index: int


class Rule(Protocol):
    def __call__(self, now: int, history: History) -> EvaluationResult: ...


def _validate_max_calls(max_calls: Any) -> int:
    # bool is an int subclass; True is not a quota
    if isinstance(max_calls, bool) or not isinstance(max_calls, (int, float)):
        raise InvalidQuota("max_calls must be above 0 and an integer")
    if max_calls % 1 != 0 or max_calls < 1:
        raise InvalidQuota("max_calls must be above 0 and an integer")
    return int(max_calls)


class WindowRule:
    """
    Sliding-window quota: at most `max_calls` calls within any `window_millis` span.

    Stateless; evaluation only reads the history it is given, so rules can be
    combined in any order.
    """

    def __init__(self, window_millis: int, max_calls: int) -> None:
        if window_millis <= 0:
            raise ValueError("window_millis must be > 0")
        self.window_millis = window_millis
        self.max_calls = _validate_max_calls(max_calls)

    def __call__(self, now: int, history: History) -> EvaluationResult:
        window_start = now - self.window_millis
        idx = history.insertion_rank(window_start)
        in_window = len(history) - idx
        if in_window < self.max_calls:
            delay = 0
        else:
            # Wait until enough of the oldest in-window calls expire to leave one free slot
            expiring = history[idx + (in_window - self.max_calls)]
            delay = expiring + self.window_millis - now
        return EvaluationResult(delay=delay, safe_truncation_index=idx)

    def __repr__(self) -> str:
        return f"WindowRule(window_millis={self.window_millis}, max_calls={self.max_calls})"


class CustomRule:
    """Adapts a user callable `(now, history) -> result` to the Rule contract.

    Accepted results: an EvaluationResult, a `(delay, safe_truncation_index)` pair,
    or a mapping with `delay` and `safe_truncation_index` keys.
    """

    def __init__(self, fn: Callable[[int, History], Any]) -> None:
        if not callable(fn):
            raise TypeError("rule must be callable")
        self.fn = fn

    def __call__(self, now: int, history: History) -> EvaluationResult:
        out = self.fn(now, history)
        if isinstance(out, EvaluationResult):
            return out
        if isinstance(out, Mapping):
            return EvaluationResult(
                delay=out["delay"], safe_truncation_index=out["safe_truncation_index"]
            )
        if isinstance(out, tuple) and len(out) == 2:
            return EvaluationResult(delay=out[0], safe_truncation_index=out[1])
        raise TypeError(f"custom rule returned unsupported result: {out!r}")

    def __repr__(self) -> str:
        return f"CustomRule({self.fn!r})"


__all__ = [
    "PERIODS",
    "PERIOD_MILLIS",
    "EvaluationResult",
    "Rule",
    "WindowRule",
    "CustomRule",
]
