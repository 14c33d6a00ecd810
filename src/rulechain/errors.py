from __future__ import annotations


class LimitsError(RuntimeError):
    """Base error for rulechain."""


class InvalidQuota(LimitsError, ValueError):
    """Raised when a rule's max_calls is not a positive integer."""


class NoRulesConfigured(LimitsError):
    """Raised when a delay is requested from a rule set without rules."""


class RateLimitError(LimitsError):
    """Raised by Scheduler.acquire(blocking=False) when the RuleSet reports a non-zero delay."""


__all__ = [
    "LimitsError",
    "InvalidQuota",
    "NoRulesConfigured",
    "RateLimitError",
]
