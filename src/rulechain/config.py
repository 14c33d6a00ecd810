from __future__ import annotations

import os
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, Field, SkipValidation, field_validator

from .rules import PERIODS


# Environment variable names, one per named period
ENV_PREFIX = "RULECHAIN_"
ENV_PERIODS = {name: f"{ENV_PREFIX}{name.upper()}" for name, _ in PERIODS}

Quota = Union[int, float]
# Passed through untouched; WindowRule decides what is a valid quota
RawQuota = SkipValidation[Optional[Quota]]


def _parse_quota(name: str, raw: str) -> Quota:
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError as ex:
        raise RuntimeError(f"Invalid quota in {name}: {raw!r}") from ex


class RuleSetOptions(BaseModel):
    """
    Construction options for a RuleSet.

    Fields
    - history: seed timestamps (ms since epoch), sorted ascending.
    - secondly .. weekly: quota for the named period; registered in period order.
    - on_call: called with the delay whenever a call is committed.
    - on_clear: called with the oldest discarded timestamp when history is truncated.

    Notes
    - Quotas are checked when the rules are built, so a bad quota raises
      `InvalidQuota` rather than a pydantic error.
    """

    history: List[int] = Field(default_factory=list, description="Seed call timestamps")
    secondly: RawQuota = None
    minutely: RawQuota = None
    quarterly: RawQuota = None
    hourly: RawQuota = None
    daily: RawQuota = None
    weekly: RawQuota = None
    on_call: Optional[Callable[[int], Any]] = Field(default=None, exclude=True)
    on_clear: Optional[Callable[[int], Any]] = Field(default=None, exclude=True)

    @field_validator("history")
    @classmethod
    def _history_sorted(cls, v: List[int]) -> List[int]:
        if any(b < a for a, b in zip(v, v[1:])):
            raise ValueError("history must be sorted ascending")
        return v

    def period_quotas(self) -> List[tuple[str, Quota]]:
        """Configured (name, quota) pairs in period order."""
        out = []
        for name, _ in PERIODS:
            quota = getattr(self, name)
            if quota is not None:
                out.append((name, quota))
        return out

    @classmethod
    def from_env(cls, **overrides: Any) -> "RuleSetOptions":
        """Build options from RULECHAIN_<PERIOD> variables; unset or empty ones are skipped."""
        data: Dict[str, Any] = {}
        for name, env_name in ENV_PERIODS.items():
            raw = os.environ.get(env_name)
            if raw is None or raw.strip() == "":
                continue
            data[name] = _parse_quota(env_name, raw.strip())
        data.update(overrides)
        return cls.model_validate(data)


__all__ = ["ENV_PERIODS", "RuleSetOptions"]
