from __future__ import annotations

import pytest
from pydantic import ValidationError

from rulechain import RuleSet
from rulechain.config import ENV_PERIODS, RuleSetOptions


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_PERIODS.values():
        monkeypatch.delenv(name, raising=False)


def test_from_env_reads_period_quotas(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("RULECHAIN_MINUTELY", "5")
    monkeypatch.setenv("RULECHAIN_DAILY", " 500 ")
    monkeypatch.setenv("RULECHAIN_HOURLY", "")

    opts = RuleSetOptions.from_env()

    assert opts.period_quotas() == [("minutely", 5), ("daily", 500)]
    rules = RuleSet(opts)
    assert [r.window_millis for r in rules.rules] == [60000, 86400000]


def test_from_env_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("RULECHAIN_SECONDLY", "2")
    opts = RuleSetOptions.from_env(secondly=10, history=[1, 2])
    assert opts.secondly == 10
    assert opts.history == [1, 2]


def test_from_env_non_numeric(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("RULECHAIN_WEEKLY", "lots")
    with pytest.raises(RuntimeError, match="RULECHAIN_WEEKLY"):
        RuleSetOptions.from_env()


def test_unsorted_history_rejected():
    with pytest.raises(ValidationError):
        RuleSetOptions(history=[5, 1])


def test_empty_options():
    opts = RuleSetOptions()
    assert opts.history == []
    assert opts.period_quotas() == []
    assert opts.on_call is None and opts.on_clear is None
