"""
Composable rate-limit scheduling for rulechain.

Modules:
- history: sorted call-timestamp store with rank queries and prefix truncation
- rules: sliding-window rules, custom rule adapter, named periods
- ruleset: rule combination, delay computation and call recording
- scheduler: timer/sleep based runner on top of a RuleSet
"""

from .config import RuleSetOptions
from .errors import InvalidQuota, LimitsError, NoRulesConfigured, RateLimitError
from .history import History
from .rules import PERIODS, CustomRule, EvaluationResult, Rule, WindowRule
from .ruleset import RuleSet, new_rule_set
from .scheduler import ScheduledCall, Scheduler

__all__ = [
    "PERIODS",
    "CustomRule",
    "EvaluationResult",
    "History",
    "InvalidQuota",
    "LimitsError",
    "NoRulesConfigured",
    "RateLimitError",
    "Rule",
    "RuleSet",
    "RuleSetOptions",
    "ScheduledCall",
    "Scheduler",
    "WindowRule",
    "new_rule_set",
]
