"""Rules package.

This package holds the declarative table of server health settings and
the rule engine that turns their live values into an aggregated plugin
status. Each setting is either a boolean flag (silent unless in a
problem state) or an integer reading (always reported, optionally
compared against a threshold).
"""

from .policy_table import DEFAULT_POLICIES, SettingKind, SettingPolicy, apply_overrides, coerce_value
from .rule_engine import RuleEngine

__all__ = [
    "DEFAULT_POLICIES",
    "SettingKind",
    "SettingPolicy",
    "apply_overrides",
    "coerce_value",
    "RuleEngine",
]
