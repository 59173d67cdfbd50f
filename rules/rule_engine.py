"""Server health rule engine.

The `RuleEngine` walks the setting policy table in declaration order,
fetches each enabled setting through a caller supplied function and
folds the verdicts into a single `CheckResult`. Fetching is injected so
that the engine never touches the network itself; the CLI passes a
bound API client method, tests pass a dictionary lookup.

Settings whose value is missing or not numeric are skipped: one flaky
endpoint should not hide or block the rest of the report.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Optional

from monitoring.report import CheckResult, Metric

from .policy_table import DEFAULT_POLICIES, SettingKind, SettingPolicy, coerce_value

logger = logging.getLogger(__name__)

ValueFetcher = Callable[[str], Any]


def format_value(value: float) -> str:
    """Two decimals with a thousands separator, e.g. ``1,234.00``."""
    return f"{value:,.2f}"


class RuleEngine:
    """Evaluate server health settings against their policies."""

    def __init__(self, policies: Optional[Iterable[SettingPolicy]] = None) -> None:
        self.policies: List[SettingPolicy] = list(DEFAULT_POLICIES if policies is None else policies)

    def evaluate(
        self,
        fetch_value: ValueFetcher,
        on_value: Optional[Callable[[str, float], None]] = None,
    ) -> CheckResult:
        """Fetch and judge every enabled setting.

        Parameters
        ----------
        fetch_value : callable
            Called once per enabled setting with the setting name. May
            return any raw value; non-numeric results are skipped.
        on_value : callable, optional
            Observer invoked with ``(name, value)`` for every numeric
            value, e.g. to feed a metrics exporter.

        Returns
        -------
        result : CheckResult
            Findings and metrics in policy declaration order.
        """
        result = CheckResult()
        for policy in self.policies:
            if policy.disabled:
                continue
            value = coerce_value(fetch_value(policy.name))
            if value is None:
                logger.debug("Invalid or missing value for %s", policy.name)
                continue
            logger.debug("Health setting '%s' value: %s", policy.name, value)
            if on_value is not None:
                on_value(policy.name, value)
            if policy.kind is SettingKind.BOOLEAN:
                self._evaluate_boolean(policy, value, result)
            else:
                self._evaluate_integer(policy, value, result)
        return result.finalize()

    @staticmethod
    def _evaluate_boolean(policy: SettingPolicy, value: float, result: CheckResult) -> None:
        problem = value != 0
        if policy.invert:
            problem = not problem
        # A healthy boolean stays silent.
        if problem:
            result.add_finding(f"{policy.severity.name}: {policy.description}", policy.severity)

    @staticmethod
    def _evaluate_integer(policy: SettingPolicy, value: float, result: CheckResult) -> None:
        text = f"{policy.description} = {format_value(value)}"
        if policy.informational:
            result.add_finding(f"INFO: {text}")
            return

        result.add_metric(Metric(policy.name, int(value), maximum=policy.threshold))
        if policy.invert:
            problem = value < policy.threshold
        else:
            problem = value >= policy.threshold
        if problem:
            result.add_finding(f"{policy.severity.name}: {text}", policy.severity)
        else:
            result.add_finding(f"OK: {text}")
