"""Classification of pay components for minimum wage pay."""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal

from wage_compliance.errors import ConfigurationError
from wage_compliance.types import AllowanceType, OffsetType, Treatment


def normalize_keyword(name: str) -> str:
    """Lower-case a column or component name and collapse separators."""
    return re.sub(r"[^a-z0-9]+", "_", name.strip().lower()).strip("_")


@dataclass(frozen=True)
class ComponentRule:
    """How one offset or allowance type counts towards minimum wage pay.

    Attributes:
        component: The OffsetType or AllowanceType the rule applies to
        category: included, excluded or offset
        treatment: Arithmetic applied by the aggregator
        daily_limit: Fallback per-day cap for capped offsets
        basic_rate_ratio: Share of a premium payment that is basic pay
        keywords: Normalized names that identify this component
    """

    component: OffsetType | AllowanceType
    category: str
    treatment: Treatment
    description: str = ""
    daily_limit: Decimal | None = None
    basic_rate_ratio: Decimal | None = None
    keywords: tuple[str, ...] = ()


class ComponentRuleSet:
    """Lookup over the component rules document."""

    def __init__(self, rules: list[ComponentRule], version: str = "unversioned"):
        self.version = version
        self._rules: dict[OffsetType | AllowanceType, ComponentRule] = {
            rule.component: rule for rule in rules
        }
        self._keywords: dict[str, OffsetType | AllowanceType] = {}
        for rule in rules:
            self._keywords[normalize_keyword(rule.component.value)] = rule.component
            for keyword in rule.keywords:
                self._keywords.setdefault(normalize_keyword(keyword), rule.component)

        missing = [
            member.value
            for member in (*OffsetType, *AllowanceType)
            if member not in self._rules
        ]
        if missing:
            raise ConfigurationError(
                f"Component rules missing for: {', '.join(missing)}",
                {"missing": missing},
            )

    def rule_for(self, component: OffsetType | AllowanceType) -> ComponentRule:
        """Return the rule for a component type.

        Raises:
            ConfigurationError: If no rule is configured for the type
        """
        try:
            return self._rules[component]
        except KeyError:
            raise ConfigurationError(
                f"No component rule for {component!r}",
                {"component": str(component)},
            ) from None

    def lookup(self, name: str) -> OffsetType | AllowanceType | None:
        """Resolve a component name by exact normalized keyword match."""
        return self._keywords.get(normalize_keyword(name))

    def __iter__(self):
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)
