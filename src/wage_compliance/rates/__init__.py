"""Statutory rate and component rule configuration."""

from wage_compliance.rates.component_rules import ComponentRule, ComponentRuleSet
from wage_compliance.rates.loader import (
    RateConfigLoader,
    load_component_rules,
    load_snapshot,
    snapshot_from_dict,
)
from wage_compliance.rates.snapshot import (
    AccommodationOffsetRule,
    RateBand,
    RatePeriod,
    RateSnapshot,
)

__all__ = [
    "AccommodationOffsetRule",
    "ComponentRule",
    "ComponentRuleSet",
    "RateBand",
    "RateConfigLoader",
    "RatePeriod",
    "RateSnapshot",
    "load_component_rules",
    "load_snapshot",
    "snapshot_from_dict",
]
