"""Minimum wage compliance calculators."""

from wage_compliance.calculators.aggregator import ComponentAggregator
from wage_compliance.calculators.engine import (
    BatchCalculationResult,
    BatchSummary,
    ComplianceEngine,
)
from wage_compliance.calculators.fix_suggestions import FixSuggestionGenerator
from wage_compliance.calculators.rag_classifier import RAGClassifier, severity_for_shortfall
from wage_compliance.calculators.rate_table import RateTable

__all__ = [
    "BatchCalculationResult",
    "BatchSummary",
    "ComplianceEngine",
    "ComponentAggregator",
    "FixSuggestionGenerator",
    "RAGClassifier",
    "RateTable",
    "severity_for_shortfall",
]
