"""Pytest fixtures for compliance engine tests."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

import pytest

from wage_compliance.calculators.aggregator import ComponentAggregator
from wage_compliance.calculators.engine import ComplianceEngine
from wage_compliance.calculators.fix_suggestions import FixSuggestionGenerator
from wage_compliance.calculators.rag_classifier import RAGClassifier
from wage_compliance.calculators.rate_table import RateTable
from wage_compliance.config import ComplianceThresholds
from wage_compliance.rates.loader import load_component_rules, load_snapshot
from wage_compliance.types import (
    Allowance,
    AllowanceType,
    CalculationRequest,
    Offset,
    OffsetType,
    PayPeriod,
    Worker,
)

# A week inside the April 2024 - March 2025 rate period (NLW 11.44 at 21+)
WEEK_START = date(2024, 6, 3)
WEEK_END = date(2024, 6, 9)


def make_worker(worker_id: str = "W001", age: int | None = 25, **kwargs: Any) -> Worker:
    """Build a worker with sensible defaults."""
    return Worker(worker_id=worker_id, age=age, **kwargs)


def make_period(
    hours: str | Decimal = "40",
    pay: str | Decimal = "400.00",
    start: date = WEEK_START,
    end: date = WEEK_END,
) -> PayPeriod:
    """Build a pay period with sensible defaults."""
    return PayPeriod(
        period_start=start,
        period_end=end,
        total_hours=Decimal(hours),
        total_pay=Decimal(pay),
    )


def make_request(
    worker: Worker | None = None,
    period: PayPeriod | None = None,
    offsets: tuple[Offset, ...] = (),
    allowances: tuple[Allowance, ...] = (),
) -> CalculationRequest:
    """Build a calculation request with sensible defaults."""
    return CalculationRequest(
        worker=worker or make_worker(),
        pay_period=period or make_period(),
        offsets=offsets,
        allowances=allowances,
    )


def offset(kind: OffsetType, amount: str, **kwargs: Any) -> Offset:
    return Offset(type=kind, amount=Decimal(amount), **kwargs)


def allowance(kind: AllowanceType, amount: str) -> Allowance:
    return Allowance(type=kind, amount=Decimal(amount))


def rate_document(**overrides: Any) -> dict[str, Any]:
    """A small valid rate document for loader tests."""
    document: dict[str, Any] = {
        "metadata": {"version": "test.1"},
        "rate_periods": [
            {
                "effective_from": "2024-04-01",
                "effective_to": "2025-04-01",
                "description": "2024/25",
                "bands": {
                    "nlw_21_plus": {
                        "min_age": 21,
                        "max_age": None,
                        "hourly_rate": "11.44",
                        "category": "NLW",
                    },
                    "age_18_20": {
                        "min_age": 18,
                        "max_age": 20,
                        "hourly_rate": "8.60",
                        "category": "NMW",
                    },
                    "age_16_17": {
                        "min_age": 16,
                        "max_age": 17,
                        "hourly_rate": "6.40",
                        "category": "NMW",
                    },
                    "apprentice": {"hourly_rate": "6.40", "category": "APPRENTICE"},
                },
            }
        ],
        "accommodation_offsets": [
            {"effective_from": "2024-04-01", "effective_to": None, "daily_limit": "9.99"}
        ],
    }
    document.update(overrides)
    return document


@pytest.fixture(scope="session")
def snapshot():
    """The bundled rate snapshot."""
    return load_snapshot()


@pytest.fixture(scope="session")
def component_rules():
    """The bundled component rules."""
    return load_component_rules()


@pytest.fixture
def thresholds() -> ComplianceThresholds:
    return ComplianceThresholds()


@pytest.fixture
def rate_table(snapshot) -> RateTable:
    return RateTable(snapshot)


@pytest.fixture
def aggregator(component_rules) -> ComponentAggregator:
    return ComponentAggregator(component_rules)


@pytest.fixture
def classifier(rate_table, thresholds) -> RAGClassifier:
    return RAGClassifier(rate_table, thresholds)


@pytest.fixture
def suggestion_generator(thresholds) -> FixSuggestionGenerator:
    return FixSuggestionGenerator(thresholds)


@pytest.fixture
def engine(snapshot, component_rules, thresholds) -> ComplianceEngine:
    return ComplianceEngine.from_snapshot(snapshot, component_rules, thresholds)
