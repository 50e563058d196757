"""Compliance calculation engine - main orchestrator."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Sequence

from wage_compliance.calculators.aggregator import ComponentAggregator
from wage_compliance.calculators.fix_suggestions import FixSuggestionGenerator
from wage_compliance.calculators.money import HUNDRED, ZERO, fingerprint, round_to_pence
from wage_compliance.calculators.rag_classifier import RAGClassifier, failure_result
from wage_compliance.calculators.rate_table import RateTable
from wage_compliance.config import ComplianceThresholds, Settings
from wage_compliance.errors import WageComplianceError
from wage_compliance.rates.component_rules import ComponentRuleSet
from wage_compliance.rates.loader import RateConfigLoader, load_component_rules
from wage_compliance.rates.snapshot import RateSnapshot
from wage_compliance.types import (
    CalculationRequest,
    CalculationResponse,
    OffsetType,
    RagStatus,
    Severity,
)

logger = logging.getLogger(__name__)

SnapshotSource = Callable[[], RateSnapshot]


@dataclass(frozen=True)
class BatchSummary:
    """Totals across a batch of calculations."""

    total: int = 0
    green: int = 0
    amber: int = 0
    red: int = 0
    errors: int = 0
    critical_underpayments: int = 0
    compliance_rate: Decimal = ZERO
    total_arrears: Decimal = ZERO


@dataclass(frozen=True)
class BatchCalculationResult:
    """Result of calculating a batch, in request order."""

    results: tuple[CalculationResponse, ...]
    summary: BatchSummary
    rates_version: str | None

    @property
    def error_count(self) -> int:
        return self.summary.errors


def summarize(results: Sequence[CalculationResponse]) -> BatchSummary:
    """Count outcomes across a set of responses."""
    green = amber = red = errors = critical = 0
    arrears = ZERO
    for response in results:
        compliance = response.compliance
        if not compliance.success:
            errors += 1
            continue
        if compliance.rag_status == RagStatus.GREEN:
            green += 1
        elif compliance.rag_status == RagStatus.AMBER:
            amber += 1
        else:
            red += 1
            if compliance.severity == Severity.CRITICAL:
                critical += 1
            if response.suggestions.shortfall is not None:
                arrears += response.suggestions.shortfall.total

    total = len(results)
    rate = round_to_pence(Decimal(green) / Decimal(total) * HUNDRED) if total else ZERO
    return BatchSummary(
        total=total,
        green=green,
        amber=amber,
        red=red,
        errors=errors,
        critical_underpayments=critical,
        compliance_rate=rate,
        total_arrears=round_to_pence(arrears),
    )


class ComplianceEngine:
    """Main compliance calculation engine.

    Calculation pipeline (stable order per request):
    1) Capture the current rate snapshot
    2) Resolve the accommodation offset limit for the pay period
    3) Aggregate pay, offsets and allowances into an effective rate
    4) Classify against the required rate
    5) Generate fix suggestions

    Every engine error is turned into an unsuccessful result, so
    ``calculate`` always returns a response.
    """

    def __init__(
        self,
        snapshot_source: SnapshotSource,
        component_rules: ComponentRuleSet,
        thresholds: ComplianceThresholds | None = None,
        max_workers: int | None = None,
    ):
        self.snapshot_source = snapshot_source
        self.component_rules = component_rules
        self.thresholds = thresholds or ComplianceThresholds()
        self.max_workers = max_workers
        self.aggregator = ComponentAggregator(component_rules)
        self.suggestion_generator = FixSuggestionGenerator(self.thresholds)

    @classmethod
    def from_snapshot(
        cls,
        snapshot: RateSnapshot,
        component_rules: ComponentRuleSet | None = None,
        thresholds: ComplianceThresholds | None = None,
    ) -> ComplianceEngine:
        """Engine pinned to a fixed snapshot."""
        return cls(
            lambda: snapshot,
            component_rules or load_component_rules(),
            thresholds=thresholds,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> ComplianceEngine:
        """Engine that follows the configured rate file as it changes."""
        return cls(
            RateConfigLoader(settings.rates_path),
            load_component_rules(settings.component_rules_path),
            thresholds=settings.thresholds,
            max_workers=settings.batch_max_workers,
        )

    def current_rate_table(self) -> RateTable:
        return RateTable(self.snapshot_source(), max_age=self.thresholds.max_worker_age)

    def calculate(
        self,
        request: CalculationRequest,
        snapshot: RateSnapshot | None = None,
    ) -> CalculationResponse:
        """Check one worker for one pay period."""
        worker = request.worker
        try:
            if snapshot is None:
                snapshot = self.snapshot_source()
            rate_table = RateTable(snapshot, max_age=self.thresholds.max_worker_age)

            accommodation_limit = None
            if any(
                getattr(offset.type, "value", offset.type) == OffsetType.ACCOMMODATION.value
                for offset in request.offsets
            ):
                rule = rate_table.get_accommodation_offset_limit(
                    request.pay_period.period_start
                )
                accommodation_limit = rule.daily_limit

            aggregation = self.aggregator.aggregate(
                request.pay_period,
                request.offsets,
                request.allowances,
                accommodation_daily_limit=accommodation_limit,
            )
        except WageComplianceError as exc:
            logger.warning("Calculation failed for worker %s: %s", worker.worker_id, exc)
            return self._failure_response(request, snapshot, exc)
        except Exception as exc:
            logger.exception("Unexpected error calculating worker %s", worker.worker_id)
            return self._failure_response(request, snapshot, exc)

        classifier = RAGClassifier(rate_table, self.thresholds)
        compliance = classifier.classify(worker, request.pay_period, aggregation)
        suggestions = self.suggestion_generator.generate(
            worker, request.pay_period, compliance, aggregation
        )
        logger.debug(
            "Worker %s classified %s (%s)",
            worker.worker_id,
            compliance.rag_status.value,
            compliance.calculation_id,
        )
        return CalculationResponse(
            compliance=compliance,
            suggestions=suggestions,
            aggregation=aggregation,
        )

    def calculate_batch(
        self,
        requests: Sequence[CalculationRequest],
        max_workers: int | None = None,
    ) -> BatchCalculationResult:
        """Check many workers against one rate snapshot.

        Results are returned in request order.
        """
        try:
            snapshot = self.snapshot_source()
        except WageComplianceError as exc:
            logger.error("Rate configuration unavailable for batch: %s", exc)
            results = tuple(self._failure_response(r, None, exc) for r in requests)
            return BatchCalculationResult(results, summarize(results), rates_version=None)

        workers = max_workers or self.max_workers
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = tuple(pool.map(lambda r: self.calculate(r, snapshot=snapshot), requests))

        summary = summarize(results)
        logger.info(
            "Batch of %d calculated against rates %s: %d green, %d amber, %d red, %d errors",
            summary.total,
            snapshot.version,
            summary.green,
            summary.amber,
            summary.red,
            summary.errors,
        )
        return BatchCalculationResult(results, summary, rates_version=snapshot.version)

    def _failure_response(
        self,
        request: CalculationRequest,
        snapshot: RateSnapshot | None,
        exc: Exception,
    ) -> CalculationResponse:
        calculation_id = fingerprint(
            {
                "request": request.to_canonical_dict(),
                "rates_version": snapshot.version if snapshot else None,
            }
        )
        compliance = failure_result(request.worker.worker_id, calculation_id, exc)
        suggestions = self.suggestion_generator.generate(
            request.worker, request.pay_period, compliance
        )
        return CalculationResponse(compliance=compliance, suggestions=suggestions)
