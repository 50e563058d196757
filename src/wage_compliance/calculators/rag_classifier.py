"""Red/Amber/Green compliance classification."""

from __future__ import annotations

import logging
from decimal import Decimal

from wage_compliance.calculators.money import (
    HUNDRED,
    fingerprint,
    quantize_rate,
    round_to_pence,
)
from wage_compliance.calculators.rate_table import RateTable
from wage_compliance.config import ComplianceThresholds
from wage_compliance.errors import (
    ComputationError,
    ConfigurationError,
    ValidationError,
    WageComplianceError,
)
from wage_compliance.types import (
    AggregationResult,
    ComplianceFlag,
    ComplianceResult,
    PayPeriod,
    RagStatus,
    RateComparison,
    Severity,
    Worker,
)

logger = logging.getLogger(__name__)

VALIDATION_ERROR = "VALIDATION_ERROR"
RATE_LOOKUP_FAILED = "RATE_LOOKUP_FAILED"
COMPUTATION_ERROR = "COMPUTATION_ERROR"

# Lower bounds (inclusive) of each severity band, highest first
SEVERITY_BANDS: tuple[tuple[Decimal, Severity], ...] = (
    (Decimal("20"), Severity.CRITICAL),
    (Decimal("10"), Severity.HIGH),
    (Decimal("5"), Severity.MEDIUM),
    (Decimal("0"), Severity.LOW),
)


def severity_for_shortfall(shortfall_percentage: Decimal) -> Severity:
    """Map a shortfall percentage to a severity.

    <5 LOW, 5 to <10 MEDIUM, 10 to <20 HIGH, 20 and above CRITICAL.
    """
    for lower_bound, severity in SEVERITY_BANDS:
        if shortfall_percentage >= lower_bound:
            return severity
    return Severity.LOW


def error_code_for(exc: Exception) -> str:
    """Result error code for an exception raised during a calculation."""
    if isinstance(exc, ValidationError):
        return VALIDATION_ERROR
    if isinstance(exc, ConfigurationError):
        return RATE_LOOKUP_FAILED
    return COMPUTATION_ERROR


def failure_result(worker_id: str, calculation_id: str, exc: Exception) -> ComplianceResult:
    """An unsuccessful AMBER result describing why a calculation failed."""
    message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
    details = {"error_type": type(exc).__name__, **getattr(exc, "details", {})}
    return ComplianceResult(
        success=False,
        worker_id=worker_id,
        rag_status=RagStatus.AMBER,
        reason=message,
        calculation_id=calculation_id,
        error_code=error_code_for(exc),
        error_details=details,
    )


class RAGClassifier:
    """Classifies a worker's pay period as GREEN, AMBER or RED.

    Classification:
    1) Amber pre-conditions are checked in a fixed order. Any match sends
       the record to manual review without a rate lookup.
    2) The required rate is looked up for the worker's age at the start
       of the pay period.
    3) Effective >= required is GREEN; anything less is RED with a
       severity from the shortfall percentage.

    Failures never produce GREEN: they come back as unsuccessful AMBER
    results carrying an error code.
    """

    def __init__(
        self,
        rate_table: RateTable,
        thresholds: ComplianceThresholds | None = None,
    ):
        self.rate_table = rate_table
        self.thresholds = thresholds or ComplianceThresholds()

    def classify(
        self,
        worker: Worker,
        pay_period: PayPeriod,
        aggregation: AggregationResult,
    ) -> ComplianceResult:
        """Classify one worker for one pay period."""
        calculation_id = self._calculation_id(worker, pay_period, aggregation)
        try:
            return self._classify(worker, pay_period, aggregation, calculation_id)
        except WageComplianceError as exc:
            return failure_result(worker.worker_id, calculation_id, exc)
        except Exception as exc:
            logger.exception("Unexpected error classifying worker %s", worker.worker_id)
            return failure_result(worker.worker_id, calculation_id, exc)

    def amber_flags(self, worker: Worker, aggregation: AggregationResult) -> list[str]:
        """Amber pre-conditions that hold, in check order."""
        checks = {
            ComplianceFlag.ZERO_HOURS_WITH_PAY: (
                ComplianceFlag.ZERO_HOURS_WITH_PAY.value in aggregation.flags
            ),
            ComplianceFlag.NO_HOURS_OR_PAY: (
                ComplianceFlag.NO_HOURS_OR_PAY.value in aggregation.flags
            ),
            ComplianceFlag.MISSING_AGE_DATA: not worker.has_age_data,
            ComplianceFlag.NEGATIVE_EFFECTIVE_RATE: (
                aggregation.effective_hourly_rate is not None
                and aggregation.exact_eligible_pay < 0
            ),
            ComplianceFlag.EXCESSIVE_DEDUCTIONS: (
                aggregation.deduction_ratio is not None
                and aggregation.deduction_ratio > self.thresholds.excessive_deduction_ratio
            ),
            ComplianceFlag.ACCOMMODATION_OFFSET_VIOLATIONS: bool(
                aggregation.accommodation_offset_flags
            ),
        }
        return [flag.value for flag in ComplianceFlag if checks[flag]]

    def _classify(
        self,
        worker: Worker,
        pay_period: PayPeriod,
        aggregation: AggregationResult,
        calculation_id: str,
    ) -> ComplianceResult:
        amber = self.amber_flags(worker, aggregation)
        flags = tuple(dict.fromkeys([*amber, *aggregation.flags]))

        if amber:
            return ComplianceResult(
                success=True,
                worker_id=worker.worker_id,
                rag_status=RagStatus.AMBER,
                reason=self._amber_reason(amber[0], aggregation),
                calculation_id=calculation_id,
                flags=flags,
                effective_hourly_rate=aggregation.effective_hourly_rate,
            )

        effective = aggregation.effective_hourly_rate
        if effective is None:
            raise ComputationError("Effective hourly rate missing for a period with hours")

        pay_date = pay_period.period_start
        lookup = self.rate_table.required_rate_for_worker(worker, pay_date)
        required = lookup.hourly_rate
        if required <= 0:
            raise ComputationError(
                f"Required rate {required} for band {lookup.band_key} is not positive"
            )

        # Compare unrounded pay; the 4 dp effective rate is for display only
        required_pay = required * aggregation.total_hours
        owed = aggregation.shortfall_against(required)
        percentage_of_required = round_to_pence(
            aggregation.exact_eligible_pay / required_pay * HUNDRED
        )
        difference = quantize_rate(
            aggregation.exact_eligible_pay / aggregation.total_hours - required
        )

        if owed <= 0:
            return ComplianceResult(
                success=True,
                worker_id=worker.worker_id,
                rag_status=RagStatus.GREEN,
                reason="Effective rate meets or exceeds the required rate",
                calculation_id=calculation_id,
                flags=flags,
                effective_hourly_rate=effective,
                required_hourly_rate=required,
                rate_comparison=RateComparison(
                    effective=effective,
                    required=required,
                    difference=difference,
                    percentage_of_required=percentage_of_required,
                ),
                rate_details=lookup,
            )

        shortfall = owed / required_pay * HUNDRED
        severity = severity_for_shortfall(shortfall)
        shortfall_percentage = round_to_pence(shortfall)
        return ComplianceResult(
            success=True,
            worker_id=worker.worker_id,
            rag_status=RagStatus.RED,
            reason=(
                f"Effective rate £{round_to_pence(effective)} is below the required "
                f"£{required} ({shortfall_percentage}% shortfall)"
            ),
            calculation_id=calculation_id,
            severity=severity,
            flags=flags,
            effective_hourly_rate=effective,
            required_hourly_rate=required,
            rate_comparison=RateComparison(
                effective=effective,
                required=required,
                difference=difference,
                percentage_of_required=percentage_of_required,
                shortfall_percentage=shortfall_percentage,
            ),
            rate_details=lookup,
        )

    def _amber_reason(self, flag: str, aggregation: AggregationResult) -> str:
        if flag == ComplianceFlag.ZERO_HOURS_WITH_PAY.value:
            return f"Pay of £{aggregation.total_pay} recorded with zero hours worked"
        if flag == ComplianceFlag.NO_HOURS_OR_PAY.value:
            return "No hours or pay recorded for the period"
        if flag == ComplianceFlag.MISSING_AGE_DATA.value:
            return "Worker age and date of birth are both missing"
        if flag == ComplianceFlag.NEGATIVE_EFFECTIVE_RATE.value:
            return (
                f"Effective hourly rate £{round_to_pence(aggregation.effective_hourly_rate)} "
                "is negative"
            )
        if flag == ComplianceFlag.EXCESSIVE_DEDUCTIONS.value:
            ratio = round_to_pence(aggregation.deduction_ratio * HUNDRED)
            limit = round_to_pence(self.thresholds.excessive_deduction_ratio * HUNDRED)
            return f"Deductions are {ratio}% of gross pay, above the {limit}% review threshold"
        return "Accommodation offset exceeds the statutory daily limit"

    def _calculation_id(
        self,
        worker: Worker,
        pay_period: PayPeriod,
        aggregation: AggregationResult,
    ) -> str:
        return fingerprint(
            {
                "worker": worker.to_canonical_dict(),
                "pay_period": pay_period.to_canonical_dict(),
                "eligible_pay": str(aggregation.exact_eligible_pay),
                "effective_hourly_rate": str(aggregation.effective_hourly_rate),
                "deduction_ratio": str(aggregation.deduction_ratio),
                "flags": list(aggregation.flags),
                "accommodation_offset_flags": list(aggregation.accommodation_offset_flags),
                "rates_version": self.rate_table.version,
            }
        )
