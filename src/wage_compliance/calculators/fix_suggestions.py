"""Remediation suggestions for classified pay periods."""

from __future__ import annotations

from decimal import Decimal

from wage_compliance.calculators.money import HUNDRED, round_to_pence
from wage_compliance.config import ComplianceThresholds
from wage_compliance.types import (
    ESTIMATED_PREMIUM_PORTION,
    AggregationResult,
    ComplianceFlag,
    ComplianceResult,
    FixSuggestion,
    PayPeriod,
    RagStatus,
    Severity,
    ShortfallSummary,
    SuggestionSet,
    SuggestionType,
    Worker,
)

DAYS_PER_WEEK = Decimal("7")

# Amber flag -> (suggestion, severity, message)
AMBER_FLAG_SUGGESTIONS: dict[str, tuple[SuggestionType, Severity, str]] = {
    ComplianceFlag.ZERO_HOURS_WITH_PAY.value: (
        SuggestionType.DATA_CLARIFICATION,
        Severity.MEDIUM,
        "Pay is recorded against zero hours. Confirm the hours worked "
        "for this pay period.",
    ),
    ComplianceFlag.MISSING_AGE_DATA.value: (
        SuggestionType.MISSING_DATA,
        Severity.HIGH,
        "Worker age or date of birth is missing. Provide it so the "
        "correct minimum wage band can be applied.",
    ),
    ComplianceFlag.NEGATIVE_EFFECTIVE_RATE.value: (
        SuggestionType.DATA_ERROR,
        Severity.CRITICAL,
        "Deductions exceed pay, giving a negative effective rate. Check "
        "the pay and deduction figures for errors.",
    ),
    ComplianceFlag.EXCESSIVE_DEDUCTIONS.value: (
        SuggestionType.DEDUCTION_REVIEW,
        Severity.HIGH,
        "Deductions are more than half of gross pay. Review each deduction "
        "to confirm it is lawful and correctly recorded.",
    ),
    ComplianceFlag.ACCOMMODATION_OFFSET_VIOLATIONS.value: (
        SuggestionType.ACCOMMODATION_REVIEW,
        Severity.HIGH,
        "Accommodation charges exceed the statutory offset limit. Reduce "
        "the charge or refund the excess.",
    ),
}


def is_informational_flag(flag: str) -> bool:
    """Aggregation flags that never need a review on their own."""
    return flag == ESTIMATED_PREMIUM_PORTION or flag.endswith("_offset_excess")


class FixSuggestionGenerator:
    """Turns a compliance result into ordered remediation suggestions.

    RED results get an arrears figure, AMBER results get one suggestion per
    review flag, and GREEN results get a confirmation. The primary
    suggestion is the first one that needs action, falling back to the
    first suggestion.
    """

    def __init__(self, thresholds: ComplianceThresholds | None = None):
        self.thresholds = thresholds or ComplianceThresholds()

    def generate(
        self,
        worker: Worker,
        pay_period: PayPeriod,
        rag_result: ComplianceResult,
        aggregation: AggregationResult | None = None,
    ) -> SuggestionSet:
        """Build suggestions for one compliance result."""
        shortfall = None
        if not rag_result.success:
            suggestions = [self._manual_review(rag_result)]
        elif rag_result.rag_status == RagStatus.RED:
            suggestions, shortfall = self._red(pay_period, rag_result, aggregation)
        elif rag_result.rag_status == RagStatus.AMBER:
            suggestions = self._amber(rag_result)
        else:
            suggestions = self._green(pay_period, rag_result, aggregation)

        primary = next((s for s in suggestions if s.action_required), None)
        if primary is None and suggestions:
            primary = suggestions[0]

        return SuggestionSet(
            rag_status=rag_result.rag_status,
            suggestions=tuple(suggestions),
            primary_suggestion=primary,
            shortfall=shortfall,
        )

    def _red(
        self,
        pay_period: PayPeriod,
        result: ComplianceResult,
        aggregation: AggregationResult | None,
    ) -> tuple[list[FixSuggestion], ShortfallSummary | None]:
        comparison = result.rate_comparison
        suggestions: list[FixSuggestion] = []
        shortfall = None

        hours = pay_period.total_hours
        owed = self._owed(pay_period, result, aggregation)
        per_hour = owed / hours
        exact_percentage = owed / (comparison.required * hours) * HUNDRED
        percentage = comparison.shortfall_percentage or round_to_pence(exact_percentage)

        if per_hour >= self.thresholds.negligible_shortfall_per_hour:
            total = round_to_pence(owed)
            shortfall = ShortfallSummary(
                per_hour=round_to_pence(per_hour),
                hours=hours,
                total=total,
                percentage=percentage,
            )
            suggestions.append(
                FixSuggestion(
                    type=SuggestionType.ARREARS_TOP_UP,
                    severity=result.severity or Severity.LOW,
                    message=(
                        f"Effective rate is £{round_to_pence(comparison.effective)}, which is "
                        f"£{round_to_pence(per_hour)} below the required £{comparison.required}. "
                        f"Add an arrears top-up of £{total}."
                    ),
                    action_required=True,
                    details={
                        "shortfall_per_hour": str(round_to_pence(per_hour)),
                        "hours": str(hours),
                        "total_shortfall": str(total),
                        "shortfall_percentage": str(percentage),
                    },
                )
            )

        if exact_percentage >= self.thresholds.urgent_shortfall_percentage:
            suggestions.append(
                FixSuggestion(
                    type=SuggestionType.URGENT_REVIEW,
                    severity=Severity.CRITICAL,
                    message=(
                        f"Shortfall of {percentage}% is at or above the "
                        f"{self.thresholds.urgent_shortfall_percentage}% urgent review "
                        "threshold. Review this worker's pay immediately."
                    ),
                    action_required=True,
                    details={"shortfall_percentage": str(percentage)},
                )
            )

        weekly_hours = round_to_pence(hours * DAYS_PER_WEEK / pay_period.days)
        if weekly_hours > self.thresholds.weekly_hours_ceiling:
            suggestions.append(
                FixSuggestion(
                    type=SuggestionType.HOURS_REVIEW,
                    severity=Severity.MEDIUM,
                    message=(
                        f"Hours average {weekly_hours} per week, above the "
                        f"{self.thresholds.weekly_hours_ceiling} hour limit in the Working "
                        "Time Regulations. Check the recorded hours and any opt-out."
                    ),
                    action_required=False,
                    details={"weekly_hours": str(weekly_hours)},
                )
            )

        breakdown = self._rate_details(result)
        if aggregation is not None:
            breakdown["eligible_pay"] = str(aggregation.eligible_pay)
            breakdown["total_hours"] = str(aggregation.total_hours)

        suggestions.append(
            FixSuggestion(
                type=SuggestionType.RATE_BREAKDOWN,
                severity=Severity.INFO,
                message=(
                    f"Required rate £{comparison.required} "
                    f"({self._band_text(result)}); effective rate "
                    f"£{round_to_pence(comparison.effective)}."
                ),
                action_required=False,
                details=breakdown,
            )
        )
        return suggestions, shortfall

    def _amber(self, result: ComplianceResult) -> list[FixSuggestion]:
        suggestions: list[FixSuggestion] = []
        unmatched = False
        for flag in result.flags:
            mapped = AMBER_FLAG_SUGGESTIONS.get(flag)
            if mapped is None:
                if not is_informational_flag(flag):
                    unmatched = True
                continue
            suggestion_type, severity, message = mapped
            suggestions.append(
                FixSuggestion(
                    type=suggestion_type,
                    severity=severity,
                    message=message,
                    action_required=True,
                    details={"flag": flag},
                )
            )
        if unmatched or not suggestions:
            suggestions.append(self._manual_review(result))
        return suggestions

    def _green(
        self,
        pay_period: PayPeriod,
        result: ComplianceResult,
        aggregation: AggregationResult | None,
    ) -> list[FixSuggestion]:
        comparison = result.rate_comparison
        cushion = -self._owed(pay_period, result, aggregation) / pay_period.total_hours
        cushion_percentage = round_to_pence(cushion / comparison.required * HUNDRED)
        suggestions = [
            FixSuggestion(
                type=SuggestionType.COMPLIANCE_CONFIRMED,
                severity=Severity.INFO,
                message=(
                    f"Effective rate £{round_to_pence(comparison.effective)} meets the "
                    f"required £{comparison.required} with £{round_to_pence(cushion)} "
                    f"per hour to spare ({cushion_percentage}%)."
                ),
                action_required=False,
                details={
                    "cushion_per_hour": str(round_to_pence(cushion)),
                    "cushion_percentage": str(cushion_percentage),
                    **self._rate_details(result),
                },
            )
        ]
        if cushion < self.thresholds.low_margin_per_hour:
            suggestions.append(
                FixSuggestion(
                    type=SuggestionType.LOW_MARGIN,
                    severity=Severity.LOW,
                    message=(
                        f"Pay is only £{round_to_pence(cushion)} per hour above the "
                        "minimum. A rate rise or extra deduction could cause an "
                        "underpayment."
                    ),
                    action_required=False,
                    details={"cushion_per_hour": str(round_to_pence(cushion))},
                )
            )
        return suggestions

    @staticmethod
    def _owed(
        pay_period: PayPeriod,
        result: ComplianceResult,
        aggregation: AggregationResult | None,
    ) -> Decimal:
        """Unrounded pay owed for the period; negative when paid above the minimum."""
        required = result.rate_comparison.required
        if aggregation is not None:
            return aggregation.shortfall_against(required)
        return (required - result.rate_comparison.effective) * pay_period.total_hours

    @staticmethod
    def _manual_review(result: ComplianceResult) -> FixSuggestion:
        details = {"reason": result.reason}
        if result.error_code:
            details["error_code"] = result.error_code
        return FixSuggestion(
            type=SuggestionType.MANUAL_REVIEW,
            severity=Severity.MEDIUM,
            message=f"Manual review required: {result.reason}",
            action_required=True,
            details=details,
        )

    @staticmethod
    def _band_text(result: ComplianceResult) -> str:
        if result.rate_details is None:
            return "rate band unknown"
        return result.rate_details.description or result.rate_details.band_key

    @staticmethod
    def _rate_details(result: ComplianceResult) -> dict[str, str]:
        details = {
            "effective_rate": str(result.rate_comparison.effective),
            "required_rate": str(result.rate_comparison.required),
        }
        if result.rate_details is not None:
            details["band"] = result.rate_details.band_key
            details["category"] = result.rate_details.category.value
            details["period"] = result.rate_details.period_effective_from.isoformat()
        return details
