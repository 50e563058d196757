"""Pay reference period aggregation.

Turns gross pay, hours, offsets and allowances into the pay that counts
towards the minimum wage and the resulting effective hourly rate.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from wage_compliance.calculators.money import ZERO, quantize_rate, round_to_pence, to_decimal
from wage_compliance.errors import ValidationError
from wage_compliance.rates.component_rules import ComponentRuleSet
from wage_compliance.types import (
    ACCOMMODATION_EXCESS,
    ESTIMATED_PREMIUM_PORTION,
    AggregationResult,
    Allowance,
    AllowanceBreakdown,
    AllowanceType,
    ComplianceFlag,
    Offset,
    OffsetBreakdown,
    OffsetType,
    PayPeriod,
    Treatment,
)


class ComponentAggregator:
    """Aggregates a pay reference period.

    eligible_pay = total_pay
                   - pay-reducing deductions
                   + included allowance portions
                   - capped offset excess

    Allowances are assumed to be reported separately from ``total_pay``.
    Invalid input fails closed with ValidationError; nothing is coerced
    to zero.
    """

    def __init__(self, rules: ComponentRuleSet):
        self.rules = rules

    def aggregate(
        self,
        pay_period: PayPeriod,
        offsets: Iterable[Offset] = (),
        allowances: Iterable[Allowance] = (),
        accommodation_daily_limit: Decimal | None = None,
    ) -> AggregationResult:
        """Aggregate one pay period.

        Args:
            pay_period: Hours and gross pay for the period
            offsets: Deductions and offsets taken from pay
            allowances: Additional payments
            accommodation_daily_limit: Statutory daily accommodation limit
                for the period; the rules document limit is used if omitted

        Returns:
            AggregationResult with the effective rate and breakdowns

        Raises:
            ValidationError: If any input is negative, non-numeric or of an
                unknown type, or the period ends before it starts
        """
        total_pay = to_decimal(pay_period.total_pay, "total_pay")
        total_hours = to_decimal(pay_period.total_hours, "total_hours")
        if pay_period.period_end < pay_period.period_start:
            raise ValidationError(
                "period_end", "must not be before period_start", pay_period.period_end
            )
        days_in_period = pay_period.days
        if accommodation_daily_limit is not None:
            accommodation_daily_limit = to_decimal(
                accommodation_daily_limit, "accommodation_daily_limit"
            )

        flags: list[str] = []
        accommodation_flags: list[str] = []

        pay_reducing = ZERO
        offset_excess = ZERO
        total_deductions = ZERO
        offset_breakdown: list[OffsetBreakdown] = []
        for index, offset in enumerate(offsets):
            entry = self._apply_offset(
                offset, index, days_in_period, accommodation_daily_limit
            )
            offset_breakdown.append(entry)
            total_deductions += entry.amount
            if entry.treatment == Treatment.REDUCES_PAY:
                pay_reducing += entry.amount
            elif entry.excess > 0:
                offset_excess += entry.excess
                if entry.type == OffsetType.ACCOMMODATION:
                    if ACCOMMODATION_EXCESS not in accommodation_flags:
                        accommodation_flags.append(ACCOMMODATION_EXCESS)
                else:
                    flag = f"{entry.type.value}_offset_excess"
                    if flag not in flags:
                        flags.append(flag)

        included = ZERO
        excluded = ZERO
        allowance_breakdown: list[AllowanceBreakdown] = []
        for index, allowance in enumerate(allowances):
            entry = self._apply_allowance(allowance, index)
            allowance_breakdown.append(entry)
            included += entry.included
            excluded += entry.excluded
            if (
                entry.treatment == Treatment.BASIC_RATE_ONLY
                and ESTIMATED_PREMIUM_PORTION not in flags
            ):
                flags.append(ESTIMATED_PREMIUM_PORTION)

        eligible_pay = total_pay - pay_reducing + included - offset_excess

        if total_hours == 0:
            effective_rate = None
            if total_pay > 0:
                flags.insert(0, ComplianceFlag.ZERO_HOURS_WITH_PAY.value)
            else:
                flags.insert(0, ComplianceFlag.NO_HOURS_OR_PAY.value)
        else:
            effective_rate = quantize_rate(eligible_pay / total_hours)

        deduction_ratio = (
            quantize_rate(total_deductions / total_pay) if total_pay > 0 else None
        )

        return AggregationResult(
            total_pay=round_to_pence(total_pay),
            total_hours=total_hours,
            eligible_pay=round_to_pence(eligible_pay),
            exact_eligible_pay=eligible_pay,
            effective_hourly_rate=effective_rate,
            pay_reducing_deductions=round_to_pence(pay_reducing),
            included_allowances=round_to_pence(included),
            excluded_allowances=round_to_pence(excluded),
            total_offset_excess=round_to_pence(offset_excess),
            total_deductions=round_to_pence(total_deductions),
            deduction_ratio=deduction_ratio,
            days_in_period=days_in_period,
            offset_breakdown=tuple(offset_breakdown),
            allowance_breakdown=tuple(allowance_breakdown),
            accommodation_offset_flags=tuple(accommodation_flags),
            flags=tuple(flags),
        )

    def _apply_offset(
        self,
        offset: Offset,
        index: int,
        days_in_period: int,
        accommodation_daily_limit: Decimal | None,
    ) -> OffsetBreakdown:
        try:
            offset_type = OffsetType(offset.type)
        except ValueError:
            raise ValidationError(
                f"offsets[{index}].type", "unknown offset type", offset.type
            ) from None
        amount = to_decimal(offset.amount, f"offsets[{index}].amount")
        if offset.days_applied is not None and (
            isinstance(offset.days_applied, bool)
            or not isinstance(offset.days_applied, int)
            or offset.days_applied < 0
        ):
            raise ValidationError(
                f"offsets[{index}].days_applied",
                "must be a non-negative whole number",
                offset.days_applied,
            )
        if offset.daily_rate is not None:
            daily_rate = to_decimal(offset.daily_rate, f"offsets[{index}].daily_rate")
            if offset.days_applied is not None and amount != daily_rate * offset.days_applied:
                raise ValidationError(
                    f"offsets[{index}].amount",
                    "does not match daily_rate x days_applied",
                    amount,
                )

        rule = self.rules.rule_for(offset_type)
        if rule.treatment == Treatment.REDUCES_PAY:
            return OffsetBreakdown(
                type=offset_type,
                treatment=rule.treatment,
                amount=amount,
                permitted=ZERO,
                excess=ZERO,
            )

        if rule.treatment != Treatment.CAPPED_OFFSET:
            raise ValidationError(
                f"offsets[{index}].type",
                f"rule treatment {rule.treatment.value} is not valid for an offset",
                offset_type.value,
            )

        days = offset.days_applied if offset.days_applied is not None else days_in_period

        if offset_type == OffsetType.ACCOMMODATION and accommodation_daily_limit is not None:
            daily_limit = accommodation_daily_limit
        else:
            daily_limit = rule.daily_limit if rule.daily_limit is not None else ZERO

        cap = daily_limit * days
        excess = max(ZERO, amount - cap)
        return OffsetBreakdown(
            type=offset_type,
            treatment=rule.treatment,
            amount=amount,
            permitted=min(amount, cap),
            excess=round_to_pence(excess),
            days=days,
            daily_limit=daily_limit,
        )

    def _apply_allowance(self, allowance: Allowance, index: int) -> AllowanceBreakdown:
        try:
            allowance_type = AllowanceType(allowance.type)
        except ValueError:
            raise ValidationError(
                f"allowances[{index}].type", "unknown allowance type", allowance.type
            ) from None
        amount = to_decimal(allowance.amount, f"allowances[{index}].amount")

        rule = self.rules.rule_for(allowance_type)
        if rule.treatment == Treatment.FULL_INCLUSION:
            included = amount
        elif rule.treatment == Treatment.BASIC_RATE_ONLY:
            included = round_to_pence(amount * rule.basic_rate_ratio)
        elif rule.treatment == Treatment.FULL_EXCLUSION:
            included = ZERO
        else:
            raise ValidationError(
                f"allowances[{index}].type",
                f"rule treatment {rule.treatment.value} is not valid for an allowance",
                allowance_type.value,
            )
        return AllowanceBreakdown(
            type=allowance_type,
            treatment=rule.treatment,
            amount=amount,
            included=included,
            excluded=amount - included,
        )
