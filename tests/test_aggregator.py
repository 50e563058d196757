"""Tests for pay reference period aggregation."""

from datetime import date
from decimal import Decimal

import pytest

from tests.conftest import allowance, make_period, offset
from wage_compliance.calculators.aggregator import ComponentAggregator
from wage_compliance.errors import ValidationError
from wage_compliance.types import (
    Allowance,
    AllowanceType as A,
    Offset,
    OffsetType as O,
    PayPeriod,
    Treatment,
)

# Monday to Friday
FIVE_DAYS = dict(start=date(2024, 6, 3), end=date(2024, 6, 7))


class TestBasicAggregation:
    """Test effective rate without adjustments."""

    def test_pay_over_hours(self, aggregator: ComponentAggregator):
        """With no components the effective rate is pay / hours."""
        result = aggregator.aggregate(make_period("40", "400.00"))

        assert result.eligible_pay == Decimal("400.00")
        assert result.effective_hourly_rate == Decimal("10.0000")
        assert result.days_in_period == 7
        assert result.flags == ()

    def test_rate_rounds_to_four_places(self, aggregator: ComponentAggregator):
        """The effective rate is quantized half-up to 4 decimal places."""
        result = aggregator.aggregate(make_period("3", "34.00"))

        assert result.effective_hourly_rate == Decimal("11.3333")

    def test_zero_hours_with_pay(self, aggregator: ComponentAggregator):
        """Pay against zero hours has no effective rate and is flagged."""
        result = aggregator.aggregate(make_period("0", "250.00"))

        assert result.effective_hourly_rate is None
        assert result.flags[0] == "zero_hours_with_pay"

    def test_zero_hours_zero_pay(self, aggregator: ComponentAggregator):
        """An empty period is flagged separately."""
        result = aggregator.aggregate(make_period("0", "0"))

        assert result.effective_hourly_rate is None
        assert result.flags == ("no_hours_or_pay",)
        assert result.deduction_ratio is None


class TestAllowances:
    """Test allowance treatment."""

    @pytest.mark.parametrize("kind", [A.TIPS, A.TRONC, A.HOLIDAY_PAY])
    def test_excluded_allowances(self, aggregator: ComponentAggregator, kind):
        """Tips, tronc and holiday pay never count."""
        result = aggregator.aggregate(make_period(), allowances=[allowance(kind, "50.00")])

        assert result.eligible_pay == Decimal("400.00")
        assert result.excluded_allowances == Decimal("50.00")
        assert result.allowance_breakdown[0].treatment == Treatment.FULL_EXCLUSION

    @pytest.mark.parametrize("kind", [A.BONUS, A.COMMISSION])
    def test_included_allowances(self, aggregator: ComponentAggregator, kind):
        """Bonus and commission count in full."""
        result = aggregator.aggregate(make_period(), allowances=[allowance(kind, "40.00")])

        assert result.eligible_pay == Decimal("440.00")
        assert result.effective_hourly_rate == Decimal("11.0000")

    def test_overtime_counts_basic_portion_only(self, aggregator: ComponentAggregator):
        """Only 67% of overtime pay counts, and the result is flagged as estimated."""
        result = aggregator.aggregate(
            make_period(), allowances=[allowance(A.OVERTIME, "100.00")]
        )

        assert result.included_allowances == Decimal("67.00")
        assert result.excluded_allowances == Decimal("33.00")
        assert result.effective_hourly_rate == Decimal("11.6750")
        assert "estimated_premium_portion" in result.flags

    def test_shift_premium_counts_basic_portion_only(self, aggregator: ComponentAggregator):
        """Only 80% of a shift premium counts."""
        result = aggregator.aggregate(
            make_period(), allowances=[allowance(A.SHIFT_PREMIUM, "50.00")]
        )

        assert result.included_allowances == Decimal("40.00")

    def test_unknown_allowance_type(self, aggregator: ComponentAggregator):
        """Unknown allowance types fail closed."""
        with pytest.raises(ValidationError):
            aggregator.aggregate(
                make_period(), allowances=[Allowance(type="mileage", amount=Decimal("5"))]
            )


class TestOffsets:
    """Test deductions and capped offsets."""

    @pytest.mark.parametrize("kind", [O.UNIFORM, O.TOOLS, O.TRAINING, O.OTHER])
    def test_pay_reducing_deductions(self, aggregator: ComponentAggregator, kind):
        """Deductions for the employer's benefit reduce pay in full."""
        result = aggregator.aggregate(make_period(), offsets=[offset(kind, "20.00")])

        assert result.eligible_pay == Decimal("380.00")
        assert result.pay_reducing_deductions == Decimal("20.00")
        assert result.total_deductions == Decimal("20.00")
        assert result.deduction_ratio == Decimal("0.0500")

    def test_accommodation_excess(self, aggregator: ComponentAggregator):
        """£12/day for 5 days against £9.99/day leaves £10.05 excess."""
        result = aggregator.aggregate(
            make_period(**FIVE_DAYS),
            offsets=[
                offset(O.ACCOMMODATION, "60.00", daily_rate=Decimal("12.00"), days_applied=5)
            ],
            accommodation_daily_limit=Decimal("9.99"),
        )

        assert result.total_offset_excess == Decimal("10.05")
        assert result.offset_breakdown[0].permitted == Decimal("49.95")
        assert result.accommodation_offset_flags == ("accommodation_excess",)
        assert result.eligible_pay == Decimal("389.95")
        assert result.effective_hourly_rate == Decimal("9.7488")

    def test_accommodation_within_limit(self, aggregator: ComponentAggregator):
        """A charge within the cap has no effect on pay."""
        result = aggregator.aggregate(
            make_period(**FIVE_DAYS),
            offsets=[offset(O.ACCOMMODATION, "45.00")],
            accommodation_daily_limit=Decimal("9.99"),
        )

        assert result.offset_breakdown[0].days == 5
        assert result.total_offset_excess == Decimal("0")
        assert result.accommodation_offset_flags == ()
        assert result.eligible_pay == Decimal("400.00")

    def test_accommodation_falls_back_to_rule_limit(self, aggregator: ComponentAggregator):
        """Without a statutory limit the rules document limit applies."""
        result = aggregator.aggregate(
            make_period(**FIVE_DAYS),
            offsets=[offset(O.ACCOMMODATION, "60.00", days_applied=5)],
        )

        assert result.offset_breakdown[0].daily_limit == Decimal("9.99")
        assert result.total_offset_excess == Decimal("10.05")

    @pytest.mark.parametrize("kind", [O.MEALS, O.TRANSPORT])
    def test_meals_and_transport_have_no_allowance(self, aggregator: ComponentAggregator, kind):
        """Meals and transport charges reduce pay but are not accommodation violations."""
        result = aggregator.aggregate(make_period(), offsets=[offset(kind, "10.00")])

        assert result.total_offset_excess == Decimal("10.00")
        assert result.eligible_pay == Decimal("390.00")
        assert result.accommodation_offset_flags == ()
        assert f"{kind.value}_offset_excess" in result.flags

    def test_deduction_ratio_counts_all_offsets(self, aggregator: ComponentAggregator):
        """The ratio uses the full amount of every offset."""
        result = aggregator.aggregate(
            make_period(**FIVE_DAYS),
            offsets=[offset(O.UNIFORM, "100.00"), offset(O.ACCOMMODATION, "40.00")],
            accommodation_daily_limit=Decimal("9.99"),
        )

        assert result.total_deductions == Decimal("140.00")
        assert result.deduction_ratio == Decimal("0.3500")

    def test_deductions_can_make_rate_negative(self, aggregator: ComponentAggregator):
        """Deductions larger than pay give a negative effective rate."""
        result = aggregator.aggregate(make_period(), offsets=[offset(O.UNIFORM, "500.00")])

        assert result.effective_hourly_rate == Decimal("-2.5000")

    def test_zero_pay_has_no_ratio(self, aggregator: ComponentAggregator):
        """The deduction ratio is undefined when there is no pay."""
        result = aggregator.aggregate(make_period("10", "0"), offsets=[offset(O.TOOLS, "5")])

        assert result.deduction_ratio is None
        assert result.effective_hourly_rate == Decimal("-0.5000")


class TestValidation:
    """Test that invalid input fails closed."""

    def test_negative_pay(self, aggregator: ComponentAggregator):
        with pytest.raises(ValidationError) as exc_info:
            aggregator.aggregate(make_period("40", "-1"))

        assert exc_info.value.field == "total_pay"

    def test_negative_hours(self, aggregator: ComponentAggregator):
        with pytest.raises(ValidationError):
            aggregator.aggregate(make_period("-5", "100"))

    def test_period_ends_before_start(self, aggregator: ComponentAggregator):
        with pytest.raises(ValidationError):
            aggregator.aggregate(make_period(start=date(2024, 6, 9), end=date(2024, 6, 3)))

    def test_non_numeric_pay(self, aggregator: ComponentAggregator):
        """Strings are not silently converted."""
        period = PayPeriod(
            period_start=date(2024, 6, 3),
            period_end=date(2024, 6, 9),
            total_hours=Decimal("40"),
            total_pay="four hundred",
        )

        with pytest.raises(ValidationError):
            aggregator.aggregate(period)

    def test_negative_offset(self, aggregator: ComponentAggregator):
        with pytest.raises(ValidationError) as exc_info:
            aggregator.aggregate(make_period(), offsets=[offset(O.UNIFORM, "-10")])

        assert exc_info.value.field == "offsets[0].amount"

    def test_negative_allowance(self, aggregator: ComponentAggregator):
        with pytest.raises(ValidationError):
            aggregator.aggregate(make_period(), allowances=[allowance(A.BONUS, "-10")])

    def test_unknown_offset_type(self, aggregator: ComponentAggregator):
        with pytest.raises(ValidationError):
            aggregator.aggregate(
                make_period(), offsets=[Offset(type="parking", amount=Decimal("5"))]
            )

    def test_negative_days_applied(self, aggregator: ComponentAggregator):
        with pytest.raises(ValidationError):
            aggregator.aggregate(
                make_period(), offsets=[offset(O.ACCOMMODATION, "10", days_applied=-1)]
            )

    def test_offset_amount_must_match_daily_rate(self, aggregator: ComponentAggregator):
        """£50 is not £12/day for 5 days."""
        with pytest.raises(ValidationError) as exc_info:
            aggregator.aggregate(
                make_period(**FIVE_DAYS),
                offsets=[
                    offset(O.ACCOMMODATION, "50.00", daily_rate=Decimal("12.00"), days_applied=5)
                ],
            )

        assert exc_info.value.field == "offsets[0].amount"

    def test_daily_rate_without_days_is_informational(self, aggregator: ComponentAggregator):
        result = aggregator.aggregate(
            make_period(**FIVE_DAYS),
            offsets=[offset(O.UNIFORM, "20.00", daily_rate=Decimal("3.00"))],
        )

        assert result.pay_reducing_deductions == Decimal("20.00")

    def test_boolean_is_not_a_number(self, aggregator: ComponentAggregator):
        with pytest.raises(ValidationError):
            aggregator.aggregate(make_period(), allowances=[Allowance(type=A.BONUS, amount=True)])
