"""Type definitions for the compliance pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any


class RateCategory(str, Enum):
    """Statutory rate categories."""

    NLW = "NLW"
    NMW = "NMW"
    APPRENTICE = "APPRENTICE"


class RagStatus(str, Enum):
    """Compliance classification."""

    GREEN = "GREEN"
    AMBER = "AMBER"
    RED = "RED"


class Severity(str, Enum):
    """Severity of an underpayment or a suggestion."""

    INFO = "INFO"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class OffsetType(str, Enum):
    """Deductions and offsets taken from pay."""

    ACCOMMODATION = "accommodation"
    UNIFORM = "uniform"
    TOOLS = "tools"
    TRAINING = "training"
    MEALS = "meals"
    TRANSPORT = "transport"
    OTHER = "other"


class AllowanceType(str, Enum):
    """Additional payments on top of basic pay."""

    TIPS = "tips"
    TRONC = "tronc"
    BONUS = "bonus"
    COMMISSION = "commission"
    SHIFT_PREMIUM = "shift_premium"
    OVERTIME = "overtime"
    HOLIDAY_PAY = "holiday_pay"


class Treatment(str, Enum):
    """How a pay component counts towards minimum wage pay."""

    FULL_INCLUSION = "full_inclusion"
    FULL_EXCLUSION = "full_exclusion"
    BASIC_RATE_ONLY = "basic_rate_only"
    REDUCES_PAY = "reduces_pay"
    CAPPED_OFFSET = "capped_offset"


class ComplianceFlag(str, Enum):
    """Conditions that stop a record being classified automatically.

    Declaration order is the order the classifier checks them in.
    """

    ZERO_HOURS_WITH_PAY = "zero_hours_with_pay"
    NO_HOURS_OR_PAY = "no_hours_or_pay"
    MISSING_AGE_DATA = "missing_age_data"
    NEGATIVE_EFFECTIVE_RATE = "negative_effective_rate"
    EXCESSIVE_DEDUCTIONS = "excessive_deductions"
    ACCOMMODATION_OFFSET_VIOLATIONS = "accommodation_offset_violations"


class SuggestionType(str, Enum):
    """Remediation suggestion codes."""

    ARREARS_TOP_UP = "ARREARS_TOP_UP"
    URGENT_REVIEW = "URGENT_REVIEW"
    HOURS_REVIEW = "HOURS_REVIEW"
    RATE_BREAKDOWN = "RATE_BREAKDOWN"
    DATA_CLARIFICATION = "DATA_CLARIFICATION"
    MISSING_DATA = "MISSING_DATA"
    DATA_ERROR = "DATA_ERROR"
    DEDUCTION_REVIEW = "DEDUCTION_REVIEW"
    ACCOMMODATION_REVIEW = "ACCOMMODATION_REVIEW"
    MANUAL_REVIEW = "MANUAL_REVIEW"
    COMPLIANCE_CONFIRMED = "COMPLIANCE_CONFIRMED"
    LOW_MARGIN = "LOW_MARGIN"


# Aggregator flags outside the classifier's amber set
ACCOMMODATION_EXCESS = "accommodation_excess"
ESTIMATED_PREMIUM_PORTION = "estimated_premium_portion"


def _iso(value: Any) -> Any:
    if value is None:
        return None
    return value.isoformat() if isinstance(value, date) else str(value)


def calculate_age(date_of_birth: date, reference_date: date) -> int:
    """Whole years between date of birth and reference date."""
    age = reference_date.year - date_of_birth.year
    if (reference_date.month, reference_date.day) < (
        date_of_birth.month,
        date_of_birth.day,
    ):
        age -= 1
    return age


# ============================================================================
# Inputs
# ============================================================================


@dataclass(frozen=True)
class Worker:
    """A worker being checked.

    Either ``age`` or ``date_of_birth`` identifies the rate band. When only
    the date of birth is known the age is derived for each pay period.
    """

    worker_id: str
    age: int | None = None
    date_of_birth: date | None = None
    is_apprentice: bool = False
    apprenticeship_start_date: date | None = None

    @property
    def has_age_data(self) -> bool:
        return self.age is not None or self.date_of_birth is not None

    def age_on(self, reference_date: date) -> int | None:
        """Age on the given date, preferring an explicit age."""
        if self.age is not None:
            return self.age
        if self.date_of_birth is not None:
            return calculate_age(self.date_of_birth, reference_date)
        return None

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "worker_id": self.worker_id,
            "age": self.age,
            "date_of_birth": _iso(self.date_of_birth),
            "is_apprentice": self.is_apprentice,
            "apprenticeship_start_date": _iso(self.apprenticeship_start_date),
        }


@dataclass(frozen=True)
class PayPeriod:
    """A pay reference period with the hours worked and gross pay."""

    period_start: date
    period_end: date
    total_hours: Decimal
    total_pay: Decimal

    @property
    def days(self) -> int:
        """Number of days in the period, both ends inclusive."""
        return (self.period_end - self.period_start).days + 1

    def to_canonical_dict(self) -> dict[str, Any]:
        return {
            "period_start": _iso(self.period_start),
            "period_end": _iso(self.period_end),
            "total_hours": str(self.total_hours),
            "total_pay": str(self.total_pay),
        }


@dataclass(frozen=True)
class Offset:
    """A deduction or benefit-in-kind offset taken from pay."""

    type: OffsetType
    amount: Decimal
    daily_rate: Decimal | None = None
    days_applied: int | None = None

    def to_canonical_dict(self) -> dict[str, Any]:
        return {
            "type": getattr(self.type, "value", self.type),
            "amount": str(self.amount),
            "daily_rate": str(self.daily_rate) if self.daily_rate is not None else None,
            "days_applied": self.days_applied,
        }


@dataclass(frozen=True)
class Allowance:
    """An additional payment on top of basic pay."""

    type: AllowanceType
    amount: Decimal

    def to_canonical_dict(self) -> dict[str, Any]:
        return {"type": getattr(self.type, "value", self.type), "amount": str(self.amount)}


@dataclass(frozen=True)
class CalculationRequest:
    """Everything needed to check one worker for one pay period."""

    worker: Worker
    pay_period: PayPeriod
    offsets: tuple[Offset, ...] = ()
    allowances: tuple[Allowance, ...] = ()

    def to_canonical_dict(self) -> dict[str, Any]:
        return {
            "worker": self.worker.to_canonical_dict(),
            "pay_period": self.pay_period.to_canonical_dict(),
            "offsets": [o.to_canonical_dict() for o in self.offsets],
            "allowances": [a.to_canonical_dict() for a in self.allowances],
        }


# ============================================================================
# Rate lookup
# ============================================================================


@dataclass(frozen=True)
class RateLookupResult:
    """The statutory rate that applies to a worker on a date."""

    hourly_rate: Decimal
    category: RateCategory
    band_key: str
    description: str
    rate_type: str  # 'apprentice' or 'age_band'
    reason: str
    age: int
    pay_date: date
    period_effective_from: date
    period_effective_to: date | None
    period_description: str

    def to_canonical_dict(self) -> dict[str, Any]:
        return {
            "hourly_rate": str(self.hourly_rate),
            "category": self.category.value,
            "band_key": self.band_key,
            "description": self.description,
            "rate_type": self.rate_type,
            "reason": self.reason,
            "age": self.age,
            "pay_date": self.pay_date.isoformat(),
            "period_effective_from": self.period_effective_from.isoformat(),
            "period_effective_to": (
                self.period_effective_to.isoformat() if self.period_effective_to else None
            ),
            "period_description": self.period_description,
        }


# ============================================================================
# Aggregation
# ============================================================================


@dataclass(frozen=True)
class OffsetBreakdown:
    """How a single offset was treated."""

    type: OffsetType
    treatment: Treatment
    amount: Decimal
    permitted: Decimal
    excess: Decimal
    days: int | None = None
    daily_limit: Decimal | None = None


@dataclass(frozen=True)
class AllowanceBreakdown:
    """How a single allowance was treated."""

    type: AllowanceType
    treatment: Treatment
    amount: Decimal
    included: Decimal
    excluded: Decimal


@dataclass(frozen=True)
class AggregationResult:
    """Minimum wage pay for a pay reference period."""

    total_pay: Decimal
    total_hours: Decimal
    eligible_pay: Decimal
    exact_eligible_pay: Decimal  # unrounded; compliance comparisons use this
    effective_hourly_rate: Decimal | None
    pay_reducing_deductions: Decimal
    included_allowances: Decimal
    excluded_allowances: Decimal
    total_offset_excess: Decimal
    total_deductions: Decimal
    deduction_ratio: Decimal | None
    days_in_period: int
    offset_breakdown: tuple[OffsetBreakdown, ...] = ()
    allowance_breakdown: tuple[AllowanceBreakdown, ...] = ()
    accommodation_offset_flags: tuple[str, ...] = ()
    flags: tuple[str, ...] = ()

    def shortfall_against(self, hourly_rate: Decimal) -> Decimal:
        """Pay owed to reach ``hourly_rate`` for every hour; negative when paid above it."""
        return hourly_rate * self.total_hours - self.exact_eligible_pay


# ============================================================================
# Classification
# ============================================================================


@dataclass(frozen=True)
class RateComparison:
    """Effective versus required hourly rate."""

    effective: Decimal
    required: Decimal
    difference: Decimal  # effective - required
    percentage_of_required: Decimal
    shortfall_percentage: Decimal | None = None


@dataclass(frozen=True)
class ComplianceResult:
    """Outcome of classifying one worker for one pay period."""

    success: bool
    worker_id: str
    rag_status: RagStatus
    reason: str
    calculation_id: str
    severity: Severity | None = None
    flags: tuple[str, ...] = ()
    effective_hourly_rate: Decimal | None = None
    required_hourly_rate: Decimal | None = None
    rate_comparison: RateComparison | None = None
    rate_details: RateLookupResult | None = None
    error_code: str | None = None
    error_details: dict[str, Any] = field(default_factory=dict)

    @property
    def shortfall_per_hour(self) -> Decimal | None:
        if self.rate_comparison is None or self.rag_status != RagStatus.RED:
            return None
        return -self.rate_comparison.difference


# ============================================================================
# Suggestions
# ============================================================================


@dataclass(frozen=True)
class FixSuggestion:
    """A single remediation suggestion."""

    type: SuggestionType
    severity: Severity
    message: str
    action_required: bool
    details: dict[str, Any] | None = None


@dataclass(frozen=True)
class ShortfallSummary:
    """Arrears owed for an underpaid pay period."""

    per_hour: Decimal
    hours: Decimal
    total: Decimal
    percentage: Decimal


@dataclass(frozen=True)
class SuggestionSet:
    """Ordered suggestions for one compliance result."""

    rag_status: RagStatus
    suggestions: tuple[FixSuggestion, ...]
    primary_suggestion: FixSuggestion | None
    shortfall: ShortfallSummary | None = None


@dataclass(frozen=True)
class CalculationResponse:
    """Full output for one calculation request."""

    compliance: ComplianceResult
    suggestions: SuggestionSet
    aggregation: AggregationResult | None = None

    @property
    def success(self) -> bool:
        return self.compliance.success
