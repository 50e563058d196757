"""Pydantic schemas for API request/response models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from wage_compliance.types import (
    Allowance,
    AllowanceType,
    CalculationRequest,
    Offset,
    OffsetType,
    PayPeriod,
    RagStatus,
    RateCategory,
    Severity,
    SuggestionType,
    Treatment,
    Worker,
)


class ResponseBase(BaseModel):
    """Base for responses built from engine dataclasses."""

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Calculation requests
# ============================================================================


class WorkerIn(BaseModel):
    """Worker details for a calculation."""

    worker_id: str = Field(min_length=1)
    age: int | None = None
    date_of_birth: date | None = None
    is_apprentice: bool = False
    apprenticeship_start_date: date | None = None

    def to_domain(self) -> Worker:
        return Worker(
            worker_id=self.worker_id,
            age=self.age,
            date_of_birth=self.date_of_birth,
            is_apprentice=self.is_apprentice,
            apprenticeship_start_date=self.apprenticeship_start_date,
        )


class PayPeriodIn(BaseModel):
    """Pay reference period with hours and gross pay."""

    period_start: date
    period_end: date
    total_hours: Decimal
    total_pay: Decimal

    def to_domain(self) -> PayPeriod:
        return PayPeriod(
            period_start=self.period_start,
            period_end=self.period_end,
            total_hours=self.total_hours,
            total_pay=self.total_pay,
        )


class OffsetIn(BaseModel):
    """A deduction or offset.

    ``amount`` may be omitted when ``daily_rate`` and ``days_applied`` are
    both given; it is then their product.
    """

    type: OffsetType
    amount: Decimal | None = None
    daily_rate: Decimal | None = None
    days_applied: int | None = None

    @model_validator(mode="after")
    def _derive_amount(self) -> OffsetIn:
        if self.amount is None:
            if self.daily_rate is None or self.days_applied is None:
                raise ValueError("amount is required unless daily_rate and days_applied are given")
            self.amount = self.daily_rate * self.days_applied
        return self

    def to_domain(self) -> Offset:
        return Offset(
            type=self.type,
            amount=self.amount,
            daily_rate=self.daily_rate,
            days_applied=self.days_applied,
        )


class AllowanceIn(BaseModel):
    """An additional payment."""

    type: AllowanceType
    amount: Decimal

    def to_domain(self) -> Allowance:
        return Allowance(type=self.type, amount=self.amount)


class CalculationRequestIn(BaseModel):
    """Schema for a single compliance check."""

    worker: WorkerIn
    pay_period: PayPeriodIn
    offsets: list[OffsetIn] = Field(default_factory=list)
    allowances: list[AllowanceIn] = Field(default_factory=list)

    def to_domain(self) -> CalculationRequest:
        return CalculationRequest(
            worker=self.worker.to_domain(),
            pay_period=self.pay_period.to_domain(),
            offsets=tuple(o.to_domain() for o in self.offsets),
            allowances=tuple(a.to_domain() for a in self.allowances),
        )


class BatchRequestIn(BaseModel):
    """Schema for a batch of compliance checks."""

    requests: list[CalculationRequestIn] = Field(min_length=1, max_length=10000)
    max_workers: int | None = Field(default=None, ge=1, le=64)


# ============================================================================
# Calculation responses
# ============================================================================


class RateLookupResponse(ResponseBase):
    """Required rate for a worker on a date."""

    hourly_rate: Decimal
    category: RateCategory
    band_key: str
    description: str
    rate_type: str
    reason: str
    age: int
    pay_date: date
    period_effective_from: date
    period_effective_to: date | None
    period_description: str


class RateComparisonResponse(ResponseBase):
    effective: Decimal
    required: Decimal
    difference: Decimal
    percentage_of_required: Decimal
    shortfall_percentage: Decimal | None = None


class ComplianceResultResponse(ResponseBase):
    """RAG classification for one worker."""

    success: bool
    worker_id: str
    rag_status: RagStatus
    severity: Severity | None = None
    reason: str
    flags: list[str]
    effective_hourly_rate: Decimal | None = None
    required_hourly_rate: Decimal | None = None
    rate_comparison: RateComparisonResponse | None = None
    rate_details: RateLookupResponse | None = None
    error_code: str | None = None
    error_details: dict[str, Any] = Field(default_factory=dict)
    calculation_id: str


class FixSuggestionResponse(ResponseBase):
    type: SuggestionType
    severity: Severity
    message: str
    action_required: bool
    details: dict[str, Any] | None = None


class ShortfallResponse(ResponseBase):
    per_hour: Decimal
    hours: Decimal
    total: Decimal
    percentage: Decimal


class SuggestionSetResponse(ResponseBase):
    rag_status: RagStatus
    suggestions: list[FixSuggestionResponse]
    primary_suggestion: FixSuggestionResponse | None = None
    shortfall: ShortfallResponse | None = None


class OffsetBreakdownResponse(ResponseBase):
    type: OffsetType
    treatment: Treatment
    amount: Decimal
    permitted: Decimal
    excess: Decimal
    days: int | None = None
    daily_limit: Decimal | None = None


class AllowanceBreakdownResponse(ResponseBase):
    type: AllowanceType
    treatment: Treatment
    amount: Decimal
    included: Decimal
    excluded: Decimal


class AggregationResponse(ResponseBase):
    """Pay reference period aggregation."""

    total_pay: Decimal
    total_hours: Decimal
    eligible_pay: Decimal
    effective_hourly_rate: Decimal | None = None
    pay_reducing_deductions: Decimal
    included_allowances: Decimal
    excluded_allowances: Decimal
    total_offset_excess: Decimal
    total_deductions: Decimal
    deduction_ratio: Decimal | None = None
    days_in_period: int
    offset_breakdown: list[OffsetBreakdownResponse]
    allowance_breakdown: list[AllowanceBreakdownResponse]
    accommodation_offset_flags: list[str]
    flags: list[str]


class CalculationResponseOut(ResponseBase):
    """Full result of a compliance check."""

    success: bool
    compliance: ComplianceResultResponse
    suggestions: SuggestionSetResponse
    aggregation: AggregationResponse | None = None


class BatchSummaryResponse(ResponseBase):
    total: int
    green: int
    amber: int
    red: int
    errors: int
    critical_underpayments: int
    compliance_rate: Decimal
    total_arrears: Decimal


class BatchResponseOut(ResponseBase):
    """Results of a batch of compliance checks, in request order."""

    results: list[CalculationResponseOut]
    summary: BatchSummaryResponse
    rates_version: str | None = None


# ============================================================================
# Rate schemas
# ============================================================================


class RateBandResponse(ResponseBase):
    key: str
    min_age: int | None = None
    max_age: int | None = None
    hourly_rate: Decimal
    category: RateCategory
    description: str


class RatePeriodResponse(ResponseBase):
    effective_from: date
    effective_to: date | None = None
    description: str
    bands: list[RateBandResponse]


class RateHistoryResponse(BaseModel):
    version: str
    periods: list[RatePeriodResponse]


class AccommodationLimitResponse(ResponseBase):
    effective_from: date
    effective_to: date | None = None
    daily_limit: Decimal
    description: str


# ============================================================================
# Health / errors
# ============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime
    rates: str
    rates_version: str | None = None


class ErrorResponse(BaseModel):
    """Error response body."""

    detail: str
    code: str
