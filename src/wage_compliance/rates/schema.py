"""Pydantic models describing the rate and component rule documents."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from wage_compliance.types import RateCategory, Treatment


class ImmutableModel(BaseModel):
    """Base class that freezes instances and rejects unknown fields."""

    model_config = ConfigDict(frozen=True, extra="forbid")


# ============================================================================
# Rate document
# ============================================================================


class RateBandConfig(ImmutableModel):
    """A single band entry under ``rate_periods[].bands``."""

    min_age: int | None = Field(default=None, ge=0)
    max_age: int | None = Field(default=None, ge=0)
    hourly_rate: Decimal = Field(ge=0)
    category: RateCategory
    description: str = ""

    @model_validator(mode="after")
    def _validate_ages(self) -> RateBandConfig:
        if self.category == RateCategory.APPRENTICE:
            return self
        if self.min_age is None:
            raise ValueError("Age bands require min_age")
        if self.max_age is not None and self.max_age < self.min_age:
            raise ValueError("max_age must not be below min_age")
        return self


class RatePeriodConfig(ImmutableModel):
    """A rate period entry under ``rate_periods``."""

    effective_from: date
    effective_to: date | None = None
    description: str = ""
    bands: dict[str, RateBandConfig]

    @model_validator(mode="after")
    def _validate_period(self) -> RatePeriodConfig:
        if self.effective_to is not None and self.effective_to <= self.effective_from:
            raise ValueError("effective_to must be after effective_from")

        apprentice = [b for b in self.bands.values() if b.category == RateCategory.APPRENTICE]
        if len(apprentice) != 1:
            raise ValueError(
                f"Period {self.effective_from} must define exactly one APPRENTICE band"
            )

        age_bands = sorted(
            (b for b in self.bands.values() if b.category != RateCategory.APPRENTICE),
            key=lambda b: b.min_age,
        )
        if not age_bands:
            raise ValueError(f"Period {self.effective_from} defines no age bands")
        for lower, upper in zip(age_bands, age_bands[1:]):
            if lower.max_age is None or lower.max_age >= upper.min_age:
                raise ValueError(
                    f"Age bands overlap in period {self.effective_from}: "
                    f"{lower.min_age}-{lower.max_age} and {upper.min_age}-{upper.max_age}"
                )
        return self


class AccommodationOffsetConfig(ImmutableModel):
    """An entry under ``accommodation_offsets``."""

    effective_from: date
    effective_to: date | None = None
    daily_limit: Decimal = Field(ge=0)
    description: str = ""

    @model_validator(mode="after")
    def _validate_dates(self) -> AccommodationOffsetConfig:
        if self.effective_to is not None and self.effective_to <= self.effective_from:
            raise ValueError("effective_to must be after effective_from")
        return self


class RateMetadata(BaseModel):
    """Free-form document metadata; only the version is required."""

    model_config = ConfigDict(frozen=True, extra="allow")

    version: str
    source: str | None = None
    last_updated: date | None = None


def _check_no_overlap(entries, label: str) -> None:
    ordered = sorted(entries, key=lambda e: e.effective_from)
    for current, following in zip(ordered, ordered[1:]):
        if current.effective_from == following.effective_from:
            raise ValueError(f"Duplicate {label} starting {current.effective_from}")
        if current.effective_to is not None and current.effective_to > following.effective_from:
            raise ValueError(
                f"{label} starting {current.effective_from} overlaps "
                f"the one starting {following.effective_from}"
            )


class RateDocument(ImmutableModel):
    """Top-level rate configuration document."""

    metadata: RateMetadata
    rate_periods: list[RatePeriodConfig] = Field(min_length=1)
    accommodation_offsets: list[AccommodationOffsetConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_timeline(self) -> RateDocument:
        _check_no_overlap(self.rate_periods, "Rate period")
        _check_no_overlap(self.accommodation_offsets, "Accommodation offset rule")
        return self


# ============================================================================
# Component rules document
# ============================================================================


class ComponentRuleConfig(ImmutableModel):
    """Classification of one offset or allowance type."""

    category: str = Field(pattern="^(included|excluded|offset)$")
    treatment: Treatment
    description: str = ""
    daily_limit: Decimal | None = Field(default=None, ge=0)
    basic_rate_ratio: Decimal | None = Field(default=None, ge=0, le=1)
    keywords: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_treatment(self) -> ComponentRuleConfig:
        if self.treatment == Treatment.BASIC_RATE_ONLY and self.basic_rate_ratio is None:
            raise ValueError("basic_rate_only rules require basic_rate_ratio")
        return self


class ComponentRulesDocument(ImmutableModel):
    """Top-level component rules document."""

    metadata: RateMetadata
    offsets: dict[str, ComponentRuleConfig]
    allowances: dict[str, ComponentRuleConfig]
