"""Immutable statutory rate data."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from wage_compliance.types import RateCategory


@dataclass(frozen=True)
class RateBand:
    """One age band (or the apprentice rate) within a rate period."""

    key: str
    min_age: int | None
    max_age: int | None  # None = no upper limit
    hourly_rate: Decimal
    category: RateCategory
    description: str = ""

    @property
    def is_apprentice(self) -> bool:
        return self.category == RateCategory.APPRENTICE

    def covers_age(self, age: int) -> bool:
        if self.min_age is None:
            return False
        if age < self.min_age:
            return False
        return self.max_age is None or age <= self.max_age


@dataclass(frozen=True)
class RatePeriod:
    """Rates in force over ``[effective_from, effective_to)``."""

    effective_from: date
    effective_to: date | None
    description: str
    bands: tuple[RateBand, ...]

    @property
    def apprentice_band(self) -> RateBand | None:
        for band in self.bands:
            if band.is_apprentice:
                return band
        return None

    @property
    def age_bands(self) -> tuple[RateBand, ...]:
        return tuple(band for band in self.bands if not band.is_apprentice)


@dataclass(frozen=True)
class AccommodationOffsetRule:
    """Daily accommodation offset limit in force over ``[effective_from, effective_to)``."""

    effective_from: date
    effective_to: date | None
    daily_limit: Decimal
    description: str = ""


@dataclass(frozen=True)
class RateSnapshot:
    """A loaded version of the rate configuration.

    Snapshots are never modified. Reloading the configuration produces a
    new snapshot, so a calculation that captured one keeps a consistent
    view of the rates for its whole run.
    """

    version: str
    periods: tuple[RatePeriod, ...]
    accommodation_rules: tuple[AccommodationOffsetRule, ...]
    source: str = "<memory>"
    source_mtime_ns: int | None = None
