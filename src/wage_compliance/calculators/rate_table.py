"""Statutory minimum wage rate lookup."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, TypeVar

from wage_compliance.errors import (
    NoApplicableOffsetRule,
    NoApplicableRateBand,
    NoApplicableRatePeriod,
    ValidationError,
    WageComplianceError,
)
from wage_compliance.rates.snapshot import AccommodationOffsetRule, RatePeriod, RateSnapshot
from wage_compliance.types import RateLookupResult, Worker

APPRENTICE_AGE_THRESHOLD = 19

_Effective = TypeVar("_Effective", RatePeriod, AccommodationOffsetRule)


def coerce_date(value: Any, field: str) -> date:
    """Accept a date or an ISO-8601 string.

    Raises:
        ValidationError: If the value is neither
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            try:
                return datetime.fromisoformat(value).date()
            except ValueError:
                pass
    raise ValidationError(field, "must be a date or ISO-8601 date string", value)


def add_one_year(start: date) -> date:
    """Same calendar day next year; 29 February rolls to 1 March."""
    try:
        return start.replace(year=start.year + 1)
    except ValueError:
        return date(start.year + 1, 3, 1)


def select_effective(entries: Iterable[_Effective], on: date) -> _Effective | None:
    """Pick the entry in force on a date.

    An entry applies when ``effective_from <= on < effective_to``; an open
    ended entry applies from its start. Where several qualify the latest
    start wins.
    """
    applicable = [
        entry
        for entry in entries
        if entry.effective_from <= on
        and (entry.effective_to is None or on < entry.effective_to)
    ]
    if not applicable:
        return None
    return max(applicable, key=lambda entry: entry.effective_from)


@dataclass(frozen=True)
class BulkRateLookup:
    """Per-worker outcome of a bulk rate lookup."""

    worker_id: str
    result: RateLookupResult | None = None
    error_code: str | None = None
    error_message: str | None = None

    @property
    def success(self) -> bool:
        return self.result is not None


class RateTable:
    """Resolves the statutory hourly rate for a worker on a date.

    Resolution order:
    1) Validate age and dates
    2) Find the rate period in force on the pay date
    3) Apprentices under 19, or 19 and over in the first year of their
       apprenticeship, get the apprentice rate
    4) Everyone else gets the rate of the age band containing their age

    The table reads a single immutable snapshot and performs no I/O.
    """

    def __init__(self, snapshot: RateSnapshot, max_age: int = 120):
        self.snapshot = snapshot
        self.max_age = max_age

    @property
    def version(self) -> str:
        return self.snapshot.version

    def get_required_rate(
        self,
        age: int,
        pay_date: date | str,
        is_apprentice: bool = False,
        apprenticeship_start: date | str | None = None,
    ) -> RateLookupResult:
        """Resolve the required hourly rate.

        Args:
            age: Worker's age in whole years on the pay date
            pay_date: Date the rate is needed for
            is_apprentice: Whether the worker is on an apprenticeship
            apprenticeship_start: Date the apprenticeship started

        Returns:
            The applicable rate with the band and period it came from

        Raises:
            ValidationError: If the age or a date is invalid
            NoApplicableRatePeriod: If no period covers the pay date
            NoApplicableRateBand: If no band covers the age
        """
        if isinstance(age, bool) or not isinstance(age, int):
            raise ValidationError("age", "must be a whole number", age)
        if age < 0 or age > self.max_age:
            raise ValidationError("age", f"must be between 0 and {self.max_age}", age)
        on = coerce_date(pay_date, "pay_date")
        start = (
            coerce_date(apprenticeship_start, "apprenticeship_start")
            if apprenticeship_start is not None
            else None
        )

        period = self.get_rate_period(on)

        if is_apprentice:
            reason = None
            if age < APPRENTICE_AGE_THRESHOLD:
                reason = "Apprentice under 19 years of age"
            elif start is not None and start <= on < add_one_year(start):
                reason = "Apprentice aged 19+ in first year of apprenticeship"
            if reason is not None:
                band = period.apprentice_band
                if band is None:
                    raise NoApplicableRateBand(age, on)
                return self._result(band, period, age, on, "apprentice", reason)

        for band in period.age_bands:
            if band.covers_age(age):
                return self._result(
                    band, period, age, on, "age_band", f"Age {age}: {band.description}"
                )
        raise NoApplicableRateBand(age, on)

    def get_rate_period(self, pay_date: date | str) -> RatePeriod:
        """Return the rate period in force on a date."""
        on = coerce_date(pay_date, "pay_date")
        period = select_effective(self.snapshot.periods, on)
        if period is None:
            raise NoApplicableRatePeriod(on)
        return period

    def get_accommodation_offset_limit(self, pay_date: date | str) -> AccommodationOffsetRule:
        """Return the accommodation offset rule in force on a date.

        Raises:
            NoApplicableOffsetRule: If no rule covers the date
        """
        on = coerce_date(pay_date, "pay_date")
        rule = select_effective(self.snapshot.accommodation_rules, on)
        if rule is None:
            raise NoApplicableOffsetRule(on)
        return rule

    def rates_for_date(self, pay_date: date | str) -> RatePeriod:
        """All bands in force on a date."""
        return self.get_rate_period(pay_date)

    def rate_history(self) -> tuple[RatePeriod, ...]:
        """Every configured period, newest first."""
        return tuple(
            sorted(self.snapshot.periods, key=lambda p: p.effective_from, reverse=True)
        )

    def required_rate_for_worker(self, worker: Worker, pay_date: date | str) -> RateLookupResult:
        """Resolve the rate for a worker, deriving age on the pay date."""
        on = coerce_date(pay_date, "pay_date")
        age = worker.age_on(on)
        if age is None:
            raise ValidationError("age", "worker has no age or date of birth", None)
        return self.get_required_rate(
            age,
            on,
            is_apprentice=worker.is_apprentice,
            apprenticeship_start=worker.apprenticeship_start_date,
        )

    def bulk_required_rates(
        self, workers: Iterable[Worker], pay_date: date | str
    ) -> list[BulkRateLookup]:
        """Resolve rates for many workers; failures are reported per worker."""
        results: list[BulkRateLookup] = []
        for worker in workers:
            try:
                result = self.required_rate_for_worker(worker, pay_date)
            except WageComplianceError as exc:
                results.append(
                    BulkRateLookup(
                        worker_id=worker.worker_id,
                        error_code=exc.code,
                        error_message=exc.message,
                    )
                )
            else:
                results.append(BulkRateLookup(worker_id=worker.worker_id, result=result))
        return results

    @staticmethod
    def _result(band, period: RatePeriod, age: int, on: date, rate_type: str, reason: str):
        return RateLookupResult(
            hourly_rate=band.hourly_rate,
            category=band.category,
            band_key=band.key,
            description=band.description,
            rate_type=rate_type,
            reason=reason,
            age=age,
            pay_date=on,
            period_effective_from=period.effective_from,
            period_effective_to=period.effective_to,
            period_description=period.description,
        )
