"""Statutory rate lookup endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from wage_compliance.api.dependencies import Rates
from wage_compliance.api.schemas import (
    AccommodationLimitResponse,
    ErrorResponse,
    RateHistoryResponse,
    RateLookupResponse,
    RatePeriodResponse,
)
from wage_compliance.errors import ConfigurationError, ValidationError

router = APIRouter(prefix="/rates", tags=["rates"])


@router.get(
    "/required",
    response_model=RateLookupResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def get_required_rate(
    rates: Rates,
    age: Annotated[int, Query()],
    pay_date: Annotated[date, Query()],
    is_apprentice: bool = False,
    apprenticeship_start: date | None = None,
) -> RateLookupResponse:
    """Required hourly rate for an age on a date."""
    try:
        result = rates.get_required_rate(
            age,
            pay_date,
            is_apprentice=is_apprentice,
            apprenticeship_start=apprenticeship_start,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.message,
        )
    except ConfigurationError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=e.message,
        )
    return RateLookupResponse.model_validate(result)


@router.get("/periods", response_model=RateHistoryResponse)
async def get_rate_history(rates: Rates) -> RateHistoryResponse:
    """Every configured rate period, newest first."""
    return RateHistoryResponse(
        version=rates.version,
        periods=[RatePeriodResponse.model_validate(p) for p in rates.rate_history()],
    )


@router.get(
    "/for-date",
    response_model=RatePeriodResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_rates_for_date(
    rates: Rates,
    pay_date: Annotated[date, Query()],
) -> RatePeriodResponse:
    """All rate bands in force on a date."""
    try:
        period = rates.rates_for_date(pay_date)
    except ConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    return RatePeriodResponse.model_validate(period)


@router.get(
    "/accommodation-limit",
    response_model=AccommodationLimitResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_accommodation_limit(
    rates: Rates,
    pay_date: Annotated[date, Query()],
) -> AccommodationLimitResponse:
    """Daily accommodation offset limit in force on a date."""
    try:
        rule = rates.get_accommodation_offset_limit(pay_date)
    except ConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    return AccommodationLimitResponse.model_validate(rule)
