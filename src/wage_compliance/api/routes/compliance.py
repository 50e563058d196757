"""Compliance check endpoints."""

from fastapi import APIRouter, status
from fastapi.concurrency import run_in_threadpool

from wage_compliance.api.dependencies import Engine
from wage_compliance.api.schemas import (
    BatchRequestIn,
    BatchResponseOut,
    CalculationRequestIn,
    CalculationResponseOut,
)

router = APIRouter(prefix="/compliance", tags=["compliance"])


@router.post(
    "/check",
    response_model=CalculationResponseOut,
    status_code=status.HTTP_200_OK,
)
async def check_compliance(
    engine: Engine,
    payload: CalculationRequestIn,
) -> CalculationResponseOut:
    """Check one worker's pay period against the minimum wage.

    Calculation failures are reported in the body with ``success`` false
    and an error code rather than as an HTTP error.
    """
    response = await run_in_threadpool(engine.calculate, payload.to_domain())
    return CalculationResponseOut.model_validate(response)


@router.post(
    "/batch",
    response_model=BatchResponseOut,
    status_code=status.HTTP_200_OK,
)
async def check_compliance_batch(
    engine: Engine,
    payload: BatchRequestIn,
) -> BatchResponseOut:
    """Check many pay periods against a single rate snapshot."""
    requests = [item.to_domain() for item in payload.requests]
    result = await run_in_threadpool(engine.calculate_batch, requests, payload.max_workers)
    return BatchResponseOut.model_validate(result)
