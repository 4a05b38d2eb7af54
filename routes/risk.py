"""
Risk assessment API routes.

Composite stockout risk per tuple, singly or in batches.
"""

from typing import Optional
from datetime import date
from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
import structlog

from models.base import InventoryTuple
from models.safety_stock import CalculationMethod
from models.risk import BatchRiskRequest, BatchRiskResponse, TupleRiskReport
from services.risk_service import get_risk_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


@router.post("/batch", response_model=BatchRiskResponse)
async def assess_risk_batch(
    request: BatchRiskRequest,
    as_of: Optional[date] = Query(None),
):
    """
    Assess many tuples at once.

    Always 200: each tuple carries its own ok/failed status, and a
    failing tuple does not stop the rest.
    """
    try:
        service = get_risk_service()
        return service.assess_batch(
            request.tuples,
            horizon_days=request.horizon_days,
            method=request.method,
            as_of=as_of,
            include_safety_stock=request.include_safety_stock,
            include_network=request.include_network,
        )

    except Exception as e:
        return handle_error(e)


@router.get("/{product_id}/{location_id}/{warehouse_id}", response_model=TupleRiskReport)
async def assess_risk(
    product_id: str,
    location_id: str,
    warehouse_id: str,
    horizon_days: Optional[int] = Query(None, ge=1, le=365),
    method: CalculationMethod = Query(CalculationMethod.SEASONAL),
    as_of: Optional[date] = Query(None, description="Assessment date (default today)"),
    include_safety_stock: bool = Query(True),
    include_network: bool = Query(True),
):
    """
    Assess stockout risk for one tuple.

    Runs the projection, safety stock and network analyses and
    combines them into a risk level (low/medium/high).
    """
    try:
        service = get_risk_service()
        return service.assess_risk(
            InventoryTuple(product_id=product_id, location_id=location_id, warehouse_id=warehouse_id),
            horizon_days=horizon_days,
            method=method,
            as_of=as_of,
            include_safety_stock=include_safety_stock,
            include_network=include_network,
        )

    except Exception as e:
        return handle_error(e)
