"""
Safety stock API routes.
"""

from typing import Optional
from datetime import date
from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
import structlog

from models.base import InventoryTuple
from models.safety_stock import CalculationMethod, SafetyStockCalculation
from services.safety_stock_service import get_safety_stock_service
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


@router.get("/{product_id}/{location_id}/{warehouse_id}", response_model=SafetyStockCalculation)
async def get_safety_stock(
    product_id: str,
    location_id: str,
    warehouse_id: str,
    method: CalculationMethod = Query(CalculationMethod.SERVICE_LEVEL, description="Calculation method"),
    as_of: Optional[date] = Query(None, description="Date selecting the seasonal month (default today)"),
):
    """
    Recommend a safety stock for one tuple.

    Methods:
    - seasonal: base stock × current month seasonal factor
    - trend_based: base stock adjusted by recent demand trend
    - service_level: z × σ_demand × √lead_time

    With too little demand history the recommendation stays at the
    current safety stock and low_confidence is set.
    """
    try:
        service = get_safety_stock_service()
        return service.compute_safety_stock(
            InventoryTuple(product_id=product_id, location_id=location_id, warehouse_id=warehouse_id),
            method=method,
            as_of=as_of,
        )

    except Exception as e:
        return handle_error(e)
