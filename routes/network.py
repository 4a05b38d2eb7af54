"""
Multi-node network API routes.
"""

from typing import Optional
from datetime import date
from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
import structlog

from models.network import MultiNodeInventory
from models.safety_stock import CalculationMethod
from services.network_service import get_network_service
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


@router.get("/{product_id}", response_model=MultiNodeInventory)
async def get_network_analysis(
    product_id: str,
    method: CalculationMethod = Query(CalculationMethod.SERVICE_LEVEL, description="Per-node safety stock method"),
    as_of: Optional[date] = Query(None),
):
    """
    Propose transfers between nodes carrying a product.

    Each node is compared against its recommended safety stock;
    the largest surplus feeds the largest deficit first.
    A product stocked at a single node returns no plans.
    """
    try:
        service = get_network_service()
        return service.analyze_network(product_id, method=method, as_of=as_of)

    except Exception as e:
        return handle_error(e)
