"""
Projection API routes.

Day-by-day on-hand inventory projections per
(product, location, warehouse) tuple.
"""

from typing import Optional
from datetime import date
from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
import structlog

from models.base import InventoryTuple
from models.projection import ProjectionRequest, ProjectionResult
from services.projection_service import (
    get_projection_service,
    build_projection,
    summarize_projection,
)
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

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


# ===================
# ROUTES
# ===================

@router.post("/build", response_model=ProjectionResult)
async def build_projection_from_inputs(request: ProjectionRequest):
    """
    Build a projection from explicit inputs.

    No data source reads: the caller supplies starting on-hand,
    the daily demand/arrival series and the threshold(s).
    """
    try:
        projections = build_projection(
            request.starting_on_hand,
            request.days,
            request.safety_stock_threshold,
            warning_buffer=request.warning_buffer,
        )
        return ProjectionResult(
            tuple=InventoryTuple(
                product_id=request.product_id,
                location_id=request.location_id,
                warehouse_id=request.warehouse_id,
            ),
            starting_on_hand=request.starting_on_hand,
            horizon_days=len(projections),
            projections=projections,
            summary=summarize_projection(projections),
        )

    except Exception as e:
        return handle_error(e)


@router.get("/{product_id}/{location_id}/{warehouse_id}", response_model=ProjectionResult)
async def get_projection(
    product_id: str,
    location_id: str,
    warehouse_id: str,
    horizon_days: Optional[int] = Query(None, ge=1, le=365, description="Days to project (default 30)"),
    as_of: Optional[date] = Query(None, description="First projected day (default today)"),
):
    """
    Project on-hand inventory for one tuple from the data source.

    Days without a forecast are projected with zero demand and
    counted in missing_forecast_days.
    """
    try:
        service = get_projection_service()
        return service.compute_projection(
            InventoryTuple(product_id=product_id, location_id=location_id, warehouse_id=warehouse_id),
            horizon_days=horizon_days,
            as_of=as_of,
        )

    except Exception as e:
        return handle_error(e)
