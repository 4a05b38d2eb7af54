"""
Inventory projection schemas.

A projection is a day-by-day on-hand trajectory for one
(product, location, warehouse) tuple, plus a summary of how many
days fall into each risk band.
"""

from pydantic import Field
from typing import Optional, Union
from datetime import date
from enum import Enum

from models.base import BaseSchema, InventoryTuple


class DayStatus(str, Enum):
    """Risk band of a projected day."""
    STOCKOUT = "stockout"  # On-hand at or below zero
    CRITICAL = "critical"  # At or below safety stock threshold
    WARNING = "warning"    # Within the buffer above threshold
    OPTIMAL = "optimal"


class ProjectionDay(BaseSchema):
    """One input day: forecasted demand and planned arrivals."""

    date: date
    forecasted_demand: float = Field(0, description="Units expected to be consumed")
    planned_arrivals: float = Field(0, description="Units expected to arrive")


class DailyProjection(BaseSchema):
    """Projected inventory position for one calendar day."""

    date: date
    forecasted_demand: float = Field(..., ge=0)
    planned_arrivals: float = Field(..., ge=0)
    projected_on_hand: float = Field(..., description="Negative values are stockout depth")
    safety_stock_threshold: float = Field(..., ge=0)
    cumulative_demand: float = Field(0, ge=0, description="Demand from first projected day through this day")
    status: DayStatus


class ProjectionSummary(BaseSchema):
    """Aggregate over a projection. Zero-filled for an empty horizon."""

    stockout_days: int = Field(0, description="Days with on-hand <= 0")
    critical_days: int = Field(0, description="Days above 0 but at or below threshold")
    warning_days: int = Field(0, description="Days within the buffer above threshold")
    optimal_days: int = Field(0)
    total_days: int = Field(0)

    min_projected_on_hand: float = Field(0)
    total_demand: float = Field(0)
    total_arrivals: float = Field(0)
    first_stockout_date: Optional[date] = None


class ProjectionRequest(BaseSchema):
    """Explicit projection inputs (no data source reads)."""

    product_id: str = Field(..., min_length=1)
    location_id: str = Field(..., min_length=1)
    warehouse_id: str = Field(..., min_length=1)
    starting_on_hand: float
    days: list[ProjectionDay] = Field(default_factory=list)
    safety_stock_threshold: Union[float, list[float]] = Field(
        0,
        description="Constant threshold, or one value per day"
    )
    warning_buffer: Optional[float] = Field(
        None,
        ge=0,
        description="Absolute warning buffer; defaults to threshold x warning_buffer_ratio"
    )


class ProjectionResult(BaseSchema):
    """Projection for one tuple."""

    tuple: InventoryTuple
    starting_on_hand: float
    horizon_days: int = Field(..., ge=0)
    projections: list[DailyProjection] = Field(default_factory=list)
    summary: ProjectionSummary = Field(default_factory=ProjectionSummary)
    missing_forecast_days: int = Field(
        0,
        ge=0,
        description="Days with no forecast row, projected with zero demand"
    )
