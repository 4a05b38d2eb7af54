"""
Safety stock schemas.

One SafetyStockCalculation per (product, location, warehouse) tuple.
The calculation method is fixed at creation and determines which
variability inputs drove the recommendation.
"""

from pydantic import Field
from typing import Optional
from datetime import date
from enum import Enum

from models.base import BaseSchema, ValueSource


class CalculationMethod(str, Enum):
    """Safety stock calculation method."""
    SEASONAL = "seasonal"            # Base stock scaled by current month factor
    TREND_BASED = "trend_based"      # Base stock scaled by recent demand trend
    SERVICE_LEVEL = "service_level"  # z x sigma x sqrt(lead time)


class DemandObservation(BaseSchema):
    """One historical demand data point."""

    date: date
    quantity: float = Field(..., ge=0)


class SeasonalFactor(BaseSchema):
    """Demand index for a calendar month (1.0 = average month)."""

    month: int = Field(..., ge=1, le=12)
    factor: float = Field(..., ge=0)
    historical_variance: float = Field(0, ge=0)


class SafetyStockInput(BaseSchema):
    """Everything the calculator needs for one tuple."""

    product_id: str
    location_id: str
    warehouse_id: str
    demand_history: list[DemandObservation] = Field(default_factory=list)
    lead_time_history: list[float] = Field(default_factory=list, description="Observed lead times in days")
    current_safety_stock: float = Field(0, ge=0)
    unit_holding_cost: float = Field(0, ge=0)


class SafetyStockCalculation(BaseSchema):
    """Safety stock recommendation for one tuple."""

    product_id: str
    location_id: str
    warehouse_id: str

    current_safety_stock: float = Field(..., ge=0)
    recommended_safety_stock: float = Field(..., ge=0)
    calculation_method: CalculationMethod
    service_level_target: float = Field(..., ge=0, le=100, description="Target service level (%)")
    confidence_interval: float = Field(..., ge=0, le=100, description="Confidence in the recommendation (%)")

    # Variability inputs
    demand_variability: float = Field(..., ge=0, description="Coefficient of variation of demand")
    lead_time_variability: float = Field(..., ge=0, description="Coefficient of variation of lead time")
    average_demand: float = Field(0, ge=0)
    demand_std_dev: float = Field(0, ge=0)
    average_lead_time_days: float = Field(0, ge=0)
    history_points: int = Field(0, ge=0)

    # Calculation breakdown
    base_stock: float = Field(0, ge=0, description="z x sigma x sqrt(lead time)")
    trend_factor: Optional[float] = Field(None, description="Multiplier applied by trend_based")
    seasonal_factors: list[SeasonalFactor] = Field(default_factory=list)

    cost_impact: float = Field(..., description="(recommended - current) x unit holding cost; negative = savings")

    # Data quality
    data_quality: ValueSource = ValueSource.COMPUTED
    low_confidence: bool = False
    quality_reason: Optional[str] = None

    def factor_for_month(self, month: int) -> Optional[float]:
        """Seasonal factor for a calendar month, or None if not computed."""
        for seasonal in self.seasonal_factors:
            if seasonal.month == month:
                return seasonal.factor
        return None
