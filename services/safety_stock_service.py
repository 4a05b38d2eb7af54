"""
Safety stock service — statistically grounded buffer recommendations.

Base stock (all methods):
    base = z × σ_demand × √(average lead time)
    z = Φ⁻¹(service level)

Methods:
    seasonal:      base × seasonal factor of the current month
    trend_based:   base × (1 + recent demand trend), floored at 0
    service_level: base (classical formula)

cost_impact = (recommended - current) × unit_holding_cost
"""

from typing import Optional, Sequence
from datetime import date
from collections import defaultdict
import math
import structlog
from scipy.stats import norm

from config import settings
from models.base import InventoryTuple, ValueSource
from models.safety_stock import (
    CalculationMethod,
    DemandObservation,
    SafetyStockInput,
    SafetyStockCalculation,
    SeasonalFactor,
)
from exceptions import InvalidCalculationMethodError, InvalidSafetyStockInputError
from services.inventory_data_service import get_inventory_data_service, position_from_row

logger = structlog.get_logger(__name__)


# ===================
# STATISTICS
# ===================

def mean_and_std(values: Sequence[float]) -> tuple[float, float]:
    """Population mean and standard deviation. (0, 0) for no values."""
    if not values:
        return 0.0, 0.0
    mean = sum(values) / len(values)
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    return mean, math.sqrt(variance)


def coefficient_of_variation(values: Sequence[float]) -> float:
    """
    Calculate the coefficient of variation (CV = std_dev / mean).

    Returns 0 if mean is 0 or fewer than two values.
    """
    if len(values) < 2:
        return 0.0
    mean, std_dev = mean_and_std(values)
    if mean == 0:
        return 0.0
    return std_dev / mean


def z_score_for(service_level: float) -> float:
    """Standard normal quantile for a service level (0.95 -> 1.645)."""
    if not 0 < service_level < 1:
        raise ValueError(f"service_level must be between 0 and 1, got {service_level}")
    return float(norm.ppf(service_level))


def calculate_seasonal_factors(history: Sequence[DemandObservation]) -> list[SeasonalFactor]:
    """
    Monthly demand index: month mean / overall mean.

    Months with no observations, and every month when overall
    demand is zero, get a neutral factor of 1.0.
    """
    quantities = [obs.quantity for obs in history]
    overall_mean = sum(quantities) / len(quantities) if quantities else 0.0

    by_month: dict[int, list[float]] = defaultdict(list)
    for obs in history:
        by_month[obs.date.month].append(obs.quantity)

    factors = []
    for month in range(1, 13):
        values = by_month.get(month)
        if not values or overall_mean == 0:
            month_variance = mean_and_std(values)[1] ** 2 if values else 0.0
            factors.append(SeasonalFactor(month=month, factor=1.0, historical_variance=month_variance))
            continue

        month_mean, month_std = mean_and_std(values)
        factors.append(SeasonalFactor(
            month=month,
            factor=month_mean / overall_mean,
            historical_variance=month_std ** 2,
        ))
    return factors


def calculate_trend_factor(
    quantities: Sequence[float],
    window: int,
    max_adjustment: float,
) -> float:
    """
    Multiplier from the recent demand trend.

    Compares the mean of the last `window` observations with the
    `window` before them. Rising demand gives a factor above 1,
    falling demand below 1; never below 0 and never above
    1 + max_adjustment. Neutral (1.0) without two full windows.
    """
    if window < 1 or len(quantities) < 2 * window:
        return 1.0

    recent = sum(quantities[-window:]) / window
    older = sum(quantities[-2 * window:-window]) / window

    if older > 0:
        change = (recent - older) / older
    elif recent > 0:
        change = max_adjustment
    else:
        change = 0.0

    change = max(-1.0, min(change, max_adjustment))
    return 1.0 + change


# ===================
# CALCULATOR
# ===================

def coerce_method(method) -> CalculationMethod:
    """Parse a method name, rejecting unknown values."""
    try:
        return CalculationMethod(method)
    except ValueError:
        raise InvalidCalculationMethodError(str(method))


def calculate_safety_stock(
    data: SafetyStockInput,
    method: CalculationMethod,
    as_of: Optional[date] = None,
    service_level: Optional[float] = None,
    min_history_points: Optional[int] = None,
    default_lead_time_days: Optional[float] = None,
) -> SafetyStockCalculation:
    """
    Recommend a safety stock for one tuple.

    Args:
        data: Demand/lead-time history and current policy values
        method: Calculation method
        as_of: Date whose month selects the seasonal factor (default today)
        service_level: Target service level 0-1 (default from settings)
        min_history_points: Observations required before trusting a method
        default_lead_time_days: Lead time used with no lead-time history

    Returns:
        SafetyStockCalculation. With insufficient history the
        recommendation equals the current safety stock and the result
        is flagged low_confidence instead of raising.

    Raises:
        InvalidCalculationMethodError: Unknown method
        InvalidSafetyStockInputError: A lead time is negative
    """
    method = coerce_method(method)
    as_of = as_of or date.today()
    service_level = settings.service_level if service_level is None else service_level
    min_points = settings.min_history_points if min_history_points is None else min_history_points
    default_lead_time = settings.default_lead_time_days if default_lead_time_days is None else default_lead_time_days

    history = sorted(data.demand_history, key=lambda obs: obs.date)
    quantities = [obs.quantity for obs in history]

    demand_mean, demand_std = mean_and_std(quantities)
    demand_cv = coefficient_of_variation(quantities)

    lead_times = list(data.lead_time_history)
    for index, lead_time in enumerate(lead_times):
        if lead_time < 0:
            raise InvalidSafetyStockInputError(
                "Lead time cannot be negative",
                {"index": index, "lead_time_days": lead_time}
            )
    if lead_times:
        avg_lead_time = sum(lead_times) / len(lead_times)
    else:
        avg_lead_time = default_lead_time
    lead_time_cv = coefficient_of_variation(lead_times)

    seasonal_factors = calculate_seasonal_factors(history)
    service_level_pct = round(service_level * 100, 2)

    current = data.current_safety_stock
    common = dict(
        product_id=data.product_id,
        location_id=data.location_id,
        warehouse_id=data.warehouse_id,
        current_safety_stock=current,
        calculation_method=method,
        service_level_target=service_level_pct,
        confidence_interval=service_level_pct,
        demand_variability=round(demand_cv, 4),
        lead_time_variability=round(lead_time_cv, 4),
        average_demand=round(demand_mean, 2),
        demand_std_dev=round(demand_std, 2),
        average_lead_time_days=round(avg_lead_time, 2),
        history_points=len(history),
        seasonal_factors=seasonal_factors,
    )

    if len(history) < min_points:
        logger.info(
            "safety_stock_insufficient_history",
            product_id=data.product_id,
            location_id=data.location_id,
            warehouse_id=data.warehouse_id,
            history_points=len(history),
            required=min_points,
        )
        return SafetyStockCalculation(
            **common,
            recommended_safety_stock=current,
            base_stock=0,
            cost_impact=0,
            data_quality=ValueSource.DEFAULTED,
            low_confidence=True,
            quality_reason=f"{len(history)} demand observations, {min_points} required",
        )

    z = z_score_for(service_level)
    base_stock = max(0.0, z * demand_std * math.sqrt(avg_lead_time))

    trend_factor: Optional[float] = None
    if method == CalculationMethod.SEASONAL:
        factor = next(f.factor for f in seasonal_factors if f.month == as_of.month)
        recommended = base_stock * factor
    elif method == CalculationMethod.TREND_BASED:
        trend_factor = calculate_trend_factor(
            quantities,
            window=settings.trend_window,
            max_adjustment=settings.max_trend_adjustment,
        )
        recommended = base_stock * trend_factor
    else:
        recommended = base_stock

    recommended = round(max(0.0, recommended), 2)
    cost_impact = round((recommended - current) * data.unit_holding_cost, 2)

    logger.debug(
        "safety_stock_calculated",
        product_id=data.product_id,
        method=method.value,
        base_stock=round(base_stock, 2),
        recommended=recommended,
        cost_impact=cost_impact,
    )

    return SafetyStockCalculation(
        **common,
        recommended_safety_stock=recommended,
        base_stock=round(base_stock, 2),
        trend_factor=round(trend_factor, 4) if trend_factor is not None else None,
        cost_impact=cost_impact,
    )


# ===================
# SERVICE
# ===================

class SafetyStockService:
    """
    Safety stock calculations backed by the inventory data layer.

    Reads demand history, lead-time history, current safety stock
    policy and unit holding cost, then delegates to
    calculate_safety_stock().
    """

    def __init__(self):
        self.data_service = get_inventory_data_service()
        self.default_holding_cost = settings.default_unit_holding_cost

    def load_input(
        self,
        inventory: InventoryTuple,
        as_of: Optional[date] = None,
    ) -> SafetyStockInput:
        """Gather calculator inputs for a tuple."""
        as_of = as_of or date.today()

        position = position_from_row(self.data_service.get_inventory_row(inventory))
        cost = position.unit_holding_cost

        return SafetyStockInput(
            product_id=inventory.product_id,
            location_id=inventory.location_id,
            warehouse_id=inventory.warehouse_id,
            demand_history=self.data_service.get_demand_history(inventory, as_of),
            lead_time_history=self.data_service.get_lead_time_history(inventory),
            current_safety_stock=position.safety_stock,
            unit_holding_cost=cost if cost is not None else self.default_holding_cost,
        )

    def compute_safety_stock(
        self,
        inventory: InventoryTuple,
        method: CalculationMethod = CalculationMethod.SERVICE_LEVEL,
        as_of: Optional[date] = None,
    ) -> SafetyStockCalculation:
        """
        Calculate the safety stock recommendation for one tuple.

        Raises:
            InventoryNotFoundError: Tuple has no inventory row
            DataSourceError: A read failed
        """
        method = coerce_method(method)
        logger.info(
            "computing_safety_stock",
            method=method.value,
            **inventory.as_log_context()
        )

        data = self.load_input(inventory, as_of)
        calculation = calculate_safety_stock(data, method, as_of=as_of)

        logger.info(
            "safety_stock_calculated",
            recommended=calculation.recommended_safety_stock,
            current=calculation.current_safety_stock,
            low_confidence=calculation.low_confidence,
            **inventory.as_log_context()
        )

        return calculation


# Singleton instance
_safety_stock_service: Optional[SafetyStockService] = None


def get_safety_stock_service() -> SafetyStockService:
    """Get or create SafetyStockService instance."""
    global _safety_stock_service
    if _safety_stock_service is None:
        _safety_stock_service = SafetyStockService()
    return _safety_stock_service
