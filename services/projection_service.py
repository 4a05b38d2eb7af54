"""
Projection service — day-by-day on-hand inventory trajectory.

For one (product, location, warehouse) tuple, rolls the current on-hand
forward through forecasted demand and planned arrivals:

    on_hand[0] = starting_on_hand + arrivals[0] - demand[0]
    on_hand[t] = on_hand[t-1] + arrivals[t] - demand[t]

No flooring at zero: a negative on-hand is stockout depth.
"""

from typing import Optional, Sequence, Union
from datetime import date, timedelta
import structlog

from config import settings
from models.base import InventoryTuple
from models.projection import (
    DayStatus,
    ProjectionDay,
    DailyProjection,
    ProjectionSummary,
    ProjectionResult,
)
from exceptions import InvalidProjectionInputError
from services.inventory_data_service import get_inventory_data_service, position_from_row

logger = structlog.get_logger(__name__)


# ===================
# PURE CALCULATIONS
# ===================

def classify_day(on_hand: float, threshold: float, warning_buffer: float) -> DayStatus:
    """
    Classify a projected day.

    - STOCKOUT: on_hand <= 0
    - CRITICAL: 0 < on_hand <= threshold
    - WARNING:  threshold < on_hand <= threshold + buffer
    - OPTIMAL:  above that
    """
    if on_hand <= 0:
        return DayStatus.STOCKOUT
    if on_hand <= threshold:
        return DayStatus.CRITICAL
    if on_hand <= threshold + warning_buffer:
        return DayStatus.WARNING
    return DayStatus.OPTIMAL


def _expand_thresholds(
    thresholds: Union[float, Sequence[float]],
    day_count: int,
) -> list[float]:
    if isinstance(thresholds, (int, float)):
        values = [float(thresholds)] * day_count
    else:
        values = [float(t) for t in thresholds]
        if len(values) != day_count:
            raise InvalidProjectionInputError(
                "Threshold sequence must have one value per projected day",
                details={"thresholds": len(values), "days": day_count},
            )

    for i, value in enumerate(values):
        if value < 0:
            raise InvalidProjectionInputError(
                "Safety stock threshold cannot be negative",
                details={"index": i, "threshold": value},
            )
    return values


def _validate_days(days: Sequence[ProjectionDay]) -> None:
    previous: Optional[date] = None
    for day in days:
        if day.forecasted_demand < 0 or day.planned_arrivals < 0:
            raise InvalidProjectionInputError(
                "Forecasted demand and planned arrivals cannot be negative",
                details={
                    "date": day.date.isoformat(),
                    "forecasted_demand": day.forecasted_demand,
                    "planned_arrivals": day.planned_arrivals,
                },
            )
        if previous is not None and day.date != previous + timedelta(days=1):
            reason = "gap" if day.date > previous else "not strictly increasing"
            raise InvalidProjectionInputError(
                f"Projection dates must be consecutive ({reason})",
                details={
                    "previous_date": previous.isoformat(),
                    "date": day.date.isoformat(),
                },
            )
        previous = day.date


def build_projection(
    starting_on_hand: float,
    days: Sequence[ProjectionDay],
    thresholds: Union[float, Sequence[float]] = 0,
    warning_buffer: Optional[float] = None,
    warning_buffer_ratio: Optional[float] = None,
) -> list[DailyProjection]:
    """
    Roll on-hand inventory forward one day at a time.

    Args:
        starting_on_hand: Known on-hand before the first projected day
        days: Consecutive days in ascending order
        thresholds: Constant safety stock threshold or one per day
        warning_buffer: Absolute warning band above threshold
        warning_buffer_ratio: Warning band as a ratio of the threshold,
            used when warning_buffer is None (defaults to settings)

    Returns:
        One DailyProjection per input day (empty for an empty range)

    Raises:
        InvalidProjectionInputError: Negative quantities, gapped or
            unordered dates, or a threshold sequence of the wrong length
    """
    if warning_buffer is not None and warning_buffer < 0:
        raise InvalidProjectionInputError(
            "Warning buffer cannot be negative",
            details={"warning_buffer": warning_buffer},
        )
    if warning_buffer_ratio is None:
        warning_buffer_ratio = settings.warning_buffer_ratio

    _validate_days(days)
    threshold_values = _expand_thresholds(thresholds, len(days))

    projections: list[DailyProjection] = []
    on_hand = float(starting_on_hand)
    cumulative_demand = 0.0

    for day, threshold in zip(days, threshold_values):
        on_hand = on_hand + day.planned_arrivals - day.forecasted_demand
        cumulative_demand += day.forecasted_demand
        buffer = warning_buffer if warning_buffer is not None else threshold * warning_buffer_ratio

        projections.append(DailyProjection(
            date=day.date,
            forecasted_demand=day.forecasted_demand,
            planned_arrivals=day.planned_arrivals,
            projected_on_hand=on_hand,
            safety_stock_threshold=threshold,
            cumulative_demand=cumulative_demand,
            status=classify_day(on_hand, threshold, buffer),
        ))

    return projections


def summarize_projection(projections: Sequence[DailyProjection]) -> ProjectionSummary:
    """Count days per risk band. Zero-filled for an empty projection."""
    if not projections:
        return ProjectionSummary()

    counts = {status: 0 for status in DayStatus}
    first_stockout: Optional[date] = None
    for p in projections:
        counts[p.status] += 1
        if p.status == DayStatus.STOCKOUT and first_stockout is None:
            first_stockout = p.date

    return ProjectionSummary(
        stockout_days=counts[DayStatus.STOCKOUT],
        critical_days=counts[DayStatus.CRITICAL],
        warning_days=counts[DayStatus.WARNING],
        optimal_days=counts[DayStatus.OPTIMAL],
        total_days=len(projections),
        min_projected_on_hand=min(p.projected_on_hand for p in projections),
        total_demand=sum(p.forecasted_demand for p in projections),
        total_arrivals=sum(p.planned_arrivals for p in projections),
        first_stockout_date=first_stockout,
    )


# ===================
# SERVICE
# ===================

class ProjectionService:
    """
    Builds projections from the inventory data layer.

    Reads on-hand, forecast, planned arrivals and the current safety
    stock policy for a tuple, then delegates to build_projection().
    """

    def __init__(self):
        self.data_service = get_inventory_data_service()
        self.default_horizon = settings.projection_horizon_days

    def compute_projection(
        self,
        inventory: InventoryTuple,
        horizon_days: Optional[int] = None,
        as_of: Optional[date] = None,
    ) -> ProjectionResult:
        """
        Project on-hand inventory for one tuple.

        Args:
            inventory: Tuple to project
            horizon_days: Days to project (default from settings)
            as_of: First projected day (default today)

        Returns:
            ProjectionResult with daily rows and summary

        Raises:
            InventoryNotFoundError: Tuple has no inventory row
            DataSourceError: A read failed
        """
        horizon = self.default_horizon if horizon_days is None else horizon_days
        if horizon < 0:
            raise InvalidProjectionInputError(
                "Horizon cannot be negative",
                details={"horizon_days": horizon},
            )
        start = as_of or date.today()
        end = start + timedelta(days=horizon)

        logger.info(
            "computing_projection",
            horizon_days=horizon,
            start=start.isoformat(),
            **inventory.as_log_context()
        )

        position = position_from_row(self.data_service.get_inventory_row(inventory))
        starting_on_hand = position.on_hand
        threshold = position.safety_stock

        forecast = self.data_service.get_forecast(inventory, start, end)
        arrivals = self.data_service.get_planned_arrivals(inventory, start, end)

        days: list[ProjectionDay] = []
        missing = 0
        for offset in range(horizon):
            day = start + timedelta(days=offset)
            if day not in forecast:
                missing += 1
            days.append(ProjectionDay(
                date=day,
                forecasted_demand=forecast.get(day, 0.0),
                planned_arrivals=arrivals.get(day, 0.0),
            ))

        if missing:
            logger.warning(
                "projection_missing_forecast",
                missing_days=missing,
                horizon_days=horizon,
                **inventory.as_log_context()
            )

        projections = build_projection(starting_on_hand, days, threshold)
        summary = summarize_projection(projections)

        logger.info(
            "projection_built",
            stockout_days=summary.stockout_days,
            critical_days=summary.critical_days,
            warning_days=summary.warning_days,
            **inventory.as_log_context()
        )

        return ProjectionResult(
            tuple=inventory,
            starting_on_hand=starting_on_hand,
            horizon_days=horizon,
            projections=projections,
            summary=summary,
            missing_forecast_days=missing,
        )


# Singleton instance
_projection_service: Optional[ProjectionService] = None


def get_projection_service() -> ProjectionService:
    """Get or create ProjectionService instance."""
    global _projection_service
    if _projection_service is None:
        _projection_service = ProjectionService()
    return _projection_service
