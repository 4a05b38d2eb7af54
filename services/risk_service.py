"""
Risk service — composite stockout risk per tuple.

Combines the projection summary, the current month's seasonal factor
and the network's transfer count:

    base_risk = clamp((stockout×0.4 + critical×0.2 + warning×0.1) / 30, 0, 1)
    seasonal_risk = |seasonal_factor - 1|                      (0 if unavailable)
    network_score = max(0.1, 1 - transfers×0.1)                (0.5 if unavailable)
    probability = clamp(base_risk + seasonal_risk×0.3 + (1 - network_score)×0.2, 0, 1)

    low < 0.2 <= medium < 0.5 <= high

Scores are rounded to 2 decimals for output; the unrounded
probability decides the level.
"""

from typing import Optional, Sequence, Union
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
import structlog

from config import settings
from config.risk_policy import (
    STOCKOUT_DAY_WEIGHT,
    CRITICAL_DAY_WEIGHT,
    WARNING_DAY_WEIGHT,
    RISK_NORMALIZATION_DAYS,
    SEASONAL_RISK_WEIGHT,
    NETWORK_RISK_WEIGHT,
    SCORE_PENALTY_PER_TRANSFER,
    MIN_NETWORK_SCORE,
    DEFAULT_NETWORK_SCORE,
    LOW_RISK_BELOW,
    MEDIUM_RISK_BELOW,
)
from models.base import InventoryTuple, SourcedValue, ValueSource
from models.projection import ProjectionSummary
from models.safety_stock import CalculationMethod
from models.risk import (
    BatchRiskResponse,
    FailureKind,
    RiskAssessment,
    RiskLevel,
    TupleError,
    TupleRiskReport,
    TupleRiskResult,
    TupleStatus,
)
from exceptions import (
    AppError,
    DataSourceError,
    ExternalServiceError,
    MalformedSummaryError,
    NotFoundError,
    ValidationError,
)
from services.projection_service import get_projection_service
from services.safety_stock_service import get_safety_stock_service, coerce_method
from services.network_service import get_network_service

logger = structlog.get_logger(__name__)

NEUTRAL_SEASONAL_FACTOR = 1.0


# ===================
# PURE CALCULATIONS
# ===================

def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def round_score(value: float) -> float:
    """Round half-up to 2 decimals (0.125 -> 0.13)."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def classify_risk_level(stockout_probability: float) -> RiskLevel:
    """Map an unrounded stockout probability to a risk level."""
    if stockout_probability < LOW_RISK_BELOW:
        return RiskLevel.LOW
    if stockout_probability < MEDIUM_RISK_BELOW:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


def _validate_summary(summary) -> ProjectionSummary:
    if summary is None:
        raise MalformedSummaryError("Projection summary is required")
    if isinstance(summary, dict):
        try:
            summary = ProjectionSummary(**summary)
        except Exception as e:
            raise MalformedSummaryError("Projection summary is malformed", details={"error": str(e)})
    if not isinstance(summary, ProjectionSummary):
        raise MalformedSummaryError(
            "Projection summary is malformed",
            details={"type": type(summary).__name__},
        )

    counts = {
        "stockout_days": summary.stockout_days,
        "critical_days": summary.critical_days,
        "warning_days": summary.warning_days,
    }
    negative = {name: count for name, count in counts.items() if count < 0}
    if negative:
        raise MalformedSummaryError("Projection summary day counts cannot be negative", details=negative)
    return summary


def _as_sourced(value, reason: str) -> SourcedValue:
    if value is None:
        return SourcedValue.defaulted(0, reason)
    if isinstance(value, SourcedValue):
        return value
    return SourcedValue.computed(float(value))


def aggregate_risk(
    summary: ProjectionSummary,
    seasonal_factor: Union[float, SourcedValue, None] = None,
    transfer_count: Union[int, SourcedValue, None] = None,
) -> RiskAssessment:
    """
    Combine projection, seasonality and network balance into one assessment.

    Args:
        summary: Projection summary (required)
        seasonal_factor: Current month's seasonal factor, if available
        transfer_count: Number of transfer recommendations, if available

    Returns:
        RiskAssessment with scores rounded to 2 decimals

    Raises:
        MalformedSummaryError: Summary missing or with negative day counts
    """
    summary = _validate_summary(summary)

    weighted_days = (
        summary.stockout_days * STOCKOUT_DAY_WEIGHT
        + summary.critical_days * CRITICAL_DAY_WEIGHT
        + summary.warning_days * WARNING_DAY_WEIGHT
    )
    base_risk = _clamp(weighted_days / RISK_NORMALIZATION_DAYS, 0.0, 1.0)

    seasonal = _as_sourced(seasonal_factor, "No seasonal factor for current month")
    if seasonal.is_computed:
        seasonal_risk = _clamp(abs(seasonal.value - NEUTRAL_SEASONAL_FACTOR), 0.0, 1.0)
    else:
        seasonal = SourcedValue.defaulted(NEUTRAL_SEASONAL_FACTOR, seasonal.reason or "unavailable")
        seasonal_risk = 0.0

    transfers = _as_sourced(transfer_count, "No network analysis")
    if transfers.is_computed:
        network_score = max(MIN_NETWORK_SCORE, 1 - transfers.value * SCORE_PENALTY_PER_TRANSFER)
        network_score = min(network_score, 1.0)
    else:
        transfers = SourcedValue.defaulted(0, transfers.reason or "unavailable")
        network_score = DEFAULT_NETWORK_SCORE

    probability = _clamp(
        base_risk
        + seasonal_risk * SEASONAL_RISK_WEIGHT
        + (1 - network_score) * NETWORK_RISK_WEIGHT,
        0.0,
        1.0,
    )

    return RiskAssessment(
        risk_level=classify_risk_level(probability),
        stockout_probability=round_score(probability),
        seasonal_risk=round_score(seasonal_risk),
        network_optimization_score=round_score(network_score),
        base_risk=round_score(base_risk),
        seasonal_factor=seasonal,
        network_transfers=transfers,
    )


def _failure_kind(error: AppError) -> FailureKind:
    if isinstance(error, ValidationError):
        return FailureKind.INVALID_INPUT
    if isinstance(error, ExternalServiceError):
        return FailureKind.DATA_SOURCE
    if isinstance(error, NotFoundError):
        return FailureKind.NOT_FOUND
    return FailureKind.INTERNAL


# ===================
# SERVICE
# ===================

class RiskService:
    """
    End-to-end risk assessment for (product, location, warehouse) tuples.

    Flow per tuple:
    1. Projection (required; failures propagate)
    2. Safety stock and network analysis, concurrently (optional;
       a failed read degrades to the documented defaults)
    3. Aggregation
    """

    def __init__(self):
        self.projection_service = get_projection_service()
        self.safety_stock_service = get_safety_stock_service()
        self.network_service = get_network_service()
        self.max_workers = settings.batch_max_workers

    def assess_risk(
        self,
        inventory: InventoryTuple,
        horizon_days: Optional[int] = None,
        method: CalculationMethod = CalculationMethod.SEASONAL,
        as_of: Optional[date] = None,
        include_safety_stock: bool = True,
        include_network: bool = True,
    ) -> TupleRiskReport:
        """
        Assess stockout risk for one tuple.

        Args:
            inventory: Tuple to assess
            horizon_days: Projection horizon (default from settings)
            method: Safety stock method supplying the seasonal factor
            as_of: Assessment date; fixes the projection start and the
                seasonal month so repeated calls are identical
            include_safety_stock: Run the safety stock calculator
            include_network: Run the network analyzer

        Raises:
            InvalidProjectionInputError, InventoryNotFoundError,
            DataSourceError: From the projection step
        """
        method = coerce_method(method)
        as_of = as_of or date.today()
        logger.info("assessing_risk", as_of=as_of.isoformat(), **inventory.as_log_context())

        projection = self.projection_service.compute_projection(inventory, horizon_days, as_of)

        safety_stock = None
        network = None
        seasonal_reason = "Safety stock analysis not requested"
        network_reason = "Network analysis not requested"

        with ThreadPoolExecutor(max_workers=2) as executor:
            safety_future = (
                executor.submit(self.safety_stock_service.compute_safety_stock, inventory, method, as_of)
                if include_safety_stock else None
            )
            network_future = (
                executor.submit(self.network_service.analyze_network, inventory.product_id, as_of=as_of)
                if include_network else None
            )

            if safety_future is not None:
                try:
                    safety_stock = safety_future.result()
                except (DataSourceError, NotFoundError) as e:
                    seasonal_reason = f"Safety stock data unavailable: {e.message}"
                    logger.warning("risk_safety_stock_unavailable", error=str(e), **inventory.as_log_context())

            if network_future is not None:
                try:
                    network = network_future.result()
                except (DataSourceError, NotFoundError) as e:
                    network_reason = f"Network data unavailable: {e.message}"
                    logger.warning("risk_network_unavailable", error=str(e), **inventory.as_log_context())

        seasonal_factor: Union[SourcedValue, None] = None
        if safety_stock is not None:
            factor = safety_stock.factor_for_month(as_of.month)
            if safety_stock.data_quality == ValueSource.DEFAULTED:
                seasonal_factor = SourcedValue.defaulted(NEUTRAL_SEASONAL_FACTOR, safety_stock.quality_reason)
            elif factor is None:
                seasonal_factor = SourcedValue.defaulted(NEUTRAL_SEASONAL_FACTOR, "No seasonal factor for current month")
            else:
                seasonal_factor = SourcedValue.computed(factor)
        else:
            seasonal_factor = SourcedValue.defaulted(NEUTRAL_SEASONAL_FACTOR, seasonal_reason)

        if network is not None:
            transfers = SourcedValue.computed(network.transfer_count)
        else:
            transfers = SourcedValue.defaulted(0, network_reason)

        risk = aggregate_risk(projection.summary, seasonal_factor, transfers)

        logger.info(
            "risk_assessed",
            risk_level=risk.risk_level.value,
            stockout_probability=risk.stockout_probability,
            **inventory.as_log_context()
        )

        return TupleRiskReport(
            tuple=inventory,
            as_of=as_of,
            projection=projection,
            safety_stock=safety_stock,
            network=network,
            risk=risk,
        )

    def assess_batch(
        self,
        tuples: Sequence[InventoryTuple],
        horizon_days: Optional[int] = None,
        method: CalculationMethod = CalculationMethod.SEASONAL,
        as_of: Optional[date] = None,
        include_safety_stock: bool = True,
        include_network: bool = True,
    ) -> BatchRiskResponse:
        """
        Assess many tuples in parallel.

        A failing tuple is reported with its failure kind and does not
        stop the others. Results keep the input order.
        """
        as_of = as_of or date.today()
        logger.info("assessing_risk_batch", tuples=len(tuples), workers=self.max_workers)

        def run(inventory: InventoryTuple) -> TupleRiskResult:
            try:
                report = self.assess_risk(
                    inventory,
                    horizon_days=horizon_days,
                    method=method,
                    as_of=as_of,
                    include_safety_stock=include_safety_stock,
                    include_network=include_network,
                )
                return TupleRiskResult(tuple=inventory, status=TupleStatus.OK, report=report)
            except AppError as e:
                logger.warning("risk_tuple_failed", code=e.code, error=e.message, **inventory.as_log_context())
                return TupleRiskResult(
                    tuple=inventory,
                    status=TupleStatus.FAILED,
                    error=TupleError(code=e.code, kind=_failure_kind(e), message=e.message),
                )
            except Exception as e:
                logger.error(
                    "risk_tuple_unexpected_error",
                    error=str(e),
                    error_type=type(e).__name__,
                    **inventory.as_log_context()
                )
                return TupleRiskResult(
                    tuple=inventory,
                    status=TupleStatus.FAILED,
                    error=TupleError(code="INTERNAL_ERROR", kind=FailureKind.INTERNAL, message=str(e)),
                )

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            results = list(executor.map(run, tuples))

        succeeded = sum(1 for r in results if r.status == TupleStatus.OK)

        logger.info(
            "risk_batch_complete",
            succeeded=succeeded,
            failed=len(results) - succeeded,
        )

        return BatchRiskResponse(
            results=results,
            succeeded=succeeded,
            failed=len(results) - succeeded,
        )


# Singleton instance
_risk_service: Optional[RiskService] = None


def get_risk_service() -> RiskService:
    """Get or create RiskService instance."""
    global _risk_service
    if _risk_service is None:
        _risk_service = RiskService()
    return _risk_service
