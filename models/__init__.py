"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    InventoryTuple,
    SourcedValue,
    ValueSource,
)
from models.projection import (
    DayStatus,
    ProjectionDay,
    DailyProjection,
    ProjectionSummary,
    ProjectionRequest,
    ProjectionResult,
)
from models.safety_stock import (
    CalculationMethod,
    DemandObservation,
    SeasonalFactor,
    SafetyStockInput,
    SafetyStockCalculation,
)
from models.network import (
    NodeType,
    NodeBalance,
    TransferUrgency,
    NodeInventory,
    InventoryNode,
    TransferRecommendation,
    DistributionPlan,
    MultiNodeInventory,
)
from models.risk import (
    RiskLevel,
    RiskAssessment,
    TupleRiskReport,
    TupleStatus,
    FailureKind,
    TupleError,
    TupleRiskResult,
    BatchRiskRequest,
    BatchRiskResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    "InventoryTuple",
    "SourcedValue",
    "ValueSource",

    # Projection
    "DayStatus",
    "ProjectionDay",
    "DailyProjection",
    "ProjectionSummary",
    "ProjectionRequest",
    "ProjectionResult",

    # Safety stock
    "CalculationMethod",
    "DemandObservation",
    "SeasonalFactor",
    "SafetyStockInput",
    "SafetyStockCalculation",

    # Network
    "NodeType",
    "NodeBalance",
    "TransferUrgency",
    "NodeInventory",
    "InventoryNode",
    "TransferRecommendation",
    "DistributionPlan",
    "MultiNodeInventory",

    # Risk
    "RiskLevel",
    "RiskAssessment",
    "TupleRiskReport",
    "TupleStatus",
    "FailureKind",
    "TupleError",
    "TupleRiskResult",
    "BatchRiskRequest",
    "BatchRiskResponse",
]
