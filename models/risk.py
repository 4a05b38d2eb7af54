"""
Risk assessment schemas.

RiskAssessment is derived on every request and never cached:
upstream inventory, forecast and network data may change between calls.
"""

from pydantic import Field
from typing import Optional
from datetime import date
from enum import Enum

from models.base import BaseSchema, InventoryTuple, SourcedValue
from models.projection import ProjectionResult
from models.safety_stock import CalculationMethod, SafetyStockCalculation
from models.network import MultiNodeInventory


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskAssessment(BaseSchema):
    """Composite stockout risk for one tuple. Scores rounded to 2 decimals."""

    risk_level: RiskLevel
    stockout_probability: float = Field(..., ge=0, le=1)
    seasonal_risk: float = Field(..., ge=0, le=1)
    network_optimization_score: float = Field(..., ge=0.1, le=1, description="1 = no rebalancing needed")
    base_risk: float = Field(..., ge=0, le=1, description="Risk from projected stockout/critical/warning days")

    seasonal_factor: SourcedValue = Field(..., description="Current month factor, or 1.0 if unavailable")
    network_transfers: SourcedValue = Field(..., description="Transfer recommendation count, or 0 if unavailable")


class TupleRiskReport(BaseSchema):
    """Everything computed for one tuple by assess_risk."""

    tuple: InventoryTuple
    as_of: date
    projection: ProjectionResult
    safety_stock: Optional[SafetyStockCalculation] = None
    network: Optional[MultiNodeInventory] = None
    risk: RiskAssessment


class TupleStatus(str, Enum):
    OK = "ok"
    FAILED = "failed"


class FailureKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    DATA_SOURCE = "data_source"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


class TupleError(BaseSchema):
    code: str
    kind: FailureKind
    message: str


class TupleRiskResult(BaseSchema):
    """Per-tuple outcome inside a batch."""

    tuple: InventoryTuple
    status: TupleStatus
    report: Optional[TupleRiskReport] = None
    error: Optional[TupleError] = None


class BatchRiskRequest(BaseSchema):
    tuples: list[InventoryTuple] = Field(..., min_length=1)
    horizon_days: Optional[int] = Field(None, ge=1, le=365)
    method: CalculationMethod = CalculationMethod.SEASONAL
    include_safety_stock: bool = True
    include_network: bool = True


class BatchRiskResponse(BaseSchema):
    results: list[TupleRiskResult]
    succeeded: int = Field(0, ge=0)
    failed: int = Field(0, ge=0)
