"""
Multi-node network schemas.

Describes every stocking node carrying a product and the transfers
proposed to even out surplus and deficit against each node's
recommended safety stock.
"""

from pydantic import Field
from typing import Optional
from enum import Enum

from models.base import BaseSchema
from models.safety_stock import SafetyStockCalculation


class NodeType(str, Enum):
    """Kind of stocking location."""
    WAREHOUSE = "warehouse"
    DISTRIBUTION_CENTER = "distribution_center"
    STORE = "store"


class NodeBalance(str, Enum):
    """Position of a node relative to its recommended safety stock."""
    SURPLUS = "surplus"
    DEFICIT = "deficit"
    BALANCED = "balanced"


class TransferUrgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class InventoryPosition(BaseSchema):
    """Values read from one current_inventory row."""

    on_hand: float
    safety_stock: float = Field(0, ge=0)
    unit_holding_cost: Optional[float] = Field(None, ge=0, description="None when the row carries no cost")
    node_type: NodeType = NodeType.WAREHOUSE
    capacity: Optional[float] = Field(None, ge=0)


class NodeInventory(BaseSchema):
    """Analyzer input: one node's on-hand and its safety stock calculation."""

    node_id: str
    location_id: str
    warehouse_id: str
    node_type: NodeType = NodeType.WAREHOUSE
    current_stock: float
    capacity: Optional[float] = Field(None, ge=0)
    safety_stock: SafetyStockCalculation


class InventoryNode(BaseSchema):
    """A stocking location carrying the product."""

    node_id: str
    node_type: NodeType
    location_id: str
    warehouse_id: str
    current_stock: float
    capacity: Optional[float] = Field(None, ge=0)
    recommended_safety_stock: float = Field(..., ge=0)
    average_daily_demand: float = Field(0, ge=0)
    lead_time_days: float = Field(0, ge=0)


class TransferRecommendation(BaseSchema):
    """Proposed inventory movement between two nodes."""

    from_node: str
    to_node: str
    quantity: float = Field(..., gt=0)
    urgency: TransferUrgency
    expected_benefit: float = Field(..., ge=0, description="Open deficit x benefit per unit")
    justification: str


class DistributionPlan(BaseSchema):
    """
    Plan for one node.

    Holds the transfers arriving at this node, so each
    recommendation appears in exactly one plan.
    """

    node_id: str
    balance: NodeBalance
    current_stock: float
    recommended_stock_level: float = Field(..., ge=0)
    reorder_point: float = Field(..., ge=0, description="Safety stock + average daily demand x lead time")
    max_stock_level: Optional[float] = Field(None, ge=0, description="90% of capacity; None without capacity")
    projected_stock_after_transfers: float
    transfer_recommendations: list[TransferRecommendation] = Field(default_factory=list)


class MultiNodeInventory(BaseSchema):
    """Network view of one product."""

    product_id: str
    nodes: list[InventoryNode] = Field(default_factory=list)
    total_network_stock: float = 0
    optimal_distribution: list[DistributionPlan] = Field(default_factory=list)
    note: Optional[str] = Field(None, description="Why no plan was produced, if none")

    @property
    def transfer_count(self) -> int:
        return sum(len(plan.transfer_recommendations) for plan in self.optimal_distribution)

    @property
    def transfers(self) -> list[TransferRecommendation]:
        return [t for plan in self.optimal_distribution for t in plan.transfer_recommendations]
