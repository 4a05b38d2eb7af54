"""
Business logic services.

Each service handles one engine component.
"""

from services.inventory_data_service import InventoryDataService, get_inventory_data_service
from services.projection_service import (
    ProjectionService,
    get_projection_service,
    build_projection,
    summarize_projection,
)
from services.safety_stock_service import (
    SafetyStockService,
    get_safety_stock_service,
    calculate_safety_stock,
)
from services.network_service import NetworkService, get_network_service, analyze_nodes
from services.risk_service import (
    RiskService,
    get_risk_service,
    aggregate_risk,
    classify_risk_level,
)

__all__ = [
    "InventoryDataService",
    "get_inventory_data_service",
    "ProjectionService",
    "get_projection_service",
    "build_projection",
    "summarize_projection",
    "SafetyStockService",
    "get_safety_stock_service",
    "calculate_safety_stock",
    "NetworkService",
    "get_network_service",
    "analyze_nodes",
    "RiskService",
    "get_risk_service",
    "aggregate_risk",
    "classify_risk_level",
]
