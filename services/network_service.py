"""
Network service — rebalancing inventory across stocking nodes.

For one product, compares each node's on-hand with its recommended
safety stock and greedily pairs the largest surplus with the largest
deficit until no pairing is worth a transfer.
"""

from typing import Optional, Sequence
from datetime import date
import structlog

from config import settings
from config.risk_policy import (
    HIGH_URGENCY_GAP_RATIO,
    MAX_STOCK_CAPACITY_RATIO,
    MEDIUM_URGENCY_GAP_RATIO,
    TRANSFER_BENEFIT_PER_UNIT,
)
from models.base import InventoryTuple
from models.network import (
    DistributionPlan,
    InventoryNode,
    MultiNodeInventory,
    NodeBalance,
    NodeInventory,
    TransferRecommendation,
    TransferUrgency,
)
from models.safety_stock import CalculationMethod, SafetyStockInput
from services.inventory_data_service import get_inventory_data_service
from services.safety_stock_service import calculate_safety_stock, coerce_method

logger = structlog.get_logger(__name__)


# ===================
# PURE CALCULATIONS
# ===================

def classify_balance(imbalance: float, min_transfer: float) -> NodeBalance:
    """Surplus/deficit only when the imbalance is worth moving."""
    if imbalance >= min_transfer:
        return NodeBalance.SURPLUS
    if imbalance <= -min_transfer:
        return NodeBalance.DEFICIT
    return NodeBalance.BALANCED


def transfer_urgency(destination_stock: float, remaining_gap: float, target: float) -> TransferUrgency:
    """
    Urgency of a transfer from the destination's point of view.

    Args:
        destination_stock: Destination on-hand before this transfer
        remaining_gap: Deficit still open before this transfer
        target: Destination recommended safety stock
    """
    if destination_stock <= 0:
        return TransferUrgency.CRITICAL
    ratio = remaining_gap / target if target > 0 else 0.0
    if ratio >= HIGH_URGENCY_GAP_RATIO:
        return TransferUrgency.HIGH
    if ratio >= MEDIUM_URGENCY_GAP_RATIO:
        return TransferUrgency.MEDIUM
    return TransferUrgency.LOW


def reorder_point(node: InventoryNode) -> float:
    """Safety stock plus expected demand over the replenishment lead time."""
    return round(node.recommended_safety_stock + node.average_daily_demand * node.lead_time_days, 2)


def max_stock_level(node: InventoryNode) -> Optional[float]:
    if node.capacity is None:
        return None
    return round(node.capacity * MAX_STOCK_CAPACITY_RATIO, 2)


def analyze_nodes(
    product_id: str,
    nodes: Sequence[NodeInventory],
    min_transfer_quantity: Optional[float] = None,
) -> MultiNodeInventory:
    """
    Propose transfers that even out a product's network.

    Greedy: repeatedly move min(largest surplus, largest deficit) from
    the largest-surplus node to the largest-deficit node (ties broken
    by node id) while the quantity is at least min_transfer_quantity.

    Args:
        product_id: Product being analyzed
        nodes: Every node carrying the product
        min_transfer_quantity: Smallest worthwhile transfer (default from settings)

    Returns:
        MultiNodeInventory. Fewer than two nodes gives an empty
        optimal_distribution; a single node has nothing to rebalance against.
    """
    min_transfer = settings.min_transfer_quantity if min_transfer_quantity is None else min_transfer_quantity

    inventory_nodes = [
        InventoryNode(
            node_id=n.node_id,
            node_type=n.node_type,
            location_id=n.location_id,
            warehouse_id=n.warehouse_id,
            current_stock=n.current_stock,
            capacity=n.capacity,
            recommended_safety_stock=n.safety_stock.recommended_safety_stock,
            average_daily_demand=n.safety_stock.average_demand,
            lead_time_days=n.safety_stock.average_lead_time_days,
        )
        for n in nodes
    ]
    total_stock = sum(n.current_stock for n in inventory_nodes)

    if len(inventory_nodes) < 2:
        return MultiNodeInventory(
            product_id=product_id,
            nodes=inventory_nodes,
            total_network_stock=total_stock,
            optimal_distribution=[],
            note="Fewer than two nodes carry this product",
        )

    imbalance = {n.node_id: n.current_stock - n.recommended_safety_stock for n in inventory_nodes}
    balance = {node_id: classify_balance(value, min_transfer) for node_id, value in imbalance.items()}

    surplus = {nid: imbalance[nid] for nid, b in balance.items() if b == NodeBalance.SURPLUS}
    deficit = {nid: -imbalance[nid] for nid, b in balance.items() if b == NodeBalance.DEFICIT}

    stock_after = {n.node_id: n.current_stock for n in inventory_nodes}
    target = {n.node_id: n.recommended_safety_stock for n in inventory_nodes}
    incoming: dict[str, list[TransferRecommendation]] = {n.node_id: [] for n in inventory_nodes}

    while surplus and deficit:
        source = min(surplus, key=lambda nid: (-surplus[nid], nid))
        destination = min(deficit, key=lambda nid: (-deficit[nid], nid))
        quantity = min(surplus[source], deficit[destination])
        if quantity < min_transfer:
            break

        urgency = transfer_urgency(stock_after[destination], deficit[destination], target[destination])
        incoming[destination].append(TransferRecommendation(
            from_node=source,
            to_node=destination,
            quantity=round(quantity, 2),
            urgency=urgency,
            expected_benefit=round(deficit[destination] * TRANSFER_BENEFIT_PER_UNIT, 2),
            justification=(
                f"{source} holds {surplus[source]:.2f} above its safety stock; "
                f"{destination} is {deficit[destination]:.2f} below"
            ),
        ))

        stock_after[source] -= quantity
        stock_after[destination] += quantity
        surplus[source] -= quantity
        deficit[destination] -= quantity
        if surplus[source] <= 0:
            del surplus[source]
        if deficit[destination] <= 0:
            del deficit[destination]

    plans = [
        DistributionPlan(
            node_id=n.node_id,
            balance=balance[n.node_id],
            current_stock=n.current_stock,
            recommended_stock_level=n.recommended_safety_stock,
            reorder_point=reorder_point(n),
            max_stock_level=max_stock_level(n),
            projected_stock_after_transfers=round(stock_after[n.node_id], 2),
            transfer_recommendations=incoming[n.node_id],
        )
        for n in inventory_nodes
    ]

    return MultiNodeInventory(
        product_id=product_id,
        nodes=inventory_nodes,
        total_network_stock=total_stock,
        optimal_distribution=plans,
    )


# ===================
# SERVICE
# ===================

class NetworkService:
    """
    Multi-node analysis backed by the inventory data layer.

    Computes each node's safety stock with the safety stock calculator
    before pairing surplus and deficit nodes.
    """

    def __init__(self):
        self.data_service = get_inventory_data_service()
        self.default_holding_cost = settings.default_unit_holding_cost

    def analyze_network(
        self,
        product_id: str,
        method: CalculationMethod = CalculationMethod.SERVICE_LEVEL,
        as_of: Optional[date] = None,
    ) -> MultiNodeInventory:
        """
        Analyze every node carrying a product.

        Raises:
            DataSourceError: A read failed or a row holds invalid values
        """
        method = coerce_method(method)
        as_of = as_of or date.today()
        logger.info("analyzing_network", product_id=product_id, method=method.value)

        rows = self.data_service.get_nodes_for_product(product_id)

        nodes = []
        for row in rows:
            inventory = InventoryTuple(
                product_id=product_id,
                location_id=row["location_id"],
                warehouse_id=row["warehouse_id"],
            )
            position = row["position"]
            cost = position.unit_holding_cost
            data = SafetyStockInput(
                product_id=product_id,
                location_id=inventory.location_id,
                warehouse_id=inventory.warehouse_id,
                demand_history=self.data_service.get_demand_history(inventory, as_of),
                lead_time_history=self.data_service.get_lead_time_history(inventory),
                current_safety_stock=position.safety_stock,
                unit_holding_cost=cost if cost is not None else self.default_holding_cost,
            )
            nodes.append(NodeInventory(
                node_id=row["node_id"],
                location_id=inventory.location_id,
                warehouse_id=inventory.warehouse_id,
                node_type=position.node_type,
                current_stock=position.on_hand,
                capacity=position.capacity,
                safety_stock=calculate_safety_stock(data, method, as_of=as_of),
            ))

        network = analyze_nodes(product_id, nodes)

        logger.info(
            "network_analyzed",
            product_id=product_id,
            nodes=len(nodes),
            transfers=network.transfer_count,
            total_network_stock=network.total_network_stock,
        )

        return network


# Singleton instance
_network_service: Optional[NetworkService] = None


def get_network_service() -> NetworkService:
    """Get or create NetworkService instance."""
    global _network_service
    if _network_service is None:
        _network_service = NetworkService()
    return _network_service
