"""
Inventory data service — read-only access to planning data.

Wraps the Supabase tables the engine consumes: on-hand balances,
demand forecasts, planned supply arrivals, demand and lead-time
history. Every query failure surfaces as DataSourceError so callers
can tell an I/O failure apart from "not enough data". Rows holding
negative quantities or unknown node types are rejected the same way.
"""

from typing import Optional
from datetime import date, timedelta
import structlog

from config import get_supabase_client, DatabaseError
from models.base import InventoryTuple
from models.network import InventoryPosition, NodeType
from models.safety_stock import DemandObservation
from exceptions import DataSourceError, InventoryNotFoundError

logger = structlog.get_logger(__name__)

HISTORY_LOOKBACK_DAYS = 365


def _parse_date(value) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _non_negative(row: dict, column: str, table: str, default: Optional[float] = None) -> Optional[float]:
    """Read a numeric column, rejecting negative values."""
    value = row.get(column)
    if value is None:
        return default
    value = float(value)
    if value < 0:
        logger.error("negative_value_in_row", table=table, column=column, value=value)
        raise DataSourceError(
            "read",
            f"{column} cannot be negative",
            {"table": table, "column": column, "value": value}
        )
    return value


def position_from_row(row: dict) -> InventoryPosition:
    """
    Read on-hand, policy and cost values from a current_inventory row.

    Missing on-hand and safety stock read as 0. unit_holding_cost falls
    back to unit_cost, then None. A negative safety stock, cost or
    capacity, or an unknown node type, raises DataSourceError.
    """
    table = "current_inventory"
    raw_type = row.get("node_type") or NodeType.WAREHOUSE.value
    try:
        node_type = NodeType(raw_type)
    except ValueError:
        logger.error("unknown_node_type", table=table, node_type=raw_type)
        raise DataSourceError(
            "read",
            f"Unknown node type '{raw_type}'",
            {"table": table, "column": "node_type", "value": raw_type}
        )

    cost_column = "unit_holding_cost" if row.get("unit_holding_cost") is not None else "unit_cost"

    return InventoryPosition(
        on_hand=float(row.get("current_stock") or 0),
        safety_stock=_non_negative(row, "safety_stock", table, default=0.0),
        unit_holding_cost=_non_negative(row, cost_column, table),
        node_type=node_type,
        capacity=_non_negative(row, "capacity", table),
    )


class InventoryDataService:
    """
    Data-access layer for the risk engine.

    Tables:
        current_inventory: one row per (product, location, warehouse)
        forecast_data: daily demand forecast per (product, location)
        supply_arrivals: planned receipts per (product, location, warehouse)
        demand_history: observed demand per (product, location)
        lead_time_history: observed replenishment lead times
    """

    def __init__(self):
        try:
            self.db = get_supabase_client()
        except DatabaseError as e:
            raise DataSourceError("connect", str(e)) from e

    # ===================
    # CURRENT POSITION
    # ===================

    def get_inventory_row(self, inventory: InventoryTuple) -> dict:
        """
        Get the current inventory row for a tuple.

        Raises:
            InventoryNotFoundError: If the tuple has no inventory row
            DataSourceError: If the query fails
        """
        logger.debug("getting_inventory_row", **inventory.as_log_context())

        try:
            result = (
                self.db.table("current_inventory")
                .select("*")
                .eq("product_id", inventory.product_id)
                .eq("location_id", inventory.location_id)
                .eq("warehouse_id", inventory.warehouse_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("get_inventory_row_failed", error=str(e), **inventory.as_log_context())
            raise DataSourceError("select", str(e), {"table": "current_inventory"})

        if not result.data:
            raise InventoryNotFoundError(
                inventory.product_id, inventory.location_id, inventory.warehouse_id
            )
        return result.data[0]

    def get_nodes_for_product(self, product_id: str) -> list[dict]:
        """
        Get every stocking node carrying a product.

        Returns:
            List of dicts with node_id, location_id, warehouse_id and
            position (InventoryPosition)

        Raises:
            DataSourceError: If the query fails or a row holds invalid values
        """
        logger.debug("getting_product_nodes", product_id=product_id)

        try:
            result = (
                self.db.table("current_inventory")
                .select("*")
                .eq("product_id", product_id)
                .order("warehouse_id")
                .execute()
            )
        except Exception as e:
            logger.error("get_product_nodes_failed", product_id=product_id, error=str(e))
            raise DataSourceError("select", str(e), {"table": "current_inventory"})

        nodes = []
        for row in result.data or []:
            location_id = str(row.get("location_id") or "default")
            warehouse_id = str(row["warehouse_id"])
            nodes.append({
                "node_id": f"{location_id}:{warehouse_id}",
                "location_id": location_id,
                "warehouse_id": warehouse_id,
                "position": position_from_row(row),
            })
        return nodes

    # ===================
    # FORWARD SERIES
    # ===================

    def get_forecast(
        self,
        inventory: InventoryTuple,
        start: date,
        end: date,
    ) -> dict[date, float]:
        """
        Get forecasted demand per date in [start, end).

        Multiple rows for the same date are summed.
        """
        try:
            result = (
                self.db.table("forecast_data")
                .select("postdate, forecast")
                .eq("product_id", inventory.product_id)
                .eq("location_id", inventory.location_id)
                .gte("postdate", start.isoformat())
                .lt("postdate", end.isoformat())
                .order("postdate")
                .execute()
            )
        except Exception as e:
            logger.error("get_forecast_failed", error=str(e), **inventory.as_log_context())
            raise DataSourceError("select", str(e), {"table": "forecast_data"})

        forecast: dict[date, float] = {}
        for row in result.data or []:
            day = _parse_date(row["postdate"])
            forecast[day] = forecast.get(day, 0.0) + _non_negative(row, "forecast", "forecast_data", default=0.0)
        return forecast

    def get_planned_arrivals(
        self,
        inventory: InventoryTuple,
        start: date,
        end: date,
    ) -> dict[date, float]:
        """Get planned supply arrivals per date in [start, end)."""
        try:
            result = (
                self.db.table("supply_arrivals")
                .select("arrival_date, quantity")
                .eq("product_id", inventory.product_id)
                .eq("location_id", inventory.location_id)
                .eq("warehouse_id", inventory.warehouse_id)
                .gte("arrival_date", start.isoformat())
                .lt("arrival_date", end.isoformat())
                .order("arrival_date")
                .execute()
            )
        except Exception as e:
            logger.error("get_planned_arrivals_failed", error=str(e), **inventory.as_log_context())
            raise DataSourceError("select", str(e), {"table": "supply_arrivals"})

        arrivals: dict[date, float] = {}
        for row in result.data or []:
            day = _parse_date(row["arrival_date"])
            arrivals[day] = arrivals.get(day, 0.0) + _non_negative(row, "quantity", "supply_arrivals", default=0.0)
        return arrivals

    # ===================
    # HISTORY
    # ===================

    def get_demand_history(
        self,
        inventory: InventoryTuple,
        as_of: date,
        lookback_days: int = HISTORY_LOOKBACK_DAYS,
    ) -> list[DemandObservation]:
        """
        Observed demand over the lookback window, oldest first.

        Raises:
            DataSourceError: If the query fails or a quantity is negative
        """
        since = as_of - timedelta(days=lookback_days)

        try:
            result = (
                self.db.table("demand_history")
                .select("postdate, quantity")
                .eq("product_id", inventory.product_id)
                .eq("location_id", inventory.location_id)
                .gte("postdate", since.isoformat())
                .lt("postdate", as_of.isoformat())
                .order("postdate")
                .execute()
            )
        except Exception as e:
            logger.error("get_demand_history_failed", error=str(e), **inventory.as_log_context())
            raise DataSourceError("select", str(e), {"table": "demand_history"})

        return [
            DemandObservation(
                date=_parse_date(row["postdate"]),
                quantity=_non_negative(row, "quantity", "demand_history", default=0.0),
            )
            for row in result.data or []
        ]

    def get_lead_time_history(self, inventory: InventoryTuple) -> list[float]:
        """Observed replenishment lead times in days, oldest first. Negative values raise DataSourceError."""
        try:
            result = (
                self.db.table("lead_time_history")
                .select("received_date, lead_time_days")
                .eq("product_id", inventory.product_id)
                .eq("warehouse_id", inventory.warehouse_id)
                .order("received_date")
                .execute()
            )
        except Exception as e:
            logger.error("get_lead_time_history_failed", error=str(e), **inventory.as_log_context())
            raise DataSourceError("select", str(e), {"table": "lead_time_history"})

        lead_times = (_non_negative(row, "lead_time_days", "lead_time_history") for row in result.data or [])
        return [lead_time for lead_time in lead_times if lead_time is not None]


# Singleton instance
_inventory_data_service: Optional[InventoryDataService] = None


def get_inventory_data_service() -> InventoryDataService:
    """Get or create InventoryDataService instance."""
    global _inventory_data_service
    if _inventory_data_service is None:
        _inventory_data_service = InventoryDataService()
    return _inventory_data_service
