"""
Database connection management.

Provides the Supabase client singleton used by the inventory data layer.
"""

from supabase import create_client, Client
from functools import lru_cache
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)

# Tables read by the inventory data layer
PLANNING_TABLES = (
    "current_inventory",
    "forecast_data",
    "supply_arrivals",
    "demand_history",
    "lead_time_history",
)


class DatabaseError(Exception):
    """Base exception for database errors."""
    pass


class ConnectionError(DatabaseError):
    """Failed to connect to database."""
    pass


@lru_cache()
def get_supabase_client() -> Client:
    """
    Get cached Supabase client instance.

    Uses lru_cache to ensure only one client is created.
    Call get_supabase_client.cache_clear() to reconnect.

    Returns:
        Client: Supabase client

    Raises:
        ConnectionError: If not configured or connection fails
    """
    if not settings.supabase_configured:
        logger.error("supabase_not_configured")
        raise ConnectionError("SUPABASE_URL and SUPABASE_KEY must be set")

    try:
        logger.info(
            "connecting_to_supabase",
            url=settings.supabase_url[:30] + "..."  # Log partial URL only
        )

        client = create_client(
            settings.supabase_url,
            settings.supabase_key
        )

        logger.info(
            "supabase_connected",
            status="success"
        )

        return client

    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise ConnectionError(f"Failed to connect to Supabase: {e}") from e


# ===================
# HELPER FUNCTIONS
# ===================

def check_connection() -> dict:
    """
    Check that every planning table the engine reads is reachable.

    Returns:
        dict: Overall status, inventory row count and per-table status
    """
    try:
        client = get_supabase_client()
    except DatabaseError as e:
        return {
            "status": "unhealthy",
            "error": str(e)
        }

    tables = {}
    inventory_rows = None
    for table in PLANNING_TABLES:
        try:
            result = client.table(table).select("*", count="exact").limit(1).execute()
            tables[table] = "ok"
            if table == "current_inventory":
                inventory_rows = result.count
        except Exception as e:
            logger.warning("planning_table_unreachable", table=table, error=str(e))
            tables[table] = "unreachable"

    healthy = all(status == "ok" for status in tables.values())
    return {
        "status": "healthy" if healthy else "unhealthy",
        "inventory_rows": inventory_rows,
        "tables": tables,
    }
