"""
API route modules.

Each module defines routes for one engine component.
"""

from routes.projections import router as projections_router
from routes.safety_stock import router as safety_stock_router
from routes.network import router as network_router
from routes.risk import router as risk_router

__all__ = [
    "projections_router",
    "safety_stock_router",
    "network_router",
    "risk_router",
]
