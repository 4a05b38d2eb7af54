"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ExternalServiceError,

    # Projection
    InvalidProjectionInputError,
    MalformedSummaryError,

    # Safety stock
    InvalidCalculationMethodError,
    InvalidSafetyStockInputError,

    # Data source
    DataSourceError,
    InventoryNotFoundError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ExternalServiceError",

    # Projection
    "InvalidProjectionInputError",
    "MalformedSummaryError",

    # Safety stock
    "InvalidCalculationMethodError",
    "InvalidSafetyStockInputError",

    # Data source
    "DataSourceError",
    "InventoryNotFoundError",
]
