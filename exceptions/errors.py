"""
Custom exception classes for the application.

Three failure kinds reach callers:
    - invalid input (ValidationError subclasses, 422)
    - upstream data source failure (DataSourceError, 503)
    - everything else (500)
Insufficient data is never an exception; it is reported on the result.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "INVALID_PROJECTION_INPUT")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


# ===================
# PROJECTION ERRORS
# ===================

class InvalidProjectionInputError(ValidationError):
    """Projection input rejected (negative quantity, gapped dates, ...)."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="INVALID_PROJECTION_INPUT",
            message=message,
            details=details
        )


class MalformedSummaryError(ValidationError):
    """Projection summary missing or carrying negative day counts."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="MALFORMED_PROJECTION_SUMMARY",
            message=message,
            details=details
        )


# ===================
# SAFETY STOCK ERRORS
# ===================

class InvalidCalculationMethodError(ValidationError):
    """Unknown safety stock calculation method."""

    def __init__(self, method: str):
        super().__init__(
            code="INVALID_CALCULATION_METHOD",
            message="Method must be seasonal, trend_based, or service_level",
            details={"provided": method, "valid": ["seasonal", "trend_based", "service_level"]}
        )


class InvalidSafetyStockInputError(ValidationError):
    """Safety stock input rejected (negative lead time, ...)."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="INVALID_SAFETY_STOCK_INPUT",
            message=message,
            details=details
        )


# ===================
# DATA SOURCE ERRORS
# ===================

class DataSourceError(ExternalServiceError):
    """Read from the inventory data layer failed."""

    def __init__(self, operation: str, message: str, details: Optional[dict] = None):
        super().__init__(
            service="data_source",
            message=f"Data source {operation} failed: {message}",
            details={"operation": operation, **(details or {})}
        )


class InventoryNotFoundError(NotFoundError):
    """No on-hand balance for a (product, location, warehouse) tuple."""

    def __init__(self, product_id: str, location_id: str, warehouse_id: str):
        super().__init__(
            resource="Inventory",
            identifier=f"{product_id}/{location_id}/{warehouse_id}",
            code="INVENTORY_NOT_FOUND"
        )
