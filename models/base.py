"""
Base schemas and shared value types for all models.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from enum import Enum


class BaseSchema(BaseModel):
    """
    Base for all schemas.

    Features:
        - Auto-trim whitespace from strings
        - Validate on attribute assignment
        - Allow ORM objects (from_attributes)
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True
    )


class InventoryTuple(BaseSchema):
    """Identity of one stocking position: product at a location and warehouse."""
    product_id: str = Field(..., min_length=1)
    location_id: str = Field(..., min_length=1)
    warehouse_id: str = Field(..., min_length=1)

    def as_log_context(self) -> dict:
        return {
            "product_id": self.product_id,
            "location_id": self.location_id,
            "warehouse_id": self.warehouse_id,
        }


class ValueSource(str, Enum):
    """Where a value came from."""
    COMPUTED = "computed"    # Derived from real data
    DEFAULTED = "defaulted"  # Data missing; documented default substituted


class SourcedValue(BaseSchema):
    """
    A value tagged with its provenance.

    Lets callers tell "computed as zero" apart from "defaulted
    because data was missing".
    """
    value: float
    source: ValueSource
    reason: Optional[str] = Field(None, description="Why the default was used")

    @classmethod
    def computed(cls, value: float) -> "SourcedValue":
        return cls(value=value, source=ValueSource.COMPUTED)

    @classmethod
    def defaulted(cls, value: float, reason: str) -> "SourcedValue":
        return cls(value=value, source=ValueSource.DEFAULTED, reason=reason)

    @property
    def is_computed(self) -> bool:
        return self.source == ValueSource.COMPUTED
