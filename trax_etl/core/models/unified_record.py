"""
UnifiedRecord model: the cross-platform shape used for combined reporting.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .platform import Platform


class UnifiedRecord(BaseModel):
    """
    Cross-platform order record.

    (platform, external_order_id) is the identity key: re-processing the
    same source row yields a record that collides on it.

    Attributes:
        platform: Source platform
        external_order_id: Platform-native order identifier
        order_timestamp: When the order was placed
        customer: Customer name, when the platform exports one
        store: Store / location name
        fulfillment_type: Pickup, delivery, dine-in, ...
        order_status: Platform order status
        order_total: Order total used for reporting
        tip: Tip amount, when mapped
        tax: Tax amount, when mapped
        metadata: Unmapped raw fields, kept verbatim
        source_file: Provenance of the source row
    """

    platform: Platform
    external_order_id: str = Field(..., min_length=1)
    order_timestamp: datetime | None = None
    customer: str | None = None
    store: str | None = None
    fulfillment_type: str | None = None
    order_status: str | None = None
    order_total: Decimal | None = None
    tip: Decimal | None = None
    tax: Decimal | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    source_file: str = Field(..., min_length=1)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "platform": "square",
                "external_order_id": "T1",
                "order_timestamp": "2025-04-09T14:30:00",
                "customer": None,
                "store": "Main St",
                "fulfillment_type": "For Here",
                "order_status": "Complete",
                "order_total": "25.50",
                "tip": "3.00",
                "tax": "2.00",
                "metadata": {"payment_id": "P1"},
                "source_file": "raw_csv/square/square_trax_2025-04.csv"
            }
        }

    @field_validator("order_total", "tip", "tax")
    @classmethod
    def check_finite(cls, v):
        """Monetary fields are finite decimals or absent."""
        if v is not None and not v.is_finite():
            raise ValueError(f"must be a finite decimal, got {v}")
        return v

    @property
    def identity(self) -> tuple[str, str]:
        return (self.platform.value, self.external_order_id)
