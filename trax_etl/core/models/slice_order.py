"""
SliceOrder model for rows of a Slice transactions export.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar

from pydantic import Field

from .platform import Platform
from .platform_record import PlatformRecord


class SliceOrder(PlatformRecord):
    """
    One Slice order.

    Attributes:
        order_number: Slice order number (natural key, from "Order #")
        order_date: When the order was placed
        customer: Customer display name
        order_type: Pickup / Delivery
        subtotal: Order subtotal
        prepaid_tip: Tip paid at checkout
        tax: Tax collected
        order_total: Grand total
        status: Order status reported by Slice
    """

    platform: ClassVar[Platform] = Platform.SLICE
    table_name: ClassVar[str] = "slice_trax"
    natural_key_field: ClassVar[str] = "order_number"

    order_number: str = Field(..., min_length=1)
    order_date: datetime | None = None
    customer: str | None = None
    order_type: str | None = None
    subtotal: Decimal | None = None
    prepaid_tip: Decimal | None = None
    tax: Decimal | None = None
    order_total: Decimal | None = None
    status: str | None = None

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "order_number": "1001",
                "order_date": "2025-03-01T01:47:00",
                "customer": "Jane",
                "order_type": "Pickup",
                "subtotal": "10.00",
                "prepaid_tip": None,
                "tax": "0.80",
                "order_total": "10.80",
                "status": "Completed",
                "source_file": "raw_csv/slice/slice_trax_2025-03.csv"
            }
        }
