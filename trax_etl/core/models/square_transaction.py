"""
SquareTransaction model for rows of a Square transactions export.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar

from pydantic import Field

from .platform import Platform
from .platform_record import PlatformRecord


class SquareTransaction(PlatformRecord):
    """
    One Square transaction.

    The export splits the transaction time into "Date" and "Time" columns;
    both are kept as exported and also combined into transaction_at.
    """

    platform: ClassVar[Platform] = Platform.SQUARE
    table_name: ClassVar[str] = "square_trax"
    natural_key_field: ClassVar[str] = "transaction_id"

    transaction_date: str | None = None
    transaction_time: str | None = None
    transaction_at: datetime | None = None
    time_zone: str | None = None
    gross_sales: Decimal | None = None
    discounts: Decimal | None = None
    service_charges: Decimal | None = None
    net_sales: Decimal | None = None
    gift_card_sales: Decimal | None = None
    tax: Decimal | None = None
    tip: Decimal | None = None
    partial_refunds: Decimal | None = None
    total_collected: Decimal | None = None
    source: str | None = None
    card: Decimal | None = None
    card_entry_methods: str | None = None
    cash: Decimal | None = None
    square_gift_card: Decimal | None = None
    other_tender: Decimal | None = None
    other_tender_type: str | None = None
    tender_note: str | None = None
    fees: Decimal | None = None
    net_total: Decimal | None = None
    transaction_id: str = Field(..., min_length=1)
    payment_id: str | None = None
    card_brand: str | None = None
    pan_suffix: str | None = None
    device_name: str | None = None
    staff_name: str | None = None
    staff_id: str | None = None
    details: str | None = None
    description: str | None = None
    event_type: str | None = None
    location: str | None = None
    dining_option: str | None = None
    customer_id: str | None = None
    customer_name: str | None = None
    customer_reference_id: str | None = None
    device_nickname: str | None = None
    third_party_fees: Decimal | None = None
    deposit_id: str | None = None
    deposit_date: datetime | None = None
    deposit_details: str | None = None
    fee_percentage_rate: Decimal | None = None
    fee_fixed_rate: Decimal | None = None
    refund_reason: str | None = None
    discount_name: str | None = None
    transaction_status: str | None = None
    cash_app: Decimal | None = None
    order_reference_id: str | None = None
    fulfillment_note: str | None = None
    free_processing_applied: bool = False
    channel: str | None = None
    unattributed_tips: Decimal | None = None
