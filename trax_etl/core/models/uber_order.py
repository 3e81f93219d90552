"""
UberOrder model for rows of an Uber Eats orders export.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar

from pydantic import Field

from .platform import Platform
from .platform_record import PlatformRecord


class UberOrder(PlatformRecord):
    """
    One Uber Eats order.

    Only time_customer_ordered is parsed as a timestamp; the remaining
    time-of-day columns are stored as exported.
    """

    platform: ClassVar[Platform] = Platform.UBER
    table_name: ClassVar[str] = "uber_trax"
    natural_key_field: ClassVar[str] = "order_uuid"

    store: str | None = None
    external_store_id: str | None = None
    country: str | None = None
    country_code: str | None = None
    city: str | None = None
    order_id: str | None = None
    order_uuid: str = Field(..., min_length=1)
    order_status: str | None = None
    delivery_status: str | None = None
    scheduled: bool = False
    completed: bool = False
    online_order: bool = False
    canceled_by: str | None = None
    menu_item_count: int | None = None
    currency_code: str | None = None
    ticket_size: Decimal | None = None
    date_ordered: str | None = None
    time_customer_ordered: datetime | None = None
    cancellation_time: str | None = None
    time_merchant_accepted: str | None = None
    time_to_accept: Decimal | None = None
    original_prep_time: Decimal | None = None
    prep_time_increased: bool = False
    increased_prep_time: Decimal | None = None
    courier_arrival_time: str | None = None
    time_courier_started_trip: str | None = None
    time_courier_delivered: str | None = None
    total_delivery_time: Decimal | None = None
    courier_wait_time_restaurant: Decimal | None = None
    courier_wait_time_eater: Decimal | None = None
    total_prep_handoff_time: Decimal | None = None
    order_duration: Decimal | None = None
    delivery_batch_type: str | None = None
    fulfillment_type: str | None = None
    order_channel: str | None = None
    eats_brand: str | None = None
    subscription_pass: str | None = None
    workflow_uuid: str | None = None
