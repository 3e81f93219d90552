"""
Uber Eats rules: field table, decoder and unified mapping.
"""

from functools import partial

from trax_etl.core.models import Platform, UberOrder, UnifiedRecord
from trax_etl.core.normalization import (
    parse_flag,
    parse_flexible_timestamp,
    parse_int,
    parse_money,
    parse_number,
)

from .base import RecordDecoder, UnifiedMapper, text, typed

UBER_TRUTHY = ("1",)

flag = partial(typed, coerce=partial(parse_flag, truthy=UBER_TRUTHY))
number = partial(typed, coerce=parse_number)

UBER_FIELDS = (
    text("store"),
    text("external_store_id"),
    text("country"),
    text("country_code"),
    text("city"),
    text("order_id"),
    text("order_uuid"),
    text("order_status"),
    text("delivery_status"),
    flag("scheduled"),
    flag("completed"),
    flag("online_order"),
    text("canceled_by"),
    typed("menu_item_count", parse_int),
    text("currency_code"),
    typed("ticket_size", parse_money),
    text("date_ordered"),
    typed("time_customer_ordered", parse_flexible_timestamp),
    text("cancellation_time"),
    text("time_merchant_accepted"),
    number("time_to_accept"),
    number("original_prep_time"),
    flag("prep_time_increased"),
    number("increased_prep_time"),
    text("courier_arrival_time"),
    text("time_courier_started_trip"),
    text("time_courier_delivered"),
    number("total_delivery_time"),
    number("courier_wait_time_(restaurant)", attribute="courier_wait_time_restaurant"),
    number("courier_wait_time_(eater)", attribute="courier_wait_time_eater"),
    number("total_prep_&_handoff_time", attribute="total_prep_handoff_time"),
    number("order_duration"),
    text("delivery_batch_type"),
    text("fulfillment_type"),
    text("order_channel"),
    text("eats_brand"),
    text("subscription_pass"),
    text("workflow_uuid"),
)

uber_decoder = RecordDecoder(UberOrder, UBER_FIELDS)


class UberUnifiedMapper(UnifiedMapper):
    """
    Uber -> unified.

    order_total comes from ticket_size. Uber exports carry no customer
    name, tip or tax, so those stay absent.
    """

    consumed_headers = frozenset({
        "order_uuid", "time_customer_ordered", "ticket_size",
        "store", "fulfillment_type", "order_status",
    })

    def map(self, record: UberOrder) -> UnifiedRecord:
        return UnifiedRecord(
            platform=Platform.UBER,
            external_order_id=record.order_uuid,
            order_timestamp=record.time_customer_ordered,
            customer=None,
            store=record.store,
            fulfillment_type=record.fulfillment_type,
            order_status=record.order_status,
            order_total=record.ticket_size,
            tip=None,
            tax=None,
            metadata=self.metadata(record),
            source_file=record.source_file,
        )
