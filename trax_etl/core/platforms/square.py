"""
Square rules: field table, decoder and unified mapping.

Square splits the transaction time over "Date" and "Time" columns. Both are
stored as exported, and their concatenation is parsed into transaction_at.
"""

from functools import partial

from trax_etl.core.errors import RowDecodeError
from trax_etl.core.models import Platform, SquareTransaction, UnifiedRecord
from trax_etl.core.normalization import (
    join_date_time,
    parse_flag,
    parse_flexible_timestamp,
    parse_money,
    parse_number,
)

from .base import RawRow, RecordDecoder, UnifiedMapper, text, typed

SQUARE_TIMESTAMP_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
)

SQUARE_TRUTHY = ("true", "1")

money = partial(typed, coerce=parse_money)

SQUARE_FIELDS = (
    text("date", "transaction_date"),
    text("time", "transaction_time"),
    text("time_zone"),
    money("gross_sales"),
    money("discounts"),
    money("service_charges"),
    money("net_sales"),
    money("gift_card_sales"),
    money("tax"),
    money("tip"),
    money("partial_refunds"),
    money("total_collected"),
    text("source"),
    money("card"),
    text("card_entry_methods"),
    money("cash"),
    money("square_gift_card"),
    money("other_tender"),
    text("other_tender_type"),
    text("tender_note"),
    money("fees"),
    money("net_total"),
    text("transaction_id"),
    text("payment_id"),
    text("card_brand"),
    text("pan_suffix"),
    text("device_name"),
    text("staff_name"),
    text("staff_id"),
    text("details"),
    text("description"),
    text("event_type"),
    text("location"),
    text("dining_option"),
    text("customer_id"),
    text("customer_name"),
    text("customer_reference_id"),
    text("device_nickname"),
    money("third_party_fees"),
    text("deposit_id"),
    typed("deposit_date", parse_flexible_timestamp),
    text("deposit_details"),
    typed("fee_percentage_rate", parse_number),
    money("fee_fixed_rate"),
    text("refund_reason"),
    text("discount_name"),
    text("transaction_status"),
    money("cash_app"),
    text("order_reference_id"),
    text("fulfillment_note"),
    typed("free_processing_applied", partial(parse_flag, truthy=SQUARE_TRUTHY)),
    text("channel"),
    money("unattributed_tips"),
)


def derive_transaction_at(row: RawRow) -> dict:
    joined = join_date_time(row.get("date"), row.get("time"))
    try:
        transaction_at = parse_flexible_timestamp(joined, SQUARE_TIMESTAMP_FORMATS)
    except ValueError as e:
        raise RowDecodeError("date", joined, str(e)) from e
    return {"transaction_at": transaction_at}


square_decoder = RecordDecoder(SquareTransaction, SQUARE_FIELDS, derived=derive_transaction_at)


class SquareUnifiedMapper(UnifiedMapper):
    """
    Square -> unified.

    order_total comes from net_total; tip and tax map directly. Using
    location as the store and dining_option as the fulfillment type are
    provisional business rules.
    """

    consumed_headers = frozenset({
        "transaction_id", "date", "time", "net_total", "tip", "tax",
        "customer_name", "location", "dining_option", "transaction_status",
    })

    def map(self, record: SquareTransaction) -> UnifiedRecord:
        return UnifiedRecord(
            platform=Platform.SQUARE,
            external_order_id=record.transaction_id,
            order_timestamp=record.transaction_at,
            customer=record.customer_name,
            store=record.location,
            fulfillment_type=record.dining_option,
            order_status=record.transaction_status,
            order_total=record.net_total,
            tip=record.tip,
            tax=record.tax,
            metadata=self.metadata(record),
            source_file=record.source_file,
        )
