"""
Slice rules: field table, decoder and unified mapping.
"""

from functools import partial

from trax_etl.core.models import Platform, SliceOrder, UnifiedRecord
from trax_etl.core.normalization import parse_flexible_timestamp, parse_money

from .base import RecordDecoder, UnifiedMapper, text, typed

# Slice exports timestamps as "03-01-2025 01:47 AM"
SLICE_TIMESTAMP_FORMATS = ("%m-%d-%Y %I:%M %p",)

SLICE_FIELDS = (
    text("order_number"),
    typed("order_date", partial(parse_flexible_timestamp, formats=SLICE_TIMESTAMP_FORMATS)),
    text("customer"),
    text("order_type"),
    typed("subtotal", parse_money),
    typed("prepaid_tip", parse_money),
    typed("tax", parse_money),
    typed("order_total", parse_money),
    text("status"),
)

slice_decoder = RecordDecoder(SliceOrder, SLICE_FIELDS)


class SliceUnifiedMapper(UnifiedMapper):
    """
    Slice -> unified.

    Tip and tax stay absent on the unified record; subtotal, prepaid_tip
    and tax are only reachable through metadata. The customer, order_type
    and status mappings are provisional business rules.
    """

    consumed_headers = frozenset({
        "order_number", "order_date", "order_total",
        "customer", "order_type", "status",
    })

    def map(self, record: SliceOrder) -> UnifiedRecord:
        return UnifiedRecord(
            platform=Platform.SLICE,
            external_order_id=record.order_number,
            order_timestamp=record.order_date,
            customer=record.customer,
            store=None,
            fulfillment_type=record.order_type,
            order_status=record.status,
            order_total=record.order_total,
            tip=None,
            tax=None,
            metadata=self.metadata(record),
            source_file=record.source_file,
        )
