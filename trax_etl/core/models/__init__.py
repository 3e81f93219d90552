"""
Core data models for the trax pipeline.

All models use Pydantic for runtime validation and immutability.
"""

from .outcome import FileOutcome, RowError
from .platform import Platform, RecordKind
from .platform_record import PlatformRecord
from .slice_order import SliceOrder
from .square_transaction import SquareTransaction
from .uber_order import UberOrder
from .unified_record import UnifiedRecord

__all__ = [
    "Platform",
    "RecordKind",
    "PlatformRecord",
    "SliceOrder",
    "SquareTransaction",
    "UberOrder",
    "UnifiedRecord",
    "RowError",
    "FileOutcome",
]
