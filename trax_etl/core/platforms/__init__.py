"""
Per-platform rules: field tables, row decoders and unified mappers.
"""

from .base import FieldSpec, RecordDecoder, UnifiedMapper
from .registry import COMPONENTS, PlatformComponents, get_components, trax_components
from .slice import SliceUnifiedMapper, slice_decoder
from .square import SquareUnifiedMapper, square_decoder
from .uber import UberUnifiedMapper, uber_decoder

__all__ = [
    "FieldSpec",
    "RecordDecoder",
    "UnifiedMapper",
    "COMPONENTS",
    "PlatformComponents",
    "get_components",
    "trax_components",
    "SliceUnifiedMapper",
    "SquareUnifiedMapper",
    "UberUnifiedMapper",
    "slice_decoder",
    "square_decoder",
    "uber_decoder",
]
