"""
Closed sets of source platforms and export kinds.
"""

from enum import Enum


class Platform(str, Enum):
    """Source POS / delivery platform of an export file."""

    SLICE = "slice"
    SQUARE = "square"
    UBER = "uber"


class RecordKind(str, Enum):
    """Export kind: transaction summaries (trax) or itemized lines (itemz)."""

    TRAX = "trax"
    ITEMZ = "itemz"
