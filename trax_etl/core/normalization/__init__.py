"""
Header normalization and field coercion.
"""

from .coercers import (
    join_date_time,
    maybe_null,
    parse_flag,
    parse_flexible_timestamp,
    parse_int,
    parse_money,
    parse_number,
)
from .headers import normalize_header, normalize_headers

__all__ = [
    "normalize_header",
    "normalize_headers",
    "maybe_null",
    "parse_money",
    "parse_number",
    "parse_int",
    "parse_flag",
    "parse_flexible_timestamp",
    "join_date_time",
]
