"""
Header normalization.

Raw export headers ("Order #", "Scheduled?", "Net Total") are mapped to
canonical lowercase, underscore-separated keys before any lookup, so no
downstream code ever branches on a raw header spelling.
"""

import re
from collections.abc import Sequence

from trax_etl.core.errors import HeaderCollisionError

_WHITESPACE = re.compile(r"\s+")

# Headers whose normalized form is replaced outright
SPECIAL_HEADERS = {
    "order_#": "order_number",
}


def normalize_header(raw: str) -> str:
    """
    Normalize a single raw header.

    Lowercases, trims, collapses whitespace runs to one underscore and
    strips "?" characters. "Order #" becomes "order_number".

    Args:
        raw: Header text as it appears in the export

    Returns:
        Canonical header key

    Examples:
        >>> normalize_header("Order #")
        'order_number'
        >>> normalize_header("Online Order?")
        'online_order'
        >>> normalize_header("  Net   Total ")
        'net_total'
    """
    key = _WHITESPACE.sub("_", raw.strip().lower()).replace("?", "")
    return SPECIAL_HEADERS.get(key, key)


def normalize_headers(raw_headers: Sequence[str]) -> list[str]:
    """
    Normalize a full header row.

    Blank headers normalize to "" and are left for the reader to drop;
    they never count as a collision.

    Args:
        raw_headers: Header row as read from the file

    Returns:
        Normalized keys, positionally aligned with raw_headers

    Raises:
        HeaderCollisionError: If two raw headers normalize to the same key
    """
    keys = [normalize_header(raw) for raw in raw_headers]

    seen: dict[str, list[str]] = {}
    for raw, key in zip(raw_headers, keys):
        if key:
            seen.setdefault(key, []).append(raw)

    collisions = {key: raws for key, raws in seen.items() if len(raws) > 1}
    if collisions:
        raise HeaderCollisionError(collisions)

    return keys
