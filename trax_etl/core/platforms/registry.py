"""
Component lookup: (platform, record kind) -> decoder and mapper.

The table is built once at import time and never mutated.
"""

from dataclasses import dataclass
from types import MappingProxyType

from trax_etl.core.errors import ClassificationError
from trax_etl.core.models import Platform, PlatformRecord, RecordKind

from .base import RecordDecoder, UnifiedMapper
from .slice import SliceUnifiedMapper, slice_decoder
from .square import SquareUnifiedMapper, square_decoder
from .uber import UberUnifiedMapper, uber_decoder


@dataclass(frozen=True)
class PlatformComponents:
    """Everything needed to process one kind of export for one platform."""

    platform: Platform
    kind: RecordKind
    decoder: RecordDecoder
    mapper: UnifiedMapper

    @property
    def record_cls(self) -> type[PlatformRecord]:
        return self.decoder.record_cls


COMPONENTS = MappingProxyType({
    (Platform.SLICE, RecordKind.TRAX): PlatformComponents(
        Platform.SLICE, RecordKind.TRAX, slice_decoder, SliceUnifiedMapper()
    ),
    (Platform.SQUARE, RecordKind.TRAX): PlatformComponents(
        Platform.SQUARE, RecordKind.TRAX, square_decoder, SquareUnifiedMapper()
    ),
    (Platform.UBER, RecordKind.TRAX): PlatformComponents(
        Platform.UBER, RecordKind.TRAX, uber_decoder, UberUnifiedMapper()
    ),
})


def get_components(platform: Platform, kind: RecordKind, file_path: str = "") -> PlatformComponents:
    """
    Look up the components for a classified file.

    Args:
        platform: Classified platform
        kind: Classified record kind
        file_path: File being processed, for the error message

    Returns:
        PlatformComponents for (platform, kind)

    Raises:
        ClassificationError: If no components handle this combination
            (itemized exports have no registered schema)
    """
    components = COMPONENTS.get((platform, kind))
    if components is None:
        raise ClassificationError(
            file_path,
            f"No processing components registered for {platform.value}/{kind.value}",
        )
    return components


def trax_components() -> list[PlatformComponents]:
    """Transaction-export components for every platform, in enum order."""
    return [COMPONENTS[(platform, RecordKind.TRAX)] for platform in Platform]
