"""Domain layer - business models, errors and profiles."""
from domain.errors import (
    ExportCancelled,
    ExportError,
    GridTooLarge,
    InvalidSelection,
    InvalidZoom,
    PartialTileFailure,
    TileFetchFailure,
    UnknownTileSource,
    UnsupportedFormat,
)
from domain.models import (
    BoundingBox,
    EncodedImage,
    ExportSettings,
    GeoPoint,
    TileGrid,
    TileIndex,
    TileSourceConfig,
)
from domain.profiles import load_settings, save_settings

__all__ = [
    'BoundingBox',
    'EncodedImage',
    'ExportCancelled',
    'ExportError',
    'ExportSettings',
    'GeoPoint',
    'GridTooLarge',
    'InvalidSelection',
    'InvalidZoom',
    'PartialTileFailure',
    'TileFetchFailure',
    'TileGrid',
    'TileIndex',
    'TileSourceConfig',
    'UnknownTileSource',
    'UnsupportedFormat',
    'load_settings',
    'save_settings',
]
