"""Shared utilities and helpers."""
from shared.diagnostics import estimate_raster_mb, log_memory_usage, raster_fits_in_memory
from shared.progress import (
    CancelToken,
    EventCancelToken,
    NeverCancelToken,
    TileProgress,
)

__all__ = [
    'CancelToken',
    'EventCancelToken',
    'NeverCancelToken',
    'TileProgress',
    'estimate_raster_mb',
    'log_memory_usage',
    'raster_fits_in_memory',
]
