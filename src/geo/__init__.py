"""Geo module - Web Mercator tile math."""

from .mercator import (
    build_tile_grid,
    clamp_latitude,
    point_to_tile,
    tile_span_deg,
    tile_to_point,
    tile_url,
)

__all__ = [
    'build_tile_grid',
    'clamp_latitude',
    'point_to_tile',
    'tile_span_deg',
    'tile_to_point',
    'tile_url',
]
