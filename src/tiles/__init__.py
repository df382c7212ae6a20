"""Tile sources and fetching.

This module provides:
- TileFetcher: single-attempt concurrent tile download and decoding
- load_tile_sources / get_tile_source: read-only table of tile sources
"""

from tiles.fetcher import TileFetcher, decode_tile
from tiles.sources import (
    BUILTIN_TILE_SOURCES,
    default_tile_sources,
    get_tile_source,
    load_tile_sources,
    parse_tile_sources,
)

__all__ = [
    'BUILTIN_TILE_SOURCES',
    'TileFetcher',
    'decode_tile',
    'default_tile_sources',
    'get_tile_source',
    'load_tile_sources',
    'parse_tile_sources',
]
