"""Static table of tile sources.

The table is built once (built-in entries, optionally overridden by a TOML
file) and handed out as a read-only mapping. The selected
``TileSourceConfig`` is passed explicitly into the export service.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING

import tomlkit

from domain.errors import UnknownTileSource
from domain.models import TileSourceConfig
from shared.constants import TILE_SOURCES_FILE

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

_OSM_ATTRIBUTION = (
    '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> '
    'contributors'
)
_CARTO_ATTRIBUTION = (
    f'{_OSM_ATTRIBUTION} &copy; <a href="https://carto.com/attributions">CARTO</a>'
)

BUILTIN_TILE_SOURCES: dict[str, TileSourceConfig] = {
    'osm': TileSourceConfig(
        url_template='https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png',
        attribution=_OSM_ATTRIBUTION,
        display_name='OpenStreetMap Standard',
    ),
    'cartoLight': TileSourceConfig(
        url_template='https://{s}.basemaps.cartocdn.com/light_all/{z}/{x}/{y}{r}.png',
        attribution=_CARTO_ATTRIBUTION,
        display_name='CartoDB Light',
    ),
    'cartoDark': TileSourceConfig(
        url_template='https://{s}.basemaps.cartocdn.com/dark_all/{z}/{x}/{y}{r}.png',
        attribution=_CARTO_ATTRIBUTION,
        display_name='CartoDB Dark',
    ),
}


def parse_tile_sources(text: str) -> dict[str, TileSourceConfig]:
    """Разбирает TOML с таблицами источников: [key] url_template/attribution/display_name."""
    data = tomlkit.parse(text).unwrap()
    sources: dict[str, TileSourceConfig] = {}
    for key, table in data.items():
        if not isinstance(table, dict):
            msg = f'Источник {key!r} должен быть таблицей TOML'
            raise ValueError(msg)
        sources[key] = TileSourceConfig.model_validate(table)
    return sources


def load_tile_sources(path: str | Path | None = None) -> Mapping[str, TileSourceConfig]:
    """
    Загружает таблицу источников тайлов.

    Встроенные источники дополняются (и переопределяются) записями из TOML,
    если файл существует. Результат доступен только для чтения.
    """
    sources = dict(BUILTIN_TILE_SOURCES)
    p = Path(path) if path is not None else TILE_SOURCES_FILE
    if p.exists():
        loaded = parse_tile_sources(p.read_text(encoding='utf-8'))
        sources.update(loaded)
        logger.info('Loaded %d tile sources from %s', len(loaded), p)
    elif path is not None:
        msg = f'Файл источников тайлов не найден: {p}'
        raise FileNotFoundError(msg)
    return MappingProxyType(sources)


@lru_cache(maxsize=1)
def default_tile_sources() -> Mapping[str, TileSourceConfig]:
    """Process-wide table, loaded on first use and never mutated."""
    return load_tile_sources()


def get_tile_source(
    key: str,
    sources: Mapping[str, TileSourceConfig] | None = None,
) -> TileSourceConfig:
    table = default_tile_sources() if sources is None else sources
    try:
        return table[key]
    except KeyError:
        raise UnknownTileSource(key) from None
