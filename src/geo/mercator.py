"""
Web Mercator (slippy map) math: geographic coordinates <-> XYZ tile indices.

Pure functions, no state. ``point_to_tile`` is the raw projection and is
undefined at the poles; ``build_tile_grid`` clamps latitudes into the
Mercator-safe range before projecting.
"""

from __future__ import annotations

import math

from domain.models import BoundingBox, GeoPoint, TileGrid, TileIndex, TileSourceConfig
from shared.constants import (
    DEFAULT_SUBDOMAIN,
    MERCATOR_MAX_LAT_DEG,
    RETINA_SUFFIX,
    WORLD_LNG_HALF_SPAN_DEG,
    WORLD_LNG_SPAN_DEG,
)


def _tile_xy(lat_deg: float, lng_deg: float, zoom: int) -> tuple[int, int]:
    n = 2**zoom
    lat_rad = math.radians(lat_deg)
    x = math.floor(n * (lng_deg + WORLD_LNG_HALF_SPAN_DEG) / WORLD_LNG_SPAN_DEG)
    merc = math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad))
    y = math.floor(n * (1.0 - merc / math.pi) / 2.0)
    return x, y


def point_to_tile(point: GeoPoint, zoom: int) -> TileIndex:
    """
    Возвращает индекс XYZ-тайла, содержащего точку, на заданном зуме.

    y считается через log(tan(φ) + sec(φ)), т.е. asinh(tan(φ)).
    При |lat| = 90° результат не определён: вызывающий код обязан
    ограничить широту заранее.
    """
    x, y = _tile_xy(point.latitude, point.longitude, zoom)
    return TileIndex(x=x, y=y, z=zoom)


def tile_to_point(tile: TileIndex) -> GeoPoint:
    """Обратное преобразование: северо-западный угол тайла -> WGS84."""
    n = 2**tile.z
    lng = tile.x / n * WORLD_LNG_SPAN_DEG - WORLD_LNG_HALF_SPAN_DEG
    lat = math.degrees(math.atan(math.sinh(math.pi * (1.0 - 2.0 * tile.y / n))))
    return GeoPoint(latitude=lat, longitude=lng)


def tile_span_deg(zoom: int) -> float:
    """Angular width of one tile in degrees of longitude."""
    return WORLD_LNG_SPAN_DEG / 2**zoom


def clamp_latitude(lat_deg: float) -> float:
    return max(-MERCATOR_MAX_LAT_DEG, min(MERCATOR_MAX_LAT_DEG, lat_deg))


def _safe_tile(point: GeoPoint, zoom: int) -> tuple[int, int]:
    # lon = 180 и широта на границе проекции дают индекс n: прижимаем к n - 1
    n = 2**zoom
    x, y = _tile_xy(clamp_latitude(point.latitude), point.longitude, zoom)
    return max(0, min(n - 1, x)), max(0, min(n - 1, y))


def build_tile_grid(box: BoundingBox, zoom: int) -> TileGrid:
    """
    Строит прямоугольник тайлов по двум углам области.

    Порядок углов не важен: берутся min/max по каждой оси. Если оба угла
    попадают в один тайл, получается сетка 1x1.
    """
    x1, y1 = _safe_tile(box.north_west, zoom)
    x2, y2 = _safe_tile(box.south_east, zoom)
    return TileGrid(
        min_x=min(x1, x2),
        max_x=max(x1, x2),
        min_y=min(y1, y2),
        max_y=max(y1, y2),
        zoom=zoom,
    )


def tile_url(
    tile: TileIndex,
    source: TileSourceConfig,
    *,
    subdomain: str = DEFAULT_SUBDOMAIN,
    retina: str = RETINA_SUFFIX,
) -> str:
    """Подставляет z/x/y, поддомен {s} и суффикс {r} в шаблон источника."""
    return (
        source.url_template.replace('{z}', str(tile.z))
        .replace('{x}', str(tile.x))
        .replace('{y}', str(tile.y))
        .replace('{s}', subdomain)
        .replace('{r}', retina)
    )
