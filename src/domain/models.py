from __future__ import annotations

from collections.abc import Iterator

from pydantic import BaseModel, Field, field_validator, model_validator

from shared.constants import (
    DEFAULT_SUBDOMAIN,
    DOWNLOAD_CONCURRENCY,
    HTTP_TIMEOUT_DEFAULT,
    HTTP_USER_AGENT,
    MAX_EXPORT_TILES,
    TILE_SIZE,
    OutputFormat,
)


class GeoPoint(BaseModel):
    """Географическая точка WGS84 (градусы)."""

    model_config = {'frozen': True}

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)


class BoundingBox(BaseModel):
    """
    Выделенная область, заданная северо-западным и юго-восточным углами.

    Порядок широт обязателен; порядок долгот нет: если западная долгота больше
    восточной, область пересекает антимеридиан (см. crosses_antimeridian).
    """

    model_config = {'frozen': True}

    north_west: GeoPoint
    south_east: GeoPoint

    @model_validator(mode='after')
    def _check_latitude_order(self) -> BoundingBox:
        if self.north_west.latitude < self.south_east.latitude:
            msg = (
                'Северо-западный угол должен быть не южнее юго-восточного: '
                f'{self.north_west.latitude} < {self.south_east.latitude}'
            )
            raise ValueError(msg)
        return self

    @classmethod
    def from_corners(cls, a: GeoPoint, b: GeoPoint) -> BoundingBox:
        """Build a box from any two opposite corners."""
        return cls(
            north_west=GeoPoint(
                latitude=max(a.latitude, b.latitude),
                longitude=min(a.longitude, b.longitude),
            ),
            south_east=GeoPoint(
                latitude=min(a.latitude, b.latitude),
                longitude=max(a.longitude, b.longitude),
            ),
        )

    @property
    def crosses_antimeridian(self) -> bool:
        return self.north_west.longitude > self.south_east.longitude


class TileIndex(BaseModel):
    model_config = {'frozen': True}

    x: int
    y: int
    z: int = Field(ge=0)

    @model_validator(mode='after')
    def _check_range(self) -> TileIndex:
        n = 2**self.z
        if not (0 <= self.x < n and 0 <= self.y < n):
            msg = f'Индекс тайла вне диапазона [0, {n}): x={self.x}, y={self.y}'
            raise ValueError(msg)
        return self


class TileGrid(BaseModel):
    """Прямоугольник тайлов, покрывающий выделенную область (границы включительно)."""

    model_config = {'frozen': True}

    min_x: int
    max_x: int
    min_y: int
    max_y: int
    zoom: int

    @model_validator(mode='after')
    def _check_order(self) -> TileGrid:
        if self.min_x > self.max_x or self.min_y > self.max_y:
            msg = (
                f'Пустая сетка тайлов: x=[{self.min_x}, {self.max_x}], '
                f'y=[{self.min_y}, {self.max_y}]'
            )
            raise ValueError(msg)
        return self

    @property
    def cols(self) -> int:
        return self.max_x - self.min_x + 1

    @property
    def rows(self) -> int:
        return self.max_y - self.min_y + 1

    @property
    def tile_count(self) -> int:
        return self.cols * self.rows

    def raster_size(self, tile_size: int = TILE_SIZE) -> tuple[int, int]:
        """(width, height) of the composited image in pixels."""
        return self.cols * tile_size, self.rows * tile_size

    def tiles(self) -> Iterator[TileIndex]:
        """Yield every tile of the grid row by row."""
        for y in range(self.min_y, self.max_y + 1):
            for x in range(self.min_x, self.max_x + 1):
                yield TileIndex(x=x, y=y, z=self.zoom)


class TileSourceConfig(BaseModel):
    """Шаблон источника тайлов с плейсхолдерами {z}/{x}/{y}, опционально {s} и {r}."""

    model_config = {'frozen': True}

    url_template: str
    attribution: str = ''
    display_name: str

    @field_validator('url_template')
    @classmethod
    def _check_placeholders(cls, v: str) -> str:
        missing = [p for p in ('{z}', '{x}', '{y}') if p not in v]
        if missing:
            msg = f'В шаблоне URL нет плейсхолдеров: {", ".join(missing)}'
            raise ValueError(msg)
        return v


class EncodedImage(BaseModel):
    """Готовое закодированное изображение экспорта."""

    model_config = {'frozen': True}

    data: bytes
    image_format: OutputFormat
    width: int
    height: int
    zoom: int
    filename: str


class ExportSettings(BaseModel):
    """Настройки экспорта, которые можно переопределить профилем TOML."""

    model_config = {
        'extra': 'ignore',  # игнорировать лишние поля из профилей
    }

    tile_size: int = TILE_SIZE
    # Параллельность загрузки тайлов
    concurrency: int = DOWNLOAD_CONCURRENCY
    # Таймаут одного тайла (секунды)
    tile_timeout_s: float = HTTP_TIMEOUT_DEFAULT
    # Предел числа тайлов в одном экспорте
    max_tiles: int = MAX_EXPORT_TILES
    user_agent: str = HTTP_USER_AGENT
    subdomain: str = DEFAULT_SUBDOMAIN
    output_format: OutputFormat = OutputFormat.PNG

    @field_validator('tile_size', 'concurrency', 'max_tiles')
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        if v < 1:
            msg = 'Значение должно быть положительным'
            raise ValueError(msg)
        return v

    @field_validator('tile_timeout_s')
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            msg = 'Таймаут должен быть больше нуля'
            raise ValueError(msg)
        return v
