"""Output raster: a pre-sized RGB buffer filled tile by tile."""

from __future__ import annotations

import logging
from io import BytesIO
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image

from shared.constants import TILE_SIZE, OutputFormat

if TYPE_CHECKING:
    from domain.models import TileGrid, TileIndex

logger = logging.getLogger(__name__)

# Имя формата для PIL.Image.save
_PIL_FORMATS: dict[OutputFormat, str] = {OutputFormat.PNG: 'PNG'}


class OutputRaster:
    """
    Холст результата размером cols*tile_size x rows*tile_size.

    Каждый тайл сетки владеет собственным непересекающимся прямоугольником,
    поэтому запись тайлов возможна в любом порядке и без блокировок.
    """

    def __init__(self, grid: TileGrid, tile_size: int = TILE_SIZE) -> None:
        self.grid = grid
        self.tile_size = tile_size
        self.width, self.height = grid.raster_size(tile_size)
        self._buf: np.ndarray | None = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        self.tiles_written = 0

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def buffer(self) -> np.ndarray:
        if self._buf is None:
            msg = 'Холст уже освобождён'
            raise RuntimeError(msg)
        return self._buf

    def offset_for(self, tile: TileIndex) -> tuple[int, int]:
        """Pixel offset (x, y) of the tile's top-left corner in the raster."""
        if not (
            self.grid.min_x <= tile.x <= self.grid.max_x
            and self.grid.min_y <= tile.y <= self.grid.max_y
        ):
            msg = f'Тайл {tile.x}/{tile.y} вне сетки'
            raise ValueError(msg)
        return (
            (tile.x - self.grid.min_x) * self.tile_size,
            (tile.y - self.grid.min_y) * self.tile_size,
        )

    def place_tile(self, tile: TileIndex, img: Image.Image) -> tuple[int, int]:
        """Копирует тайл в его ячейку без масштабирования; возвращает смещение."""
        ts = self.tile_size
        if img.size != (ts, ts):
            msg = f'Размер тайла {img.size[0]}x{img.size[1]} не равен {ts}x{ts}'
            raise ValueError(msg)
        x0, y0 = self.offset_for(tile)
        arr = np.asarray(img.convert('RGB') if img.mode != 'RGB' else img)
        self.buffer[y0 : y0 + ts, x0 : x0 + ts] = arr
        self.tiles_written += 1
        return x0, y0

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.buffer)

    def encode(self, image_format: OutputFormat = OutputFormat.PNG) -> bytes:
        """Serialize the raster; only formats with a PIL writer are accepted."""
        pil_format = _PIL_FORMATS.get(image_format)
        if pil_format is None:
            msg = f'Нет кодировщика для формата {image_format.value}'
            raise ValueError(msg)
        out = BytesIO()
        with self.to_image() as img:
            img.save(out, format=pil_format, optimize=True)
        data = out.getvalue()
        logger.info(
            'Raster %dx%d encoded as %s: %.1f KB',
            self.width,
            self.height,
            pil_format,
            len(data) / 1024,
        )
        return data

    def discard(self) -> None:
        """Освобождает буфер (после сериализации или при ошибке)."""
        self._buf = None
