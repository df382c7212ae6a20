"""
Загрузка XYZ-тайлов.

Каждый тайл запрашивается ровно один раз, без повторов. Любая ошибка
(сеть, таймаут, HTTP-статус, битое изображение, неверный размер)
превращается в TileFetchFailure на границе загрузки одного тайла.
"""

from __future__ import annotations

import asyncio
import logging
from http import HTTPStatus
from io import BytesIO
from typing import TYPE_CHECKING

import aiohttp
from PIL import Image

from domain.errors import TileFetchFailure
from geo.mercator import tile_url
from shared.constants import (
    DEFAULT_SUBDOMAIN,
    DOWNLOAD_CONCURRENCY,
    HTTP_TIMEOUT_DEFAULT,
    LOG_MEMORY_EVERY_TILES,
    TILE_SIZE,
)
from shared.diagnostics import log_memory_usage

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from domain.models import TileIndex, TileSourceConfig

logger = logging.getLogger(__name__)


def decode_tile(data: bytes, *, tile_size: int = TILE_SIZE) -> Image.Image:
    """
    Декодирует тайл в PIL.Image (RGB).

    Raises:
        ValueError: если данные не являются изображением или размер тайла
            отличается от tile_size x tile_size (масштабирование не выполняем).
    """
    try:
        with Image.open(BytesIO(data)) as raw:
            # Размер известен из заголовка: пиксели чужого размера не декодируем
            if raw.size != (tile_size, tile_size):
                w, h = raw.size
                msg = f'неожиданный размер тайла {w}x{h}, ожидался {tile_size}x{tile_size}'
                raise ValueError(msg)
            raw.load()
            return raw.convert('RGB')
    except (OSError, Image.DecompressionBombError) as e:
        msg = f'повреждённое изображение ({e})'
        raise ValueError(msg) from e


class TileFetcher:
    def __init__(
        self,
        client: aiohttp.ClientSession,
        source: TileSourceConfig,
        *,
        tile_size: int = TILE_SIZE,
        timeout_s: float = HTTP_TIMEOUT_DEFAULT,
        concurrency: int = DOWNLOAD_CONCURRENCY,
        subdomain: str = DEFAULT_SUBDOMAIN,
    ):
        self.client = client
        self.source = source
        self.tile_size = tile_size
        self.timeout_s = timeout_s
        self.subdomain = subdomain
        self._sem = asyncio.Semaphore(max(1, concurrency))
        self._stats_downloads = 0
        self._stats_errors = 0

    @property
    def stats(self) -> dict[str, int]:
        return {'downloads': self._stats_downloads, 'errors': self._stats_errors}

    def url_for(self, tile: TileIndex) -> str:
        return tile_url(tile, self.source, subdomain=self.subdomain)

    async def fetch_tile(self, tile: TileIndex) -> Image.Image:
        """
        Загружает и декодирует один тайл.

        Raises:
            TileFetchFailure: при любой ошибке загрузки или декодирования.
        """
        url = self.url_for(tile)
        timeout = aiohttp.ClientTimeout(total=self.timeout_s)
        try:
            async with self._sem, self.client.get(url, timeout=timeout) as resp:
                if resp.status != HTTPStatus.OK:
                    reason = f'HTTP {resp.status}'
                    raise TileFetchFailure(tile, url, reason)
                data = await resp.read()
        except asyncio.TimeoutError as e:
            raise TileFetchFailure(tile, url, f'таймаут {self.timeout_s:g} с') from e
        except aiohttp.ClientError as e:
            raise TileFetchFailure(tile, url, f'{type(e).__name__}: {e}') from e

        try:
            img = decode_tile(data, tile_size=self.tile_size)
        except ValueError as e:
            raise TileFetchFailure(tile, url, str(e)) from e
        self._stats_downloads += 1
        return img

    async def fetch_many(
        self,
        tiles: Iterable[TileIndex],
        *,
        on_tile: Callable[[TileIndex, Image.Image], None],
        on_progress: Callable[[bool], Awaitable[None]] | None = None,
    ) -> list[TileFetchFailure]:
        """
        Fetch all tiles concurrently and hand each decoded one to ``on_tile``.

        Every tile settles independently: failures are collected and
        returned, never raised, so one bad tile does not stop the others.
        """
        failures: list[TileFetchFailure] = []
        settled = 0

        async def _worker(tile: TileIndex) -> None:
            nonlocal settled
            ok = True
            try:
                img = await self.fetch_tile(tile)
            except TileFetchFailure as e:
                ok = False
                self._stats_errors += 1
                logger.warning('%s (%s)', e, e.url)
                failures.append(e)
            else:
                try:
                    on_tile(tile, img)
                finally:
                    img.close()
            settled += 1
            if settled % LOG_MEMORY_EVERY_TILES == 0:
                log_memory_usage(f'{settled} tiles settled')
            if on_progress is not None:
                await on_progress(ok)

        await asyncio.gather(*(_worker(t) for t in tiles))
        return failures
