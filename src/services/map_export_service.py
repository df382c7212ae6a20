"""
Экспорт выделенной области карты в одно растровое изображение.

Поток: область + зум -> сетка тайлов -> конкурентная загрузка ->
запись тайлов в непересекающиеся ячейки холста -> PNG.
Результат «всё или ничего»: при ошибке хотя бы одного тайла изображение
не создаётся.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING

from domain.errors import (
    ExportCancelled,
    GridTooLarge,
    InvalidSelection,
    InvalidZoom,
    PartialTileFailure,
    UnsupportedFormat,
)
from domain.models import EncodedImage, ExportSettings
from geo.mercator import build_tile_grid
from imaging.raster import OutputRaster
from infrastructure.http.client import make_http_session
from shared.constants import (
    EXPORT_FILENAME_TEMPLATE,
    MAX_ZOOM,
    MIN_ZOOM,
    SUPPORTED_OUTPUT_FORMATS,
    OutputFormat,
)
from shared.diagnostics import (
    estimate_raster_mb,
    log_memory_usage,
    log_thread_status,
    raster_fits_in_memory,
)
from shared.progress import CancelToken, NeverCancelToken, TileProgress
from tiles.fetcher import TileFetcher

if TYPE_CHECKING:
    import aiohttp

    from domain.errors import TileFetchFailure
    from domain.models import BoundingBox, TileGrid, TileSourceConfig

logger = logging.getLogger(__name__)

# Период опроса токена отмены во время ожидания тайлов (секунды)
CANCEL_POLL_INTERVAL_S = 0.1


def clamp_zoom(zoom: int) -> int:
    return max(MIN_ZOOM, min(MAX_ZOOM, int(zoom)))


def validate_zoom(zoom: int) -> int:
    # bool - подкласс int, но True не уровень приближения
    valid = isinstance(zoom, int) and not isinstance(zoom, bool)
    if not valid or not (MIN_ZOOM <= zoom <= MAX_ZOOM):
        msg = f'Уровень приближения должен быть в диапазоне [{MIN_ZOOM}, {MAX_ZOOM}]: {zoom!r}'
        raise InvalidZoom(msg)
    return zoom


def resolve_output_format(value: OutputFormat | str) -> OutputFormat:
    """
    Приводит выбор формата к OutputFormat.

    SVG распознаётся, но не реализован; неизвестные форматы тоже
    отклоняются через UnsupportedFormat.
    """
    raw = value.value if isinstance(value, OutputFormat) else str(value).strip().lower()
    try:
        fmt = OutputFormat(raw)
    except ValueError:
        raise UnsupportedFormat(raw) from None
    if fmt not in SUPPORTED_OUTPUT_FORMATS:
        raise UnsupportedFormat(fmt.value)
    return fmt


def export_filename(zoom: int, image_format: OutputFormat = OutputFormat.PNG) -> str:
    return EXPORT_FILENAME_TEMPLATE.format(zoom=zoom, ext=image_format.value)


def check_grid_size(grid: TileGrid, max_tiles: int) -> None:
    if grid.tile_count > max_tiles:
        raise GridTooLarge(grid.tile_count, max_tiles)


async def _await_with_cancel(task: asyncio.Future, cancel: CancelToken):
    """
    Ждёт задачу, периодически проверяя токен отмены.

    Задача отменяется при любом выходе до её завершения: по токену или
    при отмене самого ожидающего (wait_for, task.cancel()).
    """
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=CANCEL_POLL_INTERVAL_S)
            if done:
                return task.result()
            if cancel.is_cancelled():
                msg = 'Экспорт отменён пользователем'
                raise ExportCancelled(msg)
    finally:
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task


async def _fetch_into_raster(
    client: aiohttp.ClientSession,
    grid: TileGrid,
    raster: OutputRaster,
    source: TileSourceConfig,
    settings: ExportSettings,
    cancel: CancelToken,
    *,
    show_progress: bool,
) -> list[TileFetchFailure]:
    fetcher = TileFetcher(
        client,
        source,
        tile_size=raster.tile_size,
        timeout_s=settings.tile_timeout_s,
        concurrency=settings.concurrency,
        subdomain=settings.subdomain,
    )
    progress = (
        TileProgress(total=grid.tile_count, label='Загрузка тайлов')
        if show_progress
        else None
    )
    task = asyncio.ensure_future(
        fetcher.fetch_many(
            grid.tiles(),
            on_tile=raster.place_tile,
            on_progress=progress.advance if progress is not None else None,
        )
    )
    try:
        return await _await_with_cancel(task, cancel)
    finally:
        if progress is not None:
            progress.close()
        logger.info('Tile fetch stats: %s', fetcher.stats)


async def export_region(
    box: BoundingBox | None,
    zoom: int,
    source: TileSourceConfig,
    tile_size: int | None = None,
    *,
    output_format: OutputFormat | str | None = None,
    settings: ExportSettings | None = None,
    client: aiohttp.ClientSession | None = None,
    cancel: CancelToken | None = None,
    show_progress: bool = True,
) -> EncodedImage:
    """
    Export the selected region as one encoded raster image.

    Args:
        box: Selected region; ``None`` means nothing was selected.
        zoom: Zoom level in [MIN_ZOOM, MAX_ZOOM].
        source: Tile source to render from.
        tile_size: Edge of one source tile in pixels; ``settings.tile_size``
            when omitted.
        output_format: ``'png'``; ``'svg'`` is recognised but unsupported.
            ``settings.output_format`` when omitted.
        settings: Concurrency/timeout/limit settings and the defaults above.
        client: Existing HTTP session; a new one is created and closed otherwise.
        cancel: Token polled while tiles are in flight.
        show_progress: Render a console progress bar.

    Raises:
        InvalidSelection, InvalidZoom, UnsupportedFormat, GridTooLarge:
            before any network request.
        PartialTileFailure: one or more tiles failed; no image is produced.
        ExportCancelled: the cancel token fired.

    """
    settings = settings or ExportSettings()
    cancel = cancel or NeverCancelToken()
    if tile_size is None:
        tile_size = settings.tile_size
    if output_format is None:
        output_format = settings.output_format

    if box is None:
        msg = 'Сначала выделите область на карте.'
        raise InvalidSelection(msg)
    if box.crosses_antimeridian:
        msg = (
            'Область пересекает антимеридиан (±180°); '
            'экспортируйте части по обе стороны отдельно.'
        )
        raise InvalidSelection(msg)
    validate_zoom(zoom)
    image_format = resolve_output_format(output_format)

    grid = build_tile_grid(box, zoom)
    check_grid_size(grid, settings.max_tiles)

    width, height = grid.raster_size(tile_size)
    logger.info(
        'Export z=%d: tiles x=[%d..%d] y=[%d..%d] (%dx%d = %d), raster %dx%d (~%.1f MB), source=%s',
        zoom,
        grid.min_x,
        grid.max_x,
        grid.min_y,
        grid.max_y,
        grid.cols,
        grid.rows,
        grid.tile_count,
        width,
        height,
        estimate_raster_mb(width, height),
        source.display_name,
    )

    if cancel.is_cancelled():
        msg = 'Экспорт отменён пользователем'
        raise ExportCancelled(msg)

    if not raster_fits_in_memory(width, height):
        logger.warning(
            'Raster %dx%d (~%.1f MB) may not fit into available memory',
            width,
            height,
            estimate_raster_mb(width, height),
        )

    start = time.monotonic()
    raster = OutputRaster(grid, tile_size)
    log_memory_usage('before tile download')
    try:
        if client is None:
            async with make_http_session(
                user_agent=settings.user_agent, limit=settings.concurrency
            ) as session:
                failures = await _fetch_into_raster(
                    session, grid, raster, source, settings, cancel,
                    show_progress=show_progress,
                )
        else:
            failures = await _fetch_into_raster(
                client, grid, raster, source, settings, cancel,
                show_progress=show_progress,
            )
        log_memory_usage('after all tiles settled')
        log_thread_status('after all tiles settled')

        if failures:
            error = PartialTileFailure(failures, grid.tile_count)
            logger.error('%s', error)
            raise error

        data = raster.encode(image_format)
    finally:
        raster.discard()

    logger.info('Export finished in %.2fs', time.monotonic() - start)
    return EncodedImage(
        data=data,
        image_format=image_format,
        width=width,
        height=height,
        zoom=zoom,
        filename=export_filename(zoom, image_format),
    )


def run_export(
    box: BoundingBox | None,
    zoom: int,
    source: TileSourceConfig,
    tile_size: int | None = None,
    **kwargs,
) -> EncodedImage:
    """Синхронная обёртка для вызова из не-асинхронной оболочки."""
    return asyncio.run(export_region(box, zoom, source, tile_size, **kwargs))


def save_encoded_image(image: EncodedImage, output_dir: str | Path) -> Path:
    """Записывает изображение в каталог под именем image.filename."""
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / image.filename
    path.write_bytes(image.data)
    logger.info('Map saved to %s (%dx%d)', path, image.width, image.height)
    return path
