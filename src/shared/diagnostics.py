"""
Resource diagnostics for exports.

The output raster is allocated in full before the first tile arrives, so
its size is compared with free memory up front and resource usage is
logged around the download phase.
"""

import logging
import threading

import psutil

logger = logging.getLogger(__name__)

# RGB, один байт на канал
RASTER_BYTES_PER_PIXEL = 3
_MB = 1024 * 1024


def memory_snapshot() -> dict[str, float]:
    """RSS процесса и доступная память системы (МБ); пусто, если psutil не смог."""
    try:
        rss = psutil.Process().memory_info().rss
        available = psutil.virtual_memory().available
    except psutil.Error as e:
        logger.debug('psutil memory query failed: %s', e)
        return {}
    return {'rss_mb': round(rss / _MB, 1), 'available_mb': round(available / _MB, 1)}


def thread_snapshot() -> dict[str, int]:
    snap = {'python_threads': threading.active_count()}
    try:
        snap['os_threads'] = psutil.Process().num_threads()
    except psutil.Error as e:
        logger.debug('psutil thread query failed: %s', e)
    return snap


def estimate_raster_mb(width_px: int, height_px: int) -> float:
    """Оценка объёма буфера результата (МБ) до его выделения."""
    return width_px * height_px * RASTER_BYTES_PER_PIXEL / _MB


def raster_fits_in_memory(width_px: int, height_px: int) -> bool:
    """
    True, если буфер заданного размера помещается в доступную память.

    Когда объём свободной памяти неизвестен, считаем, что помещается.
    """
    available = memory_snapshot().get('available_mb')
    if available is None:
        return True
    return estimate_raster_mb(width_px, height_px) < available


def log_memory_usage(stage: str) -> None:
    snap = memory_snapshot()
    logger.info(
        'Memory [%s]: rss=%s MB, available=%s MB',
        stage,
        snap.get('rss_mb', '?'),
        snap.get('available_mb', '?'),
    )


def log_thread_status(stage: str) -> None:
    snap = thread_snapshot()
    logger.info(
        'Threads [%s]: python=%d, os=%s',
        stage,
        snap['python_threads'],
        snap.get('os_threads', '?'),
    )
