"""
Прогресс загрузки тайлов и токены отмены.

Внешняя оболочка (CLI или GUI) может подписаться на прогресс через
set_progress_callback и отменить экспорт через CancelToken.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from shared.constants import DEFAULT_WRITER, SingleLineRenderer

logger = logging.getLogger(__name__)

# (settled, total, failed)
ProgressCallback = Callable[[int, int, int], None]


class _CbStore:
    progress: ProgressCallback | None = None


def set_progress_callback(cb: ProgressCallback | None) -> None:
    """Подписка внешней оболочки на прогресс: cb(settled, total, failed)."""
    _CbStore.progress = cb


def cleanup_all_progress_resources() -> None:
    _CbStore.progress = None


@runtime_checkable
class CancelToken(Protocol):
    """Признак отмены, который опрашивает экспорт во время загрузки тайлов."""

    def is_cancelled(self) -> bool: ...


class NeverCancelToken:
    """Токен, который никогда не срабатывает (значение по умолчанию)."""

    def is_cancelled(self) -> bool:
        return False


class EventCancelToken:
    """Токен отмены поверх любого объекта с методом ``is_set()``.

    Подходит и ``threading.Event``, и ``asyncio.Event``: внешняя оболочка
    выставляет событие, экспорт замечает это при следующем опросе.
    """

    def __init__(self, event) -> None:
        self._event = event

    def is_cancelled(self) -> bool:
        return bool(self._event.is_set())

    def cancel(self) -> None:
        self._event.set()


def format_eta(seconds: float | None) -> str:
    """ММ:СС или ЧЧ:ММ:СС; '--:--' пока скорость неизвестна."""
    if seconds is None:
        return '--:--'
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f'{hours:02d}:{minutes:02d}:{secs:02d}'
    return f'{minutes:02d}:{secs:02d}'


class TileProgress:
    """Счётчик завершённых тайлов с выводом в одну строку консоли."""

    BAR_WIDTH = 24

    def __init__(
        self,
        total: int,
        label: str = 'Тайлы',
        writer: SingleLineRenderer | None = None,
    ) -> None:
        self.total = max(1, int(total))
        self.label = label
        self.settled = 0
        self.failed = 0
        self._started = time.monotonic()
        self._writer = writer or DEFAULT_WRITER
        self._lock = asyncio.Lock()
        self._publish()

    @property
    def rate(self) -> float:
        """Тайлов в секунду с момента старта."""
        return self.settled / max(1e-6, time.monotonic() - self._started)

    def eta_seconds(self) -> float | None:
        rate = self.rate
        if rate <= 0:
            return None
        return (self.total - self.settled) / rate

    def line(self) -> str:
        filled = self.BAR_WIDTH * self.settled // self.total
        bar = '#' * filled + '.' * (self.BAR_WIDTH - filled)
        text = f'{self.label} [{bar}] {self.settled}/{self.total}'
        if self.failed:
            text += f', ошибок: {self.failed}'
        return f'{text} | {self.rate:.1f}/с | осталось {format_eta(self.eta_seconds())}'

    def _publish(self) -> None:
        self._writer.write_line(self.line())
        cb = _CbStore.progress
        if cb is None:
            return
        try:
            cb(self.settled, self.total, self.failed)
        except Exception:
            # Сбой подписчика не должен прерывать загрузку
            logger.debug('Progress callback failed', exc_info=True)

    def advance_sync(self, *, ok: bool = True) -> None:
        self.settled = min(self.total, self.settled + 1)
        if not ok:
            self.failed += 1
        self._publish()

    async def advance(self, ok: bool = True) -> None:
        async with self._lock:
            self.advance_sync(ok=ok)

    def close(self) -> None:
        self._writer.clear_line()
