"""Ошибки экспорта карты.

Все ошибки экспорта наследуются от ``ExportError``; ошибки отдельных тайлов
(``TileFetchFailure``) собираются на границе загрузки и наружу выходят только
в составе ``PartialTileFailure``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from domain.models import TileIndex

# Сколько индексов тайлов перечислять в тексте ошибки
_MAX_LISTED_TILES = 10


class ExportError(RuntimeError):
    """Base class for every error an export can end with."""


class InvalidSelection(ExportError):
    """No usable region was selected."""


class InvalidZoom(ExportError, ValueError):
    """Zoom level outside of the supported range."""


class UnsupportedFormat(ExportError, NotImplementedError):
    """Requested output format is recognised but not implemented, or unknown."""

    def __init__(self, output_format: str) -> None:
        self.output_format = output_format
        super().__init__(
            f'Формат экспорта {output_format!r} не поддерживается; используйте PNG'
        )


class GridTooLarge(ExportError):
    """Tile grid exceeds the safety bound; nothing was requested."""

    def __init__(self, tile_count: int, max_tiles: int) -> None:
        self.tile_count = tile_count
        self.max_tiles = max_tiles
        super().__init__(
            f'Слишком большая область: {tile_count} тайлов при лимите {max_tiles}. '
            'Уменьшите область или уровень приближения.'
        )


class ExportCancelled(ExportError):
    """Export was aborted through its cancel token."""


class UnknownTileSource(ExportError, KeyError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f'Источник тайлов не найден: {key!r}')

    def __str__(self) -> str:
        return str(self.args[0])


class TileFetchFailure(ExportError):
    """One tile could not be retrieved or decoded."""

    def __init__(self, tile: TileIndex, url: str, reason: str) -> None:
        self.tile = tile
        self.url = url
        self.reason = reason
        super().__init__(
            f'Не удалось загрузить тайл z/x/y={tile.z}/{tile.x}/{tile.y}: {reason}'
        )


class PartialTileFailure(ExportError):
    """One or more tiles failed, so no image was produced."""

    def __init__(self, failures: Iterable[TileFetchFailure], total: int) -> None:
        self.failures = sorted(failures, key=lambda f: (f.tile.y, f.tile.x))
        self.total = total
        listed = ', '.join(
            f'{f.tile.z}/{f.tile.x}/{f.tile.y}'
            for f in self.failures[:_MAX_LISTED_TILES]
        )
        more = len(self.failures) - _MAX_LISTED_TILES
        if more > 0:
            listed += f' (+{more})'
        super().__init__(
            f'Не загружено {len(self.failures)} из {total} тайлов: {listed}'
        )

    @property
    def failed_tiles(self) -> list[TileIndex]:
        return [f.tile for f in self.failures]
