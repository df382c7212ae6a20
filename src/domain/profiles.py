import logging
from pathlib import Path

import tomlkit

from domain.models import ExportSettings

logger = logging.getLogger(__name__)


def load_settings(path: str | Path | None = None) -> ExportSettings:
    """
    Загрузка и валидация профиля TOML -> ExportSettings.

    Без пути возвращает настройки по умолчанию.
    """
    if path is None:
        return ExportSettings()
    p = Path(path)
    if not p.exists():
        msg = f'Профиль не найден: {p}'
        raise FileNotFoundError(msg)
    data = tomlkit.parse(p.read_text(encoding='utf-8')).unwrap()
    settings = ExportSettings.model_validate(data)
    logger.info(
        'Profile %s loaded: tile_size=%d, concurrency=%d, max_tiles=%d',
        p.name,
        settings.tile_size,
        settings.concurrency,
        settings.max_tiles,
    )
    return settings


def save_settings(path: str | Path, settings: ExportSettings) -> Path:
    """Сохранение профиля в TOML (без атомарности и бэкапов)."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    text = tomlkit.dumps(settings.model_dump(mode='json'))
    p.write_text(text, encoding='utf-8')
    return p
