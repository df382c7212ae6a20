import sys
import threading
from enum import Enum
from pathlib import Path

# Базовый размер тайла Web Mercator (пикселей)
TILE_SIZE = 256

# Допустимый диапазон уровней приближения (ограничение интерфейса выбора)
MIN_ZOOM = 1
MAX_ZOOM = 19
DEFAULT_ZOOM = 15

# Предельная широта Web Mercator (градусы); полюса уходят в бесконечность
MERCATOR_MAX_LAT_DEG = 85.0511287798

# --- Константы Web Mercator и XYZ
WORLD_LNG_SPAN_DEG = 360.0
WORLD_LNG_HALF_SPAN_DEG = 180.0

# Поддомен по умолчанию для шаблонов с балансировкой {s}
DEFAULT_SUBDOMAIN = 'a'
# Суффикс ретина-тайлов {r}: всегда пустой (только стандартная плотность)
RETINA_SUFFIX = ''

# Ключ источника тайлов по умолчанию
DEFAULT_TILE_SOURCE = 'osm'

# Максимальное число тайлов в одном экспорте (защита от огромных сеток)
MAX_EXPORT_TILES = 1024

# Максимальное число параллельных HTTP-запросов
DOWNLOAD_CONCURRENCY = 16

# --- Параметры сетевых запросов по умолчанию
# Таймаут загрузки одного тайла (секунды)
HTTP_TIMEOUT_DEFAULT = 20.0
# Тайловые серверы OSM требуют осмысленный User-Agent
HTTP_USER_AGENT = 'osm-map-exporter/1.0 (+https://operations.osmfoundation.org/policies/tiles/)'

# Каждые N загруженных тайлов пишем в лог потребление памяти
LOG_MEMORY_EVERY_TILES = 50


class OutputFormat(str, Enum):
    PNG = 'png'
    SVG = 'svg'


# Форматы, которые реально умеем сохранять
SUPPORTED_OUTPUT_FORMATS: frozenset[OutputFormat] = frozenset({OutputFormat.PNG})

# Имя файла результата (уровень приближения кодируется в имени)
EXPORT_FILENAME_TEMPLATE = 'map_export_{zoom}.{ext}'

# Каталоги по умолчанию
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
TILE_SOURCES_FILE = PROJECT_ROOT / 'configs' / 'tile_sources.toml'
DEFAULT_OUTPUT_DIR = Path.home() / 'maps'

# Дублировать лог в файл
LOG_TO_FILE = True
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class SingleLineRenderer:
    """Потокобезопасный рендерер для вывода в одну строку."""

    def __init__(self, *, single_line: bool = True) -> None:
        self.single_line = single_line
        self._last_len = 0
        self._lock = threading.Lock()

    def clear_line(self) -> None:
        """Полностью очистить текущую строку прогресса."""
        with self._lock:
            if self.single_line and self._last_len > 0:
                sys.stdout.write('\r' + ' ' * self._last_len + '\r')
                sys.stdout.flush()
                self._last_len = 0

    def write_line(self, msg: str) -> None:
        """Перерисовать текущую строку прогресса."""
        with self._lock:
            if self.single_line:
                pad = max(0, self._last_len - len(msg))
                sys.stdout.write('\r' + msg + (' ' * pad))
            else:
                sys.stdout.write('\r' + msg + '\n')
            sys.stdout.flush()
            self._last_len = len(msg)


# Экземпляр по умолчанию (можно передать свой при создании классов)
DEFAULT_WRITER = SingleLineRenderer()
