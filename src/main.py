"""Command-line entry point: export a map region to a PNG file."""

import argparse
import logging
import os
import sys
from pathlib import Path

from domain.errors import ExportError
from domain.models import BoundingBox, GeoPoint
from domain.profiles import load_settings
from services.map_export_service import run_export, save_encoded_image
from shared.constants import (
    DEFAULT_OUTPUT_DIR,
    DEFAULT_TILE_SOURCE,
    DEFAULT_ZOOM,
    LOG_FORMAT,
    LOG_TO_FILE,
)
from tiles.sources import get_tile_source, load_tile_sources

logger = logging.getLogger(__name__)


def setup_logging() -> Path:
    """Configure application logging to stdout and a per-user log file.

    Returns:
        Log directory path.
    """
    local_base = Path(os.getenv('LOCALAPPDATA') or Path.home() / '.local' / 'state') / 'osm-map-exporter'
    log_dir = local_base / 'log'
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if LOG_TO_FILE:
        handlers.append(logging.FileHandler(str(log_dir / 'map_export.log'), encoding='utf-8'))
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, handlers=handlers, force=True)
    return log_dir


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Экспорт области карты из тайлового источника в PNG'
    )
    parser.add_argument('--north', type=float, required=True, help='Широта северной границы')
    parser.add_argument('--west', type=float, required=True, help='Долгота западной границы')
    parser.add_argument('--south', type=float, required=True, help='Широта южной границы')
    parser.add_argument('--east', type=float, required=True, help='Долгота восточной границы')
    parser.add_argument('--zoom', type=int, default=DEFAULT_ZOOM, help='Уровень приближения (1-19)')
    parser.add_argument('--source', default=DEFAULT_TILE_SOURCE, help='Ключ источника тайлов')
    parser.add_argument(
        '--format', default=None, dest='output_format', help='Формат (png); по умолчанию из профиля'
    )
    parser.add_argument('--output-dir', type=Path, default=DEFAULT_OUTPUT_DIR)
    parser.add_argument('--sources-file', type=Path, default=None, help='TOML с источниками')
    parser.add_argument('--profile', type=Path, default=None, help='TOML-профиль настроек')
    parser.add_argument('--no-progress', action='store_true')
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    logger.info('Starting map export')

    try:
        settings = load_settings(args.profile)
        sources = load_tile_sources(args.sources_file) if args.sources_file else None
        source = get_tile_source(args.source, sources)
        box = BoundingBox(
            north_west=GeoPoint(latitude=args.north, longitude=args.west),
            south_east=GeoPoint(latitude=args.south, longitude=args.east),
        )
        image = run_export(
            box,
            args.zoom,
            source,
            output_format=args.output_format,
            settings=settings,
            show_progress=not args.no_progress,
        )
    except ExportError as e:
        logger.error('Export failed: %s', e)
        return 1
    except (ValueError, FileNotFoundError) as e:
        logger.error('Invalid input: %s', e)
        return 2

    path = save_encoded_image(image, args.output_dir)
    print(f'PNG map saved: {path}')
    return 0


if __name__ == '__main__':
    sys.exit(main())
