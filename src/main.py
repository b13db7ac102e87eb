"""Command-line entry point: render one viewport to a PNG file."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path

from domain.models import Viewport
from domain.settings import load_settings, save_settings
from geo.tile_math import GeoPoint
from render.compose import save_png
from render.map_renderer import render_map
from shared.constants import (
    DEFAULT_CENTER_LAT,
    DEFAULT_CENTER_LON,
    DEFAULT_HEIGHT_PX,
    DEFAULT_WIDTH_PX,
    DEFAULT_ZOOM,
    LOG_FORMAT,
)
from shared.diagnostics import log_thread_status
from shared.errors import MapRenderError

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    """Configure application logging to stdout and an optional file."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(log_file), encoding='utf-8'))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='MapRender - сборка карты из тайлов OpenStreetMap'
    )
    parser.add_argument('--width', type=int, default=DEFAULT_WIDTH_PX, help='Ширина (px)')
    parser.add_argument('--height', type=int, default=DEFAULT_HEIGHT_PX, help='Высота (px)')
    parser.add_argument('--lon', type=float, default=DEFAULT_CENTER_LON, help='Долгота центра')
    parser.add_argument('--lat', type=float, default=DEFAULT_CENTER_LAT, help='Широта центра')
    parser.add_argument('--zoom', type=int, default=DEFAULT_ZOOM, help='Уровень zoom')
    parser.add_argument('--config', type=Path, help='TOML файл настроек')
    parser.add_argument('--cache-dir', help='Каталог кэша тайлов')
    parser.add_argument('--output', '-o', help='Путь к итоговому PNG')
    parser.add_argument('--concurrency', type=int, help='Параллельных загрузок')
    parser.add_argument(
        '--progress',
        dest='show_progress',
        action='store_true',
        default=None,
        help='Показывать прогресс загрузки',
    )
    parser.add_argument(
        '--no-progress',
        dest='show_progress',
        action='store_false',
        help='Не показывать прогресс загрузки',
    )
    parser.add_argument(
        '--save-config', type=Path, help='Сохранить итоговые настройки в TOML и выйти'
    )
    parser.add_argument('--log-file', type=Path, help='Дополнительно писать лог в файл')
    parser.add_argument('-v', '--verbose', action='store_true', help='Подробный лог')
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main application entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    try:
        settings = load_settings(
            args.config,
            cache_dir=args.cache_dir,
            output_path=args.output,
            concurrency=args.concurrency,
            show_progress=args.show_progress,
        )
        viewport = Viewport.build(
            args.width, args.height, GeoPoint(args.lon, args.lat), args.zoom
        )
        settings.check_viewport(viewport)
    except (MapRenderError, ValueError, FileNotFoundError) as e:
        logger.error('Invalid arguments: %s', e)
        return 2

    if args.save_config is not None:
        try:
            save_settings(settings, args.save_config)
        except OSError as e:
            logger.error('Cannot write config: %s', e)
            return 1
        logger.info('Settings saved to %s', args.save_config)
        return 0

    started = time.monotonic()
    try:
        result = asyncio.run(render_map(viewport, settings))
        out = save_png(result.image, settings.output_path)
    except MapRenderError as e:
        logger.error('Render failed: %s', e)
        log_thread_status('after failed render')
        return 1
    except OSError as e:
        logger.error('Cannot write output: %s', e)
        return 1
    elapsed = time.monotonic() - started

    logger.info('Map saved to %s', out)
    print(f'{elapsed:.3f}')
    print(result.fetches)
    return 0


if __name__ == '__main__':
    sys.exit(main())
