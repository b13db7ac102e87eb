"""Tile caching and loading.

This module provides:
- TileCache: memory + directory tile cache
- TileFetcher: HTTP tile downloader with bounded concurrency
- plan_tile_jobs: grid cells resolved to wrapped tiles and paste offsets
- run_tiles / InflightRegistry: fail-fast task fan-out and duplicate collapse
"""

from tiles.cache import CacheStats, TileCache
from tiles.coverage import TileJob, distinct_keys, plan_tile_jobs
from tiles.executor import InflightRegistry, run_tiles
from tiles.fetcher import TileFetcher

__all__ = [
    'CacheStats',
    'InflightRegistry',
    'TileCache',
    'TileFetcher',
    'TileJob',
    'distinct_keys',
    'plan_tile_jobs',
    'run_tiles',
]
