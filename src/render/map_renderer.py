"""
Рендер карты по вьюпорту.

Resolves the tile grid, runs one async unit per grid cell (cache lookup,
download on miss, write-through, decode, paste) and returns the stitched
canvas once every unit has finished.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from domain.models import RenderSettings, Viewport
from geo.tile_math import compute_grid
from infrastructure.http.client import make_http_session
from render.compose import encode_png
from render.compositor import Compositor, decode_tile
from shared.diagnostics import log_memory_usage
from shared.errors import RenderTimeout
from shared.progress import ConsoleProgress
from tiles.cache import TileCache
from tiles.coverage import TileJob, distinct_keys, plan_tile_jobs
from tiles.executor import InflightRegistry, run_tiles
from tiles.fetcher import TileFetcher

if TYPE_CHECKING:
    from PIL import Image

    from geo.tile_math import GeoPoint, TileGrid

logger = logging.getLogger(__name__)


@dataclass
class RenderStats:
    """Counters for one render. Never shared between renders."""

    tiles: int = 0
    distinct_tiles: int = 0
    cache_hits: int = 0
    fetches: int = 0
    collapsed: int = 0
    elapsed_s: float = 0.0


@dataclass
class RenderResult:
    image: Image.Image
    grid: TileGrid
    stats: RenderStats

    @property
    def fetches(self) -> int:
        return self.stats.fetches

    def to_png(self) -> bytes:
        return encode_png(self.image)


class MapRenderer:
    """Composes viewport images from a shared tile cache and a tile fetcher."""

    def __init__(
        self,
        cache: TileCache,
        fetcher: TileFetcher,
        *,
        settings: RenderSettings | None = None,
    ) -> None:
        self.cache = cache
        self.fetcher = fetcher
        self.settings = settings or RenderSettings()

    async def render(
        self, width: int, height: int, center: GeoPoint, zoom: int
    ) -> RenderResult:
        """Render ``width`` x ``height`` pixels around ``center`` at ``zoom``."""
        return await self.render_viewport(Viewport.build(width, height, center, zoom))

    async def render_viewport(self, viewport: Viewport) -> RenderResult:
        self.settings.check_viewport(viewport)
        timeout = self.settings.render_timeout_s
        if timeout is None:
            return await self._render(viewport)
        try:
            return await asyncio.wait_for(self._render(viewport), timeout)
        except TimeoutError as e:
            msg = f'Render did not finish within {timeout:.1f}s'
            raise RenderTimeout(msg) from e

    async def _render(self, viewport: Viewport) -> RenderResult:
        started = time.monotonic()
        grid = compute_grid(
            viewport.center, viewport.zoom, viewport.width_px, viewport.height_px
        )
        jobs = plan_tile_jobs(grid, viewport.zoom, ext=self.settings.tile_ext)
        stats = RenderStats(tiles=len(jobs), distinct_tiles=len(distinct_keys(jobs)))
        logger.info(
            'Render %dx%d z%d: grid %dx%d from (%d, %d), offset (%d, %d)',
            viewport.width_px,
            viewport.height_px,
            viewport.zoom,
            grid.x_count,
            grid.y_count,
            grid.x_start,
            grid.y_start,
            grid.x_offset_px,
            grid.y_offset_px,
        )

        compositor = Compositor(viewport.width_px, viewport.height_px)
        inflight: InflightRegistry[bytes] = InflightRegistry(
            enabled=self.settings.dedupe_fetches
        )
        progress = (
            ConsoleProgress(total=len(jobs), label='Tiles')
            if self.settings.show_progress
            else None
        )

        async def load(job: TileJob) -> bytes:
            data = self.cache.lookup(job.key)
            if data is not None:
                stats.cache_hits += 1
                logger.debug('Cache hit %s', job.key)
                return data
            return await inflight.run(job.key, lambda: self._download(job, stats))

        async def process(job: TileJob) -> None:
            data = await load(job)
            await asyncio.to_thread(self._draw, compositor, job, data)

        try:
            await run_tiles(
                jobs,
                process_tile=process,
                progress_step=progress.step if progress is not None else None,
            )
        finally:
            await inflight.cancel_all()
            if progress is not None:
                progress.close()

        image = compositor.finalize()
        stats.collapsed = inflight.collapsed
        stats.elapsed_s = time.monotonic() - started
        logger.info(
            'Rendered %d tiles (%d distinct): %d cache hits, %d fetched, %d collapsed, %.2fs',
            stats.tiles,
            stats.distinct_tiles,
            stats.cache_hits,
            stats.fetches,
            stats.collapsed,
            stats.elapsed_s,
        )
        log_memory_usage('after render')
        return RenderResult(image=image, grid=grid, stats=stats)

    async def _download(self, job: TileJob, stats: RenderStats) -> bytes:
        stats.fetches += 1
        logger.debug('Cache miss %s, downloading', job.key)
        data = await self.fetcher.fetch(job.tile.x, job.tile.y, job.tile.zoom)
        await asyncio.to_thread(self.cache.store, job.key, data)
        return data

    @staticmethod
    def _draw(compositor: Compositor, job: TileJob, data: bytes) -> None:
        image = decode_tile(data, job.tile, mode=compositor.mode)
        try:
            compositor.submit(image, *job.offset)
        finally:
            image.close()


async def render_map(
    viewport: Viewport,
    settings: RenderSettings | None = None,
    *,
    cache: TileCache | None = None,
) -> RenderResult:
    """
    One-shot render: load the cache directory, open an HTTP session, render.

    Pass ``cache`` to reuse an already loaded cache across renders.
    """
    settings = settings or RenderSettings()
    if cache is None:
        cache = TileCache(settings.cache_dir, ext=settings.tile_ext)
        cache.load()
    async with make_http_session(
        user_agent=settings.user_agent,
        timeout_s=settings.http_timeout_s,
        limit=settings.concurrency,
    ) as session:
        fetcher = TileFetcher(
            session,
            url_template=settings.tile_url_template,
            user_agent=settings.user_agent,
            timeout_s=settings.http_timeout_s,
            concurrency=settings.concurrency,
        )
        renderer = MapRenderer(cache, fetcher, settings=settings)
        return await renderer.render_viewport(viewport)
