from __future__ import annotations

import asyncio
import logging
from io import BytesIO

import aiohttp
from PIL import Image, UnidentifiedImageError

from geo.tile_math import TileCoord
from shared.constants import (
    DOWNLOAD_CONCURRENCY,
    HTTP_FORBIDDEN,
    HTTP_NOT_FOUND,
    HTTP_OK,
    HTTP_TIMEOUT_DEFAULT,
    HTTP_UNAUTHORIZED,
    TILE_URL_TEMPLATE,
    USER_AGENT,
)
from shared.errors import FetchError

logger = logging.getLogger(__name__)


class TileFetcher:
    """
    Загрузчик тайлов с ограничением параллелизма.

    One GET per call, no retries. Returns the raw encoded tile; decoding to
    pixels is left to the compositor and persisting to the cache is left to
    the caller.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        url_template: str = TILE_URL_TEMPLATE,
        user_agent: str = USER_AGENT,
        timeout_s: float = HTTP_TIMEOUT_DEFAULT,
        concurrency: int = DOWNLOAD_CONCURRENCY,
    ):
        self.session = session
        self.url_template = url_template
        self.user_agent = user_agent
        self.timeout_s = timeout_s
        self.semaphore = asyncio.Semaphore(max(1, int(concurrency)))
        self._stats_downloads = 0
        self._stats_errors = 0

    @property
    def stats(self) -> dict:
        return {
            'downloads': self._stats_downloads,
            'errors': self._stats_errors,
        }

    def tile_url(self, x: int, y: int, zoom: int) -> str:
        return self.url_template.format(z=zoom, x=x, y=y)

    async def fetch(self, x: int, y: int, zoom: int) -> bytes:
        """
        Загружает один тайл и возвращает его байты.

        Raises:
            FetchError: сетевая ошибка, HTTP-статус не 200 или тело не является изображением.
        """
        tile = TileCoord(x, y, zoom)
        try:
            async with self.semaphore:
                data = await self._get(tile)
        except FetchError:
            self._stats_errors += 1
            raise
        self._stats_downloads += 1
        return data

    async def _get(self, tile: TileCoord) -> bytes:
        url = self.tile_url(tile.x, tile.y, tile.zoom)
        headers = {'User-Agent': self.user_agent}
        timeout = aiohttp.ClientTimeout(total=self.timeout_s)
        logger.debug('GET %s', url)
        try:
            resp = await self.session.get(url, headers=headers, timeout=timeout)
        except (aiohttp.ClientError, TimeoutError) as e:
            msg = f'Network error while loading tile: {e!r}'
            raise FetchError(tile, msg) from e

        try:
            sc = resp.status
            if sc in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN):
                msg = (
                    f'Access denied (HTTP {sc}); the provider may reject the '
                    f'User-Agent {self.user_agent!r}'
                )
                raise FetchError(tile, msg, status=sc)
            if sc == HTTP_NOT_FOUND:
                raise FetchError(tile, 'Tile not found (HTTP 404)', status=sc)
            if sc != HTTP_OK:
                raise FetchError(tile, f'Unexpected HTTP {sc}', status=sc)
            try:
                data = await resp.read()
            except (aiohttp.ClientError, TimeoutError) as e:
                msg = f'Error reading tile body: {e!r}'
                raise FetchError(tile, msg, status=sc) from e
        finally:
            resp.release()

        _verify_image(tile, data)
        return data


def _verify_image(tile: TileCoord, data: bytes) -> None:
    if not data:
        raise FetchError(tile, 'Empty response body', status=HTTP_OK)
    try:
        with Image.open(BytesIO(data)) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        msg = f'Response body is not a valid image: {e}'
        raise FetchError(tile, msg, status=HTTP_OK) from e
