"""Pytest configuration and fixtures for MapRender tests."""

import asyncio
import sys
from io import BytesIO
from pathlib import Path

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))


def png_bytes(color=(10, 20, 30), size=(256, 256), mode='RGB'):
    """Encode a solid-color image as PNG."""
    from PIL import Image

    buf = BytesIO()
    Image.new(mode, size, color).save(buf, format='PNG')
    return buf.getvalue()


def color_for(x, y, zoom):
    """Deterministic per-tile color so composed pixels can be traced to tiles."""
    return ((x * 37 + zoom) % 256, (y * 53 + zoom) % 256, (x + y) % 256)


def collect_loop_errors():
    """Route unhandled-exception reports of the running loop into a list."""
    errors = []
    asyncio.get_running_loop().set_exception_handler(lambda loop, ctx: errors.append(ctx))
    return errors


class FakeResponse:
    """Minimal stand-in for aiohttp.ClientResponse."""

    def __init__(self, status=200, body=b'', read_exc=None):
        self.status = status
        self._body = body
        self._read_exc = read_exc
        self.released = False

    async def read(self):
        if self._read_exc is not None:
            raise self._read_exc
        return self._body

    def release(self):
        self.released = True


class FakeSession:
    """Records GET calls and answers them with ``responder(url)``."""

    def __init__(self, responder):
        self.responder = responder
        self.calls = []

    async def get(self, url, headers=None, timeout=None):
        self.calls.append({'url': url, 'headers': headers, 'timeout': timeout})
        result = self.responder(url)
        if isinstance(result, BaseException):
            raise result
        return result


class FakeFetcher:
    """Tile fetcher double: serves per-tile PNGs, counts calls, can fail or stall."""

    def __init__(self, *, delay=0.0, fail_on=None, error=None):
        self.delay = delay
        self.fail_on = set(fail_on or ())
        self.error = error
        self.calls = []

    async def fetch(self, x, y, zoom):
        self.calls.append((x, y, zoom))
        if self.delay:
            await asyncio.sleep(self.delay)
        if (x, y, zoom) in self.fail_on:
            raise self.error
        return png_bytes(color_for(x, y, zoom))


@pytest.fixture
def temp_cache_dir(tmp_path):
    """Empty cache directory."""
    cache_dir = tmp_path / 'Cache'
    cache_dir.mkdir()
    return cache_dir
