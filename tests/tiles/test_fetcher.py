"""Tests for TileFetcher."""

from __future__ import annotations

import asyncio

import aiohttp
import pytest
from conftest import FakeResponse, FakeSession, png_bytes

from shared.errors import FetchError
from tiles.fetcher import TileFetcher


def _fetcher(responder, **kwargs):
    session = FakeSession(responder)
    return TileFetcher(session, **kwargs), session


class TestTileFetcher:
    """Tests for TileFetcher.fetch."""

    @pytest.mark.asyncio
    async def test_returns_raw_bytes(self):
        body = png_bytes((1, 2, 3))
        fetcher, session = _fetcher(lambda url: FakeResponse(200, body))
        data = await fetcher.fetch(79232, 40961, 17)
        assert data == body
        assert session.calls[0]['url'] == 'https://tile.openstreetmap.org/17/79232/40961.png'
        assert fetcher.stats == {'downloads': 1, 'errors': 0}

    @pytest.mark.asyncio
    async def test_sends_identifying_user_agent(self):
        fetcher, session = _fetcher(
            lambda url: FakeResponse(200, png_bytes()), user_agent='TestAgent/1.0 (me@example.org)'
        )
        await fetcher.fetch(0, 0, 0)
        assert session.calls[0]['headers']['User-Agent'] == 'TestAgent/1.0 (me@example.org)'

    @pytest.mark.asyncio
    async def test_custom_url_template(self):
        fetcher, session = _fetcher(
            lambda url: FakeResponse(200, png_bytes()),
            url_template='https://tiles.example.org/{z}/{x}/{y}.png',
        )
        await fetcher.fetch(3, 4, 5)
        assert session.calls[0]['url'] == 'https://tiles.example.org/5/3/4.png'

    @pytest.mark.asyncio
    async def test_forbidden_mentions_user_agent(self):
        resp = FakeResponse(403, b'blocked')
        fetcher, _ = _fetcher(lambda url: resp)
        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch(1, 2, 3)
        err = exc_info.value
        assert err.status == 403
        assert 'User-Agent' in str(err)
        assert (err.tile.x, err.tile.y, err.tile.zoom) == (1, 2, 3)
        assert resp.released
        assert fetcher.stats['errors'] == 1

    @pytest.mark.asyncio
    async def test_not_found(self):
        fetcher, _ = _fetcher(lambda url: FakeResponse(404))
        with pytest.raises(FetchError, match='404'):
            await fetcher.fetch(1, 2, 3)

    @pytest.mark.asyncio
    @pytest.mark.parametrize('status', [204, 301, 429, 500, 503])
    async def test_other_non_success_status(self, status):
        fetcher, _ = _fetcher(lambda url: FakeResponse(status, png_bytes()))
        with pytest.raises(FetchError) as exc_info:
            await fetcher.fetch(1, 2, 3)
        assert exc_info.value.status == status

    @pytest.mark.asyncio
    async def test_empty_body(self):
        fetcher, _ = _fetcher(lambda url: FakeResponse(200, b''))
        with pytest.raises(FetchError, match='Empty'):
            await fetcher.fetch(1, 2, 3)

    @pytest.mark.asyncio
    async def test_malformed_body(self):
        fetcher, _ = _fetcher(lambda url: FakeResponse(200, b'<html>rate limited</html>'))
        with pytest.raises(FetchError, match='not a valid image'):
            await fetcher.fetch(1, 2, 3)

    @pytest.mark.asyncio
    async def test_connection_error(self):
        fetcher, _ = _fetcher(lambda url: aiohttp.ClientConnectionError('refused'))
        with pytest.raises(FetchError, match='Network error') as exc_info:
            await fetcher.fetch(1, 2, 3)
        assert exc_info.value.status is None
        assert isinstance(exc_info.value.__cause__, aiohttp.ClientConnectionError)

    @pytest.mark.asyncio
    async def test_timeout(self):
        fetcher, _ = _fetcher(lambda url: TimeoutError())
        with pytest.raises(FetchError):
            await fetcher.fetch(1, 2, 3)

    @pytest.mark.asyncio
    async def test_body_read_error_releases_response(self):
        resp = FakeResponse(200, read_exc=aiohttp.ClientPayloadError('truncated'))
        fetcher, _ = _fetcher(lambda url: resp)
        with pytest.raises(FetchError, match='reading'):
            await fetcher.fetch(1, 2, 3)
        assert resp.released

    @pytest.mark.asyncio
    async def test_no_retry(self):
        fetcher, session = _fetcher(lambda url: FakeResponse(500))
        with pytest.raises(FetchError):
            await fetcher.fetch(1, 2, 3)
        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_concurrency_limit(self):
        active = 0
        peak = 0
        body = png_bytes()

        class SlowSession:
            async def get(self, url, headers=None, timeout=None):
                nonlocal active, peak
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1
                return FakeResponse(200, body)

        fetcher = TileFetcher(SlowSession(), concurrency=2)
        await asyncio.gather(*(fetcher.fetch(i, 0, 5) for i in range(10)))
        assert peak <= 2
        assert fetcher.stats['downloads'] == 10
