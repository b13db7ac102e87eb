from __future__ import annotations

import ssl

import aiohttp
import certifi

from shared.constants import DOWNLOAD_CONCURRENCY, HTTP_TIMEOUT_DEFAULT, USER_AGENT


def make_ssl_context() -> ssl.SSLContext:
    # Сертификаты из certifi: системное хранилище может отсутствовать (frozen builds)
    return ssl.create_default_context(cafile=certifi.where())


def make_http_session(
    *,
    user_agent: str = USER_AGENT,
    timeout_s: float = HTTP_TIMEOUT_DEFAULT,
    limit: int = DOWNLOAD_CONCURRENCY,
) -> aiohttp.ClientSession:
    """Create the client session used for tile downloads.

    The session carries the identifying User-Agent required by the tile
    provider, a per-request timeout and a connection pool sized to the
    download concurrency.
    """
    connector = aiohttp.TCPConnector(ssl=make_ssl_context(), limit=max(1, int(limit)))
    timeout = aiohttp.ClientTimeout(total=timeout_s)
    return aiohttp.ClientSession(
        connector=connector,
        timeout=timeout,
        headers={'User-Agent': user_agent},
    )
