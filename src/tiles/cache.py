"""Two-tier tile cache: in-process memory map backed by a directory of files.

The directory is read once into memory by ``load()``; during a render lookups
hit memory only and every network fetch is written through to both tiers.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path

from shared.constants import TILE_CACHE_DIR, TILE_CACHE_TMP_SUFFIX, TILE_EXT
from shared.errors import CacheIOError

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    """Statistics about the tile cache."""

    entries: int
    total_bytes: int
    cache_dir: Path


class TileCache:
    """Memory + disk tile cache keyed by file name (``{x}_{y}_{zoom}.{ext}``).

    Features:
    - Memory tier safe for concurrent lookup/store from threads and tasks
    - Atomic write-through to disk (temp file + ``os.replace``)
    - Unreadable files are skipped on load, not fatal
    - No eviction: entries live for the lifetime of the cache object

    Usage:
        cache = TileCache('Cache')
        cache.load()
        data = cache.lookup('79232_40961_17.png')
        cache.store('79232_40961_17.png', tile_bytes)
    """

    def __init__(self, cache_dir: str | Path | None = None, *, ext: str = TILE_EXT) -> None:
        """Initialize tile cache.

        Args:
            cache_dir: Directory for tile files. Defaults to TILE_CACHE_DIR.
            ext: Tile file extension used when building keys.
        """
        self.cache_dir = Path(cache_dir or TILE_CACHE_DIR)
        self.ext = ext
        self._entries: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def load(self) -> int:
        """Read every tile file of the cache directory into memory.

        Returns:
            Number of entries loaded.
        """
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            paths = sorted(self.cache_dir.iterdir())
        except OSError as e:
            raise CacheIOError(str(self.cache_dir), f'Cannot open cache directory: {e}') from e

        loaded = 0
        for path in paths:
            if path.name.endswith(TILE_CACHE_TMP_SUFFIX) or not path.is_file():
                continue
            try:
                data = path.read_bytes()
            except OSError as e:
                logger.warning('Skipping unreadable cache file %s: %s', path, e)
                continue
            with self._lock:
                self._entries[path.name] = data
            loaded += 1

        logger.info('TileCache loaded %d tiles from %s', loaded, self.cache_dir)
        return loaded

    def lookup(self, key: str) -> bytes | None:
        """Get tile bytes from the memory tier.

        Returns:
            Tile data, or None on a miss.
        """
        with self._lock:
            return self._entries.get(key)

    def store(self, key: str, data: bytes) -> None:
        """Persist tile bytes to disk and publish them in memory.

        Safe to call concurrently, including for the same key: each write
        goes to its own temp file and is renamed over the target, so the
        final file always holds one complete payload.

        Raises:
            CacheIOError: the file could not be written.
        """
        target = self.cache_dir / key
        tmp_name: str | None = None
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f'.{key}.', suffix=TILE_CACHE_TMP_SUFFIX, dir=self.cache_dir
            )
            with os.fdopen(fd, 'wb') as fh:
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, target)
            tmp_name = None
        except OSError as e:
            raise CacheIOError(key, f'Cannot write cache file {target}: {e}') from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

        with self._lock:
            self._entries[key] = data
        logger.debug('Stored tile %s (%d bytes)', key, len(data))

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def stats(self) -> CacheStats:
        """Get cache statistics."""
        with self._lock:
            total = sum(len(v) for v in self._entries.values())
            count = len(self._entries)
        return CacheStats(entries=count, total_bytes=total, cache_dir=self.cache_dir)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
