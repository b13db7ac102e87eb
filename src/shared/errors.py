"""Error kinds raised by the render pipeline.

Every tile-level error carries the offending tile so a failed render reports
which tile aborted it and why.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from geo.tile_math import TileCoord


class MapRenderError(RuntimeError):
    """Base class for all render failures."""


class InvalidViewport(MapRenderError, ValueError):
    """Viewport size, center or zoom cannot be rendered."""


class CacheIOError(MapRenderError):
    """Disk read/write failure for a cache entry."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(f'{message} (key={key})')


class TileError(MapRenderError):
    """Failure tied to one tile of the grid."""

    def __init__(self, tile: TileCoord, message: str) -> None:
        self.tile = tile
        super().__init__(f'{message} z/x/y={tile.zoom}/{tile.x}/{tile.y}')


class FetchError(TileError):
    """Network, HTTP or response body failure while downloading a tile."""

    def __init__(
        self, tile: TileCoord, message: str, *, status: int | None = None
    ) -> None:
        self.status = status
        super().__init__(tile, message)


class CompositionError(TileError):
    """Tile bytes could not be decoded or drawn onto the canvas."""


class RenderTimeout(MapRenderError):
    """The render did not complete within the configured time limit."""
