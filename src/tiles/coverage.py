from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from shared.constants import TILE_EXT

if TYPE_CHECKING:
    from collections.abc import Iterable

    from geo.tile_math import TileCoord, TileGrid


@dataclass(frozen=True)
class TileJob:
    """One grid cell resolved to a wrapped tile, its cache key and paste offset."""

    col: int
    row: int
    tile: TileCoord
    key: str
    offset: tuple[int, int]


def plan_tile_jobs(grid: TileGrid, zoom: int, *, ext: str = TILE_EXT) -> list[TileJob]:
    """
    One job per grid cell, not per distinct key.

    Cells whose absolute index wraps onto the same tile (low zooms, viewports
    wider than the world) produce separate jobs sharing a key.
    """
    jobs: list[TileJob] = []
    for col, row in grid.cells():
        tile = grid.tile_at(col, row, zoom)
        jobs.append(
            TileJob(
                col=col,
                row=row,
                tile=tile,
                key=tile.key(ext),
                offset=grid.paste_offset(col, row),
            )
        )
    return jobs


def distinct_keys(jobs: Iterable[TileJob]) -> set[str]:
    return {job.key for job in jobs}
