"""
Математика тайлов Web Mercator (slippy map).

Pure functions converting geographic points to tile space and resolving the
tile grid that covers a pixel viewport. No I/O, no state.
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass

from shared.constants import (
    HALF_VIEWPORT_DIVISOR,
    MERCATOR_MAX_LAT_DEG,
    TILE_EXT,
    TILE_SIZE,
    WORLD_LNG_HALF_SPAN_DEG,
    WORLD_LNG_SPAN_DEG,
)


@dataclass(frozen=True)
class GeoPoint:
    """Географическая точка WGS84 (градусы)."""

    lon: float
    lat: float


@dataclass(frozen=True)
class FractionalTilePos:
    """Continuous tile-space position of a point at a zoom level."""

    x: float
    y: float
    zoom: int


@dataclass(frozen=True)
class TileCoord:
    """Integer tile index (x, y) at a zoom level."""

    x: int
    y: int
    zoom: int

    def wrapped(self) -> TileCoord:
        n = num_tiles_at_zoom(self.zoom)
        return TileCoord(wrap_tile_index(self.x, n), wrap_tile_index(self.y, n), self.zoom)

    def key(self, ext: str = TILE_EXT) -> str:
        """Cache key and on-disk file name: ``{x}_{y}_{zoom}.{ext}``."""
        return f'{self.x}_{self.y}_{self.zoom}.{ext}'


@dataclass(frozen=True)
class TileGrid:
    """
    Сетка тайлов, покрывающая вьюпорт.

    x_start/y_start — индекс левого верхнего тайла (может быть отрицательным
    или выходить за 2^zoom до нормализации); x_offset_px/y_offset_px — сдвиг
    левого верхнего пикселя холста внутри этого тайла, всегда в [0, 256).
    """

    x_start: int
    y_start: int
    x_count: int
    y_count: int
    x_offset_px: int
    y_offset_px: int

    @property
    def total(self) -> int:
        return self.x_count * self.y_count

    def cells(self) -> Iterator[tuple[int, int]]:
        """Yield (col, row) for every grid cell, row by row."""
        for row in range(self.y_count):
            for col in range(self.x_count):
                yield col, row

    def tile_at(self, col: int, row: int, zoom: int) -> TileCoord:
        """Absolute tile for a grid cell, normalized into [0, 2^zoom)."""
        return TileCoord(self.x_start + col, self.y_start + row, zoom).wrapped()

    def paste_offset(self, col: int, row: int) -> tuple[int, int]:
        """Canvas position of the cell's top-left corner (may be negative)."""
        return col * TILE_SIZE - self.x_offset_px, row * TILE_SIZE - self.y_offset_px


def num_tiles_at_zoom(zoom: int) -> int:
    """Число тайлов по одной оси на уровне zoom: 2^zoom."""
    if zoom < 0:
        msg = f'zoom не может быть отрицательным: {zoom}'
        raise ValueError(msg)
    return 1 << zoom


def wrap_tile_index(value: int, n: int) -> int:
    """Normalize a tile index into [0, n); negative values wrap forward."""
    return ((value % n) + n) % n


def world_to_tile(point: GeoPoint, zoom: int) -> FractionalTilePos:
    """Преобразует WGS84 (lon, lat) в дробные координаты тайла на уровне zoom."""
    n = num_tiles_at_zoom(zoom)
    lat = min(max(point.lat, -MERCATOR_MAX_LAT_DEG), MERCATOR_MAX_LAT_DEG)
    lat_rad = math.radians(lat)
    x = (point.lon + WORLD_LNG_HALF_SPAN_DEG) / WORLD_LNG_SPAN_DEG * n
    y = (1.0 - math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad)) / math.pi) / 2.0 * n
    return FractionalTilePos(x, y, zoom)


def _axis(center: float, size_px: int) -> tuple[int, int, int]:
    start = center - size_px / HALF_VIEWPORT_DIVISOR
    start_idx = math.floor(start)
    # frac relative to floor keeps the offset in [0, TILE_SIZE) for negative starts
    offset = int((start - start_idx) * TILE_SIZE)
    if offset >= TILE_SIZE:
        # start just below an integer: start - floor(start) rounds up to 1.0
        start_idx += 1
        offset = 0
    count = math.ceil((size_px + offset) / TILE_SIZE)
    return start_idx, offset, count


def grid_for_tile_pos(pos: FractionalTilePos, width: int, height: int) -> TileGrid:
    """Tile grid for a viewport centered on a fractional tile position."""
    x_start, x_offset, x_count = _axis(pos.x, width)
    y_start, y_offset, y_count = _axis(pos.y, height)
    return TileGrid(
        x_start=x_start,
        y_start=y_start,
        x_count=x_count,
        y_count=y_count,
        x_offset_px=x_offset,
        y_offset_px=y_offset,
    )


def compute_grid(center: GeoPoint, zoom: int, width: int, height: int) -> TileGrid:
    """
    Вычисляет сетку тайлов для вьюпорта.

    xs = cx - width / 512, ys = cy - height / 512 (половина вьюпорта в тайлах);
    x_start = floor(xs), x_offset = frac(xs) * 256, x_count = ceil((width + x_offset) / 256).
    """
    return grid_for_tile_pos(world_to_tile(center, zoom), width, height)
