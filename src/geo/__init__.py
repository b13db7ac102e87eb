"""Geo module - Web Mercator tile math."""

from .tile_math import (
    FractionalTilePos,
    GeoPoint,
    TileCoord,
    TileGrid,
    compute_grid,
    grid_for_tile_pos,
    num_tiles_at_zoom,
    world_to_tile,
    wrap_tile_index,
)

__all__ = [
    'FractionalTilePos',
    'GeoPoint',
    'TileCoord',
    'TileGrid',
    'compute_grid',
    'grid_for_tile_pos',
    'num_tiles_at_zoom',
    'world_to_tile',
    'wrap_tile_index',
]
