"""Tile compositor - pastes decoded tiles onto the output canvas."""

from __future__ import annotations

import logging
import threading
from io import BytesIO
from typing import TYPE_CHECKING

from PIL import Image, UnidentifiedImageError

from shared.constants import CANVAS_BACKGROUND, CANVAS_MODE, TILE_SIZE
from shared.errors import CompositionError, MapRenderError

if TYPE_CHECKING:
    from geo.tile_math import TileCoord

logger = logging.getLogger(__name__)


def decode_tile(data: bytes, tile: TileCoord, *, mode: str = CANVAS_MODE) -> Image.Image:
    """
    Декодирует байты тайла в изображение нужного режима и размера.

    Raises:
        CompositionError: байты не являются изображением.
    """
    try:
        with Image.open(BytesIO(data)) as src:
            img = src.convert(mode)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        msg = f'Cannot decode tile image: {e}'
        raise CompositionError(tile, msg) from e
    if img.size != (TILE_SIZE, TILE_SIZE):
        logger.debug('Resizing tile %s from %s', tile, img.size)
        img = img.resize((TILE_SIZE, TILE_SIZE), Image.Resampling.LANCZOS)
    return img


class Compositor:
    """
    Owns the canvas for one render.

    ``submit`` may be called from any task or thread in any order; tiles
    cover disjoint regions so the result does not depend on arrival order.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        mode: str = CANVAS_MODE,
        background: tuple[int, ...] = CANVAS_BACKGROUND,
    ) -> None:
        self.mode = mode
        self._canvas = Image.new(mode, (width, height), background)
        self._lock = threading.Lock()
        self._finalized = False
        self.submitted = 0

    @property
    def size(self) -> tuple[int, int]:
        return self._canvas.size

    def submit(self, image: Image.Image, offset_x: int, offset_y: int) -> None:
        """Paste ``image`` with its top-left corner at (offset_x, offset_y).

        Offsets may be negative or past the canvas edge; Pillow clips the
        paste to the canvas.
        """
        if image.mode != self.mode:
            image = image.convert(self.mode)
        with self._lock:
            if self._finalized:
                msg = 'Canvas already finalized'
                raise MapRenderError(msg)
            self._canvas.paste(image, (offset_x, offset_y))
            self.submitted += 1

    def finalize(self) -> Image.Image:
        """Freeze the compositor and hand over the composed canvas."""
        with self._lock:
            self._finalized = True
            return self._canvas
