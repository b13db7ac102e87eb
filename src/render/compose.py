from __future__ import annotations

import os
from io import BytesIO
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from PIL import Image


def build_save_kwargs(*, optimize: bool = False) -> dict[str, Any]:
    """Build PIL.Image.save kwargs for PNG output."""
    return {'format': 'PNG', 'optimize': optimize}


def encode_png(img: Image.Image, *, optimize: bool = False) -> bytes:
    """Encode the composed canvas as PNG bytes."""
    buf = BytesIO()
    img.save(buf, **build_save_kwargs(optimize=optimize))
    return buf.getvalue()


def save_png(img: Image.Image, out_path: str | Path, *, optimize: bool = False) -> Path:
    """Save an image as PNG and fsync to ensure data is written."""
    path = Path(out_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open('wb') as fh:
        img.save(fh, **build_save_kwargs(optimize=optimize))
        fh.flush()
        os.fsync(fh.fileno())
    return path
