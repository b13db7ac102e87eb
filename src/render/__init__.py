# Модуль рендеринга карты
from render.compose import encode_png, save_png
from render.compositor import Compositor, decode_tile
from render.map_renderer import MapRenderer, RenderResult, RenderStats, render_map

__all__ = [
    'Compositor',
    'MapRenderer',
    'RenderResult',
    'RenderStats',
    'decode_tile',
    'encode_png',
    'render_map',
    'save_png',
]
