"""Domain layer - request and settings models."""
from domain.models import RenderSettings, Viewport
from domain.settings import load_settings, save_settings

__all__ = [
    'RenderSettings',
    'Viewport',
    'load_settings',
    'save_settings',
]
