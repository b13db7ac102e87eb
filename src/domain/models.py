from __future__ import annotations

from pydantic import BaseModel, ValidationError, field_validator, model_validator

from geo.tile_math import GeoPoint
from shared.constants import (
    DEFAULT_OUTPUT_PATH,
    DOWNLOAD_CONCURRENCY,
    HTTP_TIMEOUT_DEFAULT,
    MAX_ZOOM,
    MIN_ZOOM,
    TILE_CACHE_DIR,
    TILE_EXT,
    TILE_URL_TEMPLATE,
    USER_AGENT,
    WORLD_LAT_HALF_SPAN_DEG,
    WORLD_LNG_HALF_SPAN_DEG,
)
from shared.errors import InvalidViewport


class Viewport(BaseModel):
    """Запрошенный кадр: центр, зум и размер итогового изображения в пикселях."""

    model_config = {'frozen': True}

    center_lon: float
    center_lat: float
    zoom: int
    width_px: int
    height_px: int

    @field_validator('width_px', 'height_px')
    @classmethod
    def validate_size(cls, v):
        if v <= 0:
            msg = 'размер изображения должен быть положительным'
            raise ValueError(msg)
        return v

    @field_validator('zoom')
    @classmethod
    def validate_zoom(cls, v):
        if v < 0:
            msg = 'zoom не может быть отрицательным'
            raise ValueError(msg)
        return v

    @field_validator('center_lat')
    @classmethod
    def validate_lat(cls, v):
        if not (-WORLD_LAT_HALF_SPAN_DEG <= v <= WORLD_LAT_HALF_SPAN_DEG):
            msg = 'широта должна быть в диапазоне [-90, 90]'
            raise ValueError(msg)
        return v

    @field_validator('center_lon')
    @classmethod
    def validate_lon(cls, v):
        if not (-WORLD_LNG_HALF_SPAN_DEG <= v <= WORLD_LNG_HALF_SPAN_DEG):
            msg = 'долгота должна быть в диапазоне [-180, 180]'
            raise ValueError(msg)
        return v

    @property
    def center(self) -> GeoPoint:
        return GeoPoint(self.center_lon, self.center_lat)

    @classmethod
    def build(cls, width: int, height: int, center: GeoPoint, zoom: int) -> Viewport:
        """Validate raw render arguments, raising InvalidViewport on bad input."""
        try:
            return cls(
                center_lon=center.lon,
                center_lat=center.lat,
                zoom=zoom,
                width_px=width,
                height_px=height,
            )
        except ValidationError as e:
            msg = f'Invalid viewport: {e.errors(include_url=False)}'
            raise InvalidViewport(msg) from e


class RenderSettings(BaseModel):
    """Настройки рендера: поставщик тайлов, кэш, HTTP и вывод."""

    model_config = {
        'extra': 'ignore',  # игнорировать лишние поля из конфигов
    }

    # Поставщик тайлов
    tile_url_template: str = TILE_URL_TEMPLATE
    tile_ext: str = TILE_EXT
    user_agent: str = USER_AGENT
    min_zoom: int = MIN_ZOOM
    max_zoom: int = MAX_ZOOM

    # HTTP
    concurrency: int = DOWNLOAD_CONCURRENCY
    http_timeout_s: float = HTTP_TIMEOUT_DEFAULT

    # Кэш тайлов
    cache_dir: str = TILE_CACHE_DIR
    dedupe_fetches: bool = True

    # Рендер и вывод
    render_timeout_s: float | None = None
    output_path: str = DEFAULT_OUTPUT_PATH
    show_progress: bool = False

    @field_validator('concurrency')
    @classmethod
    def validate_concurrency(cls, v):
        if v < 1:
            msg = 'concurrency должен быть >= 1'
            raise ValueError(msg)
        return v

    @field_validator('http_timeout_s', 'render_timeout_s')
    @classmethod
    def validate_timeout(cls, v):
        if v is not None and v <= 0:
            msg = 'таймаут должен быть положительным'
            raise ValueError(msg)
        return v

    @field_validator('user_agent')
    @classmethod
    def validate_user_agent(cls, v):
        v = v.strip()
        if not v:
            # провайдеры отклоняют запросы без идентификации клиента
            msg = 'user_agent не может быть пустым'
            raise ValueError(msg)
        return v

    @field_validator('tile_url_template')
    @classmethod
    def validate_url_template(cls, v):
        for part in ('{z}', '{x}', '{y}'):
            if part not in v:
                msg = f'tile_url_template должен содержать {part}'
                raise ValueError(msg)
        return v

    @model_validator(mode='after')
    def validate_zoom_range(self):
        if self.min_zoom < 0 or self.max_zoom < self.min_zoom:
            msg = 'некорректный диапазон zoom'
            raise ValueError(msg)
        return self

    def check_viewport(self, viewport: Viewport) -> None:
        """Reject zoom levels the provider does not serve."""
        if not (self.min_zoom <= viewport.zoom <= self.max_zoom):
            msg = (
                f'Zoom {viewport.zoom} outside provider range '
                f'[{self.min_zoom}, {self.max_zoom}]'
            )
            raise InvalidViewport(msg)
