"""Mapping layer between flat RenderSettings fields and sectioned TOML format.

RenderSettings remains a flat Pydantic model. This module provides two functions:
- flat_to_sectioned(): flat dict → sectioned dict (for TOML save)
- sectioned_to_flat(): sectioned dict → flat dict (for TOML load)
"""

from __future__ import annotations

# {section_name: {flat_field_name: short_name_in_toml}}
SECTION_MAP: dict[str, dict[str, str]] = {
    'provider': {
        'tile_url_template': 'url_template',
        'tile_ext': 'ext',
        'user_agent': 'user_agent',
        'min_zoom': 'min_zoom',
        'max_zoom': 'max_zoom',
    },
    'http': {
        'concurrency': 'concurrency',
        'http_timeout_s': 'timeout_s',
    },
    'cache': {
        'cache_dir': 'dir',
        'dedupe_fetches': 'dedupe_fetches',
    },
    'render': {
        'render_timeout_s': 'timeout_s',
        'output_path': 'output_path',
        'show_progress': 'show_progress',
    },
}

# Reverse index: flat_field → (section, short_name)
_FLAT_TO_SECTION: dict[str, tuple[str, str]] = {}
for _section, _fields in SECTION_MAP.items():
    for _flat, _short in _fields.items():
        _FLAT_TO_SECTION[_flat] = (_section, _short)

# Reverse index: (section, short_name) → flat_field
_SECTION_TO_FLAT: dict[str, dict[str, str]] = {}
for _section, _fields in SECTION_MAP.items():
    _SECTION_TO_FLAT[_section] = {v: k for k, v in _fields.items()}


def flat_to_sectioned(flat: dict) -> dict:
    """Convert flat RenderSettings dict to sectioned dict for TOML output."""
    result: dict = {}
    for key, value in flat.items():
        if value is None:
            # TOML has no null
            continue
        if key in _FLAT_TO_SECTION:
            section, short_name = _FLAT_TO_SECTION[key]
            result.setdefault(section, {})[short_name] = value
        else:
            result.setdefault('common', {})[key] = value
    return result


def sectioned_to_flat(data: dict) -> dict:
    """Convert sectioned TOML dict to flat dict for RenderSettings validation."""
    flat: dict = {}
    for key, value in data.items():
        if isinstance(value, dict) and key in _SECTION_TO_FLAT:
            # Known section — expand short names to flat names
            mapping = _SECTION_TO_FLAT[key]
            for short_name, field_value in value.items():
                flat_name = mapping.get(short_name, short_name)
                flat[flat_name] = field_value
        elif isinstance(value, dict):
            # common or unknown section — pass through keys as-is
            flat.update(value)
        else:
            # Top-level key (flat TOML)
            flat[key] = value
    return flat
