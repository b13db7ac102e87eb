"""Loading and saving RenderSettings (TOML file + environment overrides)."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import tomlkit
from dotenv import load_dotenv

from domain.models import RenderSettings
from domain.toml_sections import flat_to_sectioned, sectioned_to_flat
from shared.constants import ENV_PREFIX

logger = logging.getLogger(__name__)


def read_toml(path: str | Path) -> dict[str, Any]:
    """Read a sectioned TOML config into a flat dict."""
    p = Path(path)
    if not p.exists():
        msg = f'Config not found: {p}'
        raise FileNotFoundError(msg)
    data = tomlkit.parse(p.read_text(encoding='utf-8')).unwrap()
    return sectioned_to_flat(data)


def env_overrides(environ: dict[str, str] | None = None) -> dict[str, str]:
    """Collect ``MAPRENDER_<FIELD>`` variables that name a RenderSettings field."""
    environ = os.environ if environ is None else environ
    fields = RenderSettings.model_fields
    result: dict[str, str] = {}
    for name, value in environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        field = name[len(ENV_PREFIX):].lower()
        if field in fields:
            result[field] = value
    return result


def load_settings(
    path: str | Path | None = None,
    *,
    use_env: bool = True,
    dotenv_path: str | Path | None = None,
    **overrides: Any,
) -> RenderSettings:
    """
    Build RenderSettings from defaults, a TOML file, the environment and overrides.

    Later sources win: defaults < TOML < MAPRENDER_* env (incl. .env) < overrides.
    """
    data: dict[str, Any] = {}
    if path is not None:
        data.update(read_toml(path))
        logger.info('Config loaded from %s', path)
    if use_env:
        load_dotenv(dotenv_path)
        env = env_overrides()
        if env:
            logger.debug('Environment overrides: %s', sorted(env))
        data.update(env)
    data.update({k: v for k, v in overrides.items() if v is not None})
    return RenderSettings.model_validate(data)


def save_settings(settings: RenderSettings, path: str | Path) -> None:
    """Write settings as a sectioned TOML file."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    doc = tomlkit.document()
    for section, values in flat_to_sectioned(settings.model_dump()).items():
        table = tomlkit.table()
        for key, value in values.items():
            table.add(key, value)
        doc.add(section, table)
    p.write_text(tomlkit.dumps(doc), encoding='utf-8')
