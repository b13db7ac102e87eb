"""Tests for settings loading (TOML, environment, overrides)."""

import os

import pytest
from pydantic import ValidationError

from domain.models import RenderSettings
from domain.settings import env_overrides, load_settings, read_toml, save_settings

CONFIG = """\
[provider]
user_agent = "FromToml/1.0"
max_zoom = 18

[http]
concurrency = 4
timeout_s = 10.0

[cache]
dir = "toml-cache"
"""


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No MAPRENDER_* variables and no stray .env file."""
    for name in list(os.environ):
        if name.startswith('MAPRENDER_'):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / 'maprender.toml'
    path.write_text(CONFIG, encoding='utf-8')
    return path


class TestReadToml:
    def test_reads_sections(self, config_file):
        flat = read_toml(config_file)
        assert flat['user_agent'] == 'FromToml/1.0'
        assert flat['http_timeout_s'] == 10.0
        assert flat['cache_dir'] == 'toml-cache'

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_toml(tmp_path / 'absent.toml')


class TestEnvOverrides:
    def test_picks_known_fields(self):
        env = {
            'MAPRENDER_CONCURRENCY': '2',
            'MAPRENDER_NOT_A_FIELD': 'x',
            'CONCURRENCY': '9',
        }
        assert env_overrides(env) == {'concurrency': '2'}

    def test_case_insensitive_field(self):
        assert env_overrides({'MAPRENDER_Cache_Dir': 'c'}) == {'cache_dir': 'c'}


class TestLoadSettings:
    def test_defaults(self, clean_env):
        assert load_settings() == RenderSettings()

    def test_toml(self, clean_env, config_file):
        s = load_settings(config_file)
        assert s.user_agent == 'FromToml/1.0'
        assert s.concurrency == 4
        assert s.max_zoom == 18

    def test_env_beats_toml(self, clean_env, config_file, monkeypatch):
        monkeypatch.setenv('MAPRENDER_CONCURRENCY', '6')
        assert load_settings(config_file).concurrency == 6

    def test_env_ignored_when_disabled(self, clean_env, config_file, monkeypatch):
        monkeypatch.setenv('MAPRENDER_CONCURRENCY', '6')
        assert load_settings(config_file, use_env=False).concurrency == 4

    def test_dotenv_file(self, clean_env):
        dotenv = clean_env / 'custom.env'
        dotenv.write_text('MAPRENDER_CACHE_DIR=dotenv-cache\n', encoding='utf-8')
        try:
            s = load_settings(dotenv_path=dotenv)
            assert s.cache_dir == 'dotenv-cache'
        finally:
            # load_dotenv writes straight into os.environ
            os.environ.pop('MAPRENDER_CACHE_DIR', None)

    def test_overrides_win(self, clean_env, config_file, monkeypatch):
        monkeypatch.setenv('MAPRENDER_CONCURRENCY', '6')
        s = load_settings(config_file, concurrency=1, cache_dir=None)
        assert s.concurrency == 1
        assert s.cache_dir == 'toml-cache'

    def test_invalid_value(self, clean_env):
        with pytest.raises(ValidationError):
            load_settings(concurrency=0)


class TestSaveSettings:
    def test_round_trip(self, clean_env, tmp_path):
        original = RenderSettings(
            concurrency=2, cache_dir='x/tiles', render_timeout_s=30.0
        )
        path = tmp_path / 'out' / 'settings.toml'
        save_settings(original, path)

        assert '[http]' in path.read_text(encoding='utf-8')
        assert load_settings(path, use_env=False) == original
