"""Tests for domain.profiles (TOML export settings)."""

import pytest
from pydantic import ValidationError

from domain.models import ExportSettings
from domain.profiles import load_settings, save_settings


def test_defaults_without_path():
    assert load_settings(None) == ExportSettings()


def test_load_from_toml(tmp_path):
    path = tmp_path / 'fast.toml'
    path.write_text('concurrency = 4\nmax_tiles = 64\ntile_timeout_s = 5.5\n', encoding='utf-8')
    settings = load_settings(path)
    assert settings.concurrency == 4
    assert settings.max_tiles == 64
    assert settings.tile_timeout_s == 5.5


def test_missing_profile(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / 'absent.toml')


def test_invalid_values_rejected(tmp_path):
    path = tmp_path / 'bad.toml'
    path.write_text('max_tiles = 0\n', encoding='utf-8')
    with pytest.raises(ValidationError):
        load_settings(path)


def test_save_then_load(tmp_path):
    settings = ExportSettings(concurrency=3, subdomain='b')
    path = save_settings(tmp_path / 'profiles' / 'custom.toml', settings)
    assert path.exists()
    assert load_settings(path) == settings
