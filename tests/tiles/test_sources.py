"""Tests for tiles.sources."""

import pytest
from pydantic import ValidationError

from domain.errors import UnknownTileSource
from tiles.sources import (
    BUILTIN_TILE_SOURCES,
    default_tile_sources,
    get_tile_source,
    load_tile_sources,
    parse_tile_sources,
)

_EXTRA = '''
[topo]
display_name = "OpenTopoMap"
url_template = "https://{s}.tile.opentopomap.org/{z}/{x}/{y}.png"
attribution = "OpenTopoMap"
'''


class TestBuiltinSources:
    def test_keys(self):
        assert set(BUILTIN_TILE_SOURCES) == {'osm', 'cartoLight', 'cartoDark'}

    def test_default_table_is_read_only(self):
        table = default_tile_sources()
        with pytest.raises(TypeError):
            table['osm'] = None  # type: ignore[index]

    def test_default_table_loaded_once(self):
        assert default_tile_sources() is default_tile_sources()

    def test_get_known(self):
        assert get_tile_source('osm').display_name == 'OpenStreetMap Standard'

    def test_get_unknown(self):
        with pytest.raises(UnknownTileSource):
            get_tile_source('missing')


class TestLoadFromToml:
    def test_parse(self):
        sources = parse_tile_sources(_EXTRA)
        assert sources['topo'].display_name == 'OpenTopoMap'

    def test_merged_with_builtins(self, tmp_path):
        path = tmp_path / 'sources.toml'
        path.write_text(_EXTRA, encoding='utf-8')
        table = load_tile_sources(path)
        assert 'topo' in table
        assert 'osm' in table
        assert get_tile_source('topo', table).url_template.startswith('https://{s}.tile.opentopomap')

    def test_repo_config_matches_builtins(self):
        table = load_tile_sources()
        for key, source in BUILTIN_TILE_SOURCES.items():
            assert table[key] == source

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_tile_sources(tmp_path / 'none.toml')

    def test_non_table_entry(self):
        with pytest.raises(ValueError):
            parse_tile_sources('osm = "https://x/{z}/{x}/{y}.png"\n')

    def test_invalid_template(self):
        with pytest.raises(ValidationError):
            parse_tile_sources('[bad]\ndisplay_name = "b"\nurl_template = "https://x/{z}.png"\n')
