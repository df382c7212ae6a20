"""Tests for the command-line entry point."""

import logging
from unittest.mock import patch

import pytest

import main
from domain.errors import PartialTileFailure, TileFetchFailure
from domain.models import EncodedImage, TileIndex
from shared.constants import OutputFormat

_ARGS = ['--north', '51.51', '--west', '-0.12', '--south', '51.50', '--east', '-0.10']


@pytest.fixture(autouse=True)
def _log_dir(tmp_path, monkeypatch):
    monkeypatch.setenv('LOCALAPPDATA', str(tmp_path / 'localappdata'))
    yield
    # Закрыть файловый обработчик, открытый setup_logging
    for handler in logging.getLogger().handlers[:]:
        handler.close()
        logging.getLogger().removeHandler(handler)


def _image(zoom=15):
    return EncodedImage(
        data=b'\x89PNG fake',
        image_format=OutputFormat.PNG,
        width=512,
        height=768,
        zoom=zoom,
        filename=f'map_export_{zoom}.png',
    )


class TestSetupLogging:
    def test_creates_log_dir(self, tmp_path):
        log_dir = main.setup_logging()
        assert log_dir == tmp_path / 'localappdata' / 'osm-map-exporter' / 'log'
        assert log_dir.is_dir()
        if main.LOG_TO_FILE:
            assert (log_dir / 'map_export.log').exists()


class TestParser:
    def test_defaults(self):
        args = main.build_parser().parse_args(_ARGS)
        assert args.zoom == 15
        assert args.source == 'osm'
        assert args.output_format is None
        assert args.profile is None

    def test_bounds_required(self):
        with pytest.raises(SystemExit):
            main.build_parser().parse_args(['--north', '1'])


class TestMain:
    def test_success_saves_file(self, tmp_path, capsys):
        out_dir = tmp_path / 'out'
        with patch.object(main, 'run_export', return_value=_image()) as run:
            code = main.main([*_ARGS, '--output-dir', str(out_dir), '--no-progress'])
        assert code == 0
        assert (out_dir / 'map_export_15.png').read_bytes() == b'\x89PNG fake'
        assert 'map_export_15.png' in capsys.readouterr().out
        _, kwargs = run.call_args
        assert kwargs['show_progress'] is False
        assert kwargs['output_format'] is None

    def test_unknown_source(self):
        with patch.object(main, 'run_export') as run:
            assert main.main([*_ARGS, '--source', 'nope']) == 1
        run.assert_not_called()

    def test_svg_rejected(self, tmp_path):
        code = main.main([*_ARGS, '--format', 'svg', '--output-dir', str(tmp_path)])
        assert code == 1
        assert not any(tmp_path.iterdir())

    def test_export_failure(self, tmp_path):
        failure = TileFetchFailure(TileIndex(x=1, y=1, z=2), 'https://t/2/1/1.png', 'HTTP 500')
        error = PartialTileFailure([failure], total=4)
        with patch.object(main, 'run_export', side_effect=error):
            assert main.main([*_ARGS, '--output-dir', str(tmp_path)]) == 1
        assert not any(tmp_path.iterdir())

    def test_inverted_latitudes(self):
        args = ['--north', '10', '--west', '0', '--south', '20', '--east', '1']
        with patch.object(main, 'run_export') as run:
            assert main.main(args) == 2
        run.assert_not_called()

    def test_missing_profile(self, tmp_path):
        with patch.object(main, 'run_export') as run:
            assert main.main([*_ARGS, '--profile', str(tmp_path / 'none.toml')]) == 2
        run.assert_not_called()

    def test_profile_format_applies(self, tmp_path):
        profile = tmp_path / 'vector.toml'
        profile.write_text('output_format = "svg"\n', encoding='utf-8')
        out_dir = tmp_path / 'out'
        code = main.main([*_ARGS, '--profile', str(profile), '--output-dir', str(out_dir)])
        assert code == 1
        assert not out_dir.exists()
