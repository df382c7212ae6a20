"""Tests for domain.models."""

import pytest
from pydantic import ValidationError

from domain.models import (
    BoundingBox,
    ExportSettings,
    GeoPoint,
    TileGrid,
    TileIndex,
    TileSourceConfig,
)
from shared.constants import OutputFormat


class TestGeoPoint:
    def test_valid(self):
        p = GeoPoint(latitude=51.5, longitude=-0.1)
        assert p.latitude == 51.5

    @pytest.mark.parametrize(('lat', 'lon'), [(91.0, 0.0), (-91.0, 0.0), (0.0, 181.0), (0.0, -180.5)])
    def test_out_of_range(self, lat, lon):
        with pytest.raises(ValidationError):
            GeoPoint(latitude=lat, longitude=lon)

    def test_immutable(self):
        p = GeoPoint(latitude=1.0, longitude=2.0)
        with pytest.raises(ValidationError):
            p.latitude = 3.0


class TestBoundingBox:
    def test_rejects_inverted_latitudes(self):
        with pytest.raises(ValidationError):
            BoundingBox(
                north_west=GeoPoint(latitude=10.0, longitude=0.0),
                south_east=GeoPoint(latitude=20.0, longitude=1.0),
            )

    def test_from_corners_normalizes(self):
        box = BoundingBox.from_corners(
            GeoPoint(latitude=10.0, longitude=5.0),
            GeoPoint(latitude=20.0, longitude=1.0),
        )
        assert box.north_west == GeoPoint(latitude=20.0, longitude=1.0)
        assert box.south_east == GeoPoint(latitude=10.0, longitude=5.0)
        assert not box.crosses_antimeridian

    def test_crosses_antimeridian(self):
        box = BoundingBox(
            north_west=GeoPoint(latitude=10.0, longitude=179.0),
            south_east=GeoPoint(latitude=5.0, longitude=-179.0),
        )
        assert box.crosses_antimeridian


class TestTileIndex:
    def test_range_checked(self):
        with pytest.raises(ValidationError):
            TileIndex(x=2, y=0, z=1)
        with pytest.raises(ValidationError):
            TileIndex(x=0, y=-1, z=1)

    def test_hashable(self):
        assert len({TileIndex(x=1, y=1, z=2), TileIndex(x=1, y=1, z=2)}) == 1


class TestTileGrid:
    def test_dimensions(self):
        grid = TileGrid(min_x=10, max_x=12, min_y=5, max_y=5, zoom=8)
        assert (grid.cols, grid.rows, grid.tile_count) == (3, 1, 3)
        assert grid.raster_size(256) == (768, 256)
        assert grid.raster_size(512) == (1536, 512)

    def test_rejects_empty(self):
        with pytest.raises(ValidationError):
            TileGrid(min_x=3, max_x=2, min_y=0, max_y=0, zoom=4)

    def test_tiles_cover_cartesian_product(self):
        grid = TileGrid(min_x=0, max_x=1, min_y=2, max_y=3, zoom=3)
        assert {(t.x, t.y) for t in grid.tiles()} == {(0, 2), (1, 2), (0, 3), (1, 3)}
        assert all(t.z == 3 for t in grid.tiles())


class TestTileSourceConfig:
    def test_requires_xyz_placeholders(self):
        with pytest.raises(ValidationError):
            TileSourceConfig(url_template='https://example.com/{z}/{x}.png', display_name='bad')


class TestExportSettings:
    def test_defaults(self):
        s = ExportSettings()
        assert s.tile_size == 256
        assert s.output_format is OutputFormat.PNG
        assert s.subdomain == 'a'

    def test_ignores_unknown_fields(self):
        s = ExportSettings.model_validate({'concurrency': 4, 'legacy_field': True})
        assert s.concurrency == 4

    @pytest.mark.parametrize('field', ['tile_size', 'concurrency', 'max_tiles'])
    def test_positive_ints(self, field):
        with pytest.raises(ValidationError):
            ExportSettings.model_validate({field: 0})

    def test_timeout_positive(self):
        with pytest.raises(ValidationError):
            ExportSettings(tile_timeout_s=0)
