"""
Tests for raster access: opening, coordinate mapping and windowed reads.
"""

import numpy as np
import pytest
from conftest import index_grid
from pvyield.errors import InvalidWindowError, RasterFormatError, RasterNotFoundError
from pvyield.io import GeoReference, PixelWindow, open_raster, read_window


class TestGeoReference:
    """Tests for the lon/lat <-> pixel mapping."""

    @pytest.fixture
    def georef(self):
        return GeoReference(min_lon=10.0, min_lat=40.0, max_lon=11.0, max_lat=41.0, width=100, height=100)

    def test_corners(self, georef):
        """Top-left maps to (0, 0); bottom-right to (width-1, height-1)."""
        assert georef.to_pixel(10.0, 41.0) == (0, 0)
        assert georef.to_pixel(11.0, 40.0) == (99, 99)

    def test_y_axis_is_flipped(self, georef):
        """Row 0 is the northern edge: larger latitude gives a smaller row."""
        _, y_north = georef.to_pixel(10.5, 40.9)
        _, y_south = georef.to_pixel(10.5, 40.1)
        assert y_north < y_south

    def test_pixel_center(self, georef):
        lon, lat = georef.pixel_center(0, 0)
        assert float(lon) == pytest.approx(10.005)
        assert float(lat) == pytest.approx(40.995)

    @pytest.mark.parametrize("width,height", [(100, 100), (37, 23), (2, 5)])
    def test_round_trip_every_pixel(self, width, height):
        """pixel -> centre lon/lat -> pixel returns the same index."""
        georef = GeoReference(-5.0, 30.0, 7.0, 36.5, width, height)
        for y in range(height):
            for x in range(width):
                lon, lat = georef.pixel_center(x, y)
                assert georef.to_pixel(float(lon), float(lat)) == (x, y)

    def test_window_for_bbox_widens_outward(self, georef):
        window = georef.window_for_bbox((10.2, 40.2, 10.4, 40.4))
        assert window.as_tuple() == (19, 59, 40, 80)

    def test_window_for_bbox_clamped(self, georef):
        """A box overhanging the raster is clamped to its edges."""
        window = georef.window_for_bbox((9.5, 40.5, 10.1, 41.5))
        assert window.x_min == 0
        assert window.y_min == 0
        assert not window.is_empty

    def test_window_for_bbox_outside_is_empty(self, georef):
        assert georef.window_for_bbox((12.0, 40.0, 13.0, 41.0)).is_empty


class TestPixelWindow:
    def test_size(self):
        window = PixelWindow(2, 3, 5, 4)
        assert (window.width, window.height) == (4, 2)

    def test_clamp(self):
        assert PixelWindow(-3, -1, 120, 7).clamp(100, 50) == PixelWindow(0, 0, 99, 7)

    def test_empty(self):
        assert PixelWindow(5, 0, 4, 3).is_empty
        assert not PixelWindow(5, 0, 5, 0).is_empty


class TestOpenRaster:
    """Tests for open_raster()."""

    def test_metadata(self, make_geotiff):
        path = make_geotiff("ghi.tif", np.ones((20, 40)), bounds=(70.0, 10.0, 72.0, 11.0), units="kWh/m2/day")
        with open_raster(path) as handle:
            assert (handle.width, handle.height) == (40, 20)
            assert handle.bbox == pytest.approx((70.0, 10.0, 72.0, 11.0))
            assert handle.nodata == -9999.0
            assert handle.units == "kWh/m2/day"

    def test_default_units(self, make_geotiff):
        with open_raster(make_geotiff()) as handle:
            assert handle.units == "kWh/m²/day"

    def test_missing_file(self, tmp_path):
        with pytest.raises(RasterNotFoundError) as excinfo:
            open_raster(tmp_path / "missing.tif")
        assert excinfo.value.path.name == "missing.tif"

    def test_directory_is_not_a_raster(self, tmp_path):
        with pytest.raises(RasterNotFoundError):
            open_raster(tmp_path)

    def test_unparseable_file(self, tmp_path):
        path = tmp_path / "broken.tif"
        path.write_text("this is not a GeoTIFF")
        with pytest.raises(RasterFormatError) as excinfo:
            open_raster(path)
        assert excinfo.value.path == path

    def test_projected_crs_rejected(self, make_geotiff):
        """Rasters are never re-projected, so projected CRSs are refused."""
        path = make_geotiff("utm.tif", np.ones((10, 10)), bounds=(500000, 4400000, 501000, 4401000), crs="EPSG:32633")
        with pytest.raises(RasterFormatError, match="projected"):
            open_raster(path)

    def test_context_manager_closes(self, make_geotiff):
        with open_raster(make_geotiff()) as handle:
            assert not handle.closed
        assert handle.closed


class TestReadWindow:
    """Tests for read_window()."""

    def test_reads_only_the_window(self, index_raster):
        with open_raster(index_raster) as handle:
            values = read_window(handle, PixelWindow(10, 20, 12, 21))
        expected = index_grid()[20:22, 10:13].ravel()
        np.testing.assert_array_equal(values, expected)

    def test_window_clamped(self, index_raster):
        """A window overhanging the top-left corner is clamped to the raster."""
        with open_raster(index_raster) as handle:
            values = read_window(handle, PixelWindow(-5, -5, 3, 2))
        assert values.size == 4 * 3
        assert values[0] == 0.0
        assert values[-1] == 2 * 100 + 3

    def test_empty_window_rejected(self, index_raster):
        with open_raster(index_raster) as handle, pytest.raises(InvalidWindowError) as excinfo:
            read_window(handle, PixelWindow(200, 200, 210, 210))
        assert excinfo.value.shape == (100, 100)

    def test_closed_handle_rejected(self, index_raster):
        handle = open_raster(index_raster)
        handle.close()
        with pytest.raises(ValueError, match="closed"):
            read_window(handle, PixelWindow(0, 0, 1, 1))
