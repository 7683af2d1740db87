"""
Tests for zonal statistics: sampling, fallback, failures and multi-layer sampling.
"""

import math

import numpy as np
import pytest
from conftest import index_grid, square
from pvyield.errors import (
    InvalidPolygonError,
    NoValidDataError,
    OutOfCoverageError,
    RasterNotFoundError,
)
from pvyield.io import open_raster
from pvyield.zonal import compute_statistics, sample_layers, sample_polygon, sampling_stride, valid_mask


class TestComputeStatistics:
    """Tests for compute_statistics()."""

    def test_even_count_median_averages_central_values(self):
        stats = compute_statistics([4.0, 1.0, 3.0, 2.0], "u")
        assert stats.median == 2.5
        assert stats.mean == 2.5
        assert (stats.min, stats.max) == (1.0, 4.0)
        assert stats.count == 4

    def test_population_std(self):
        """Standard deviation divides by n, not n-1."""
        stats = compute_statistics([2, 4, 4, 4, 5, 5, 7, 9], "u")
        assert stats.std == pytest.approx(2.0)

    def test_single_value(self):
        stats = compute_statistics([5.5], "kWh/m²/day")
        assert (stats.mean, stats.median, stats.std, stats.count) == (5.5, 5.5, 0.0, 1)
        assert stats.units == "kWh/m²/day"

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            compute_statistics([], "u")


class TestValidMask:
    def test_filters_nodata_nonfinite_and_floor(self):
        values = np.array([1.0, -9999.0, np.nan, np.inf, -1e30, -3.0, 42.0])
        mask = valid_mask(values, nodata=42.0)
        assert mask.tolist() == [True, False, False, False, False, True, False]

    def test_nan_nodata(self):
        mask = valid_mask(np.array([np.nan, 1.0]), nodata=float("nan"))
        assert mask.tolist() == [False, True]


class TestSamplingStride:
    @pytest.mark.parametrize(
        "width,height,expected",
        [(1, 1, 1), (499, 499, 1), (500, 500, 1), (1000, 1000, 2), (1500, 1500, 3), (4000, 250, 2)],
    )
    def test_stride(self, width, height, expected):
        assert sampling_stride(width, height) == expected


class TestSamplePolygon:
    """Tests for sample_polygon()."""

    def test_constant_raster(self, make_geotiff):
        path = make_geotiff("ghi.tif", np.full((100, 100), 5.5))
        stats = sample_polygon(path, square(10.2, 40.2, 10.4, 40.4))
        assert stats.count == 400
        assert stats.mean == pytest.approx(5.5)
        assert stats.std == pytest.approx(0.0)
        assert not stats.centroid_fallback

    def test_statistics_are_ordered(self, index_raster):
        """min <= median <= max and min <= mean <= max for a valid polygon."""
        ring = [(10.31, 40.22), (10.68, 40.35), (10.52, 40.81), (10.25, 40.60)]
        stats = sample_polygon(index_raster, ring)
        assert stats.count > 0
        assert stats.min <= stats.median <= stats.max
        assert stats.min <= stats.mean <= stats.max
        assert stats.std >= 0

    def test_north_is_row_zero(self, index_raster):
        """A polygon near the northern edge samples the first rows."""
        stats = sample_polygon(index_raster, square(10.2, 40.9, 10.4, 40.95))
        # rows 5..9 hold values y*100 + x in [500, 999]
        assert 500 <= stats.min
        assert stats.max < 1000

    def test_values_match_pixels(self, index_raster):
        """Only pixel centres inside the polygon contribute."""
        stats = sample_polygon(index_raster, square(10.2, 40.2, 10.4, 40.4))
        expected = index_grid()[60:80, 20:40]
        assert stats.count == expected.size
        assert stats.mean == pytest.approx(float(expected.mean()))
        assert stats.min == expected.min()
        assert stats.max == expected.max()

    def test_subpixel_polygon_uses_centroid(self, index_raster):
        """A polygon between pixel centres falls back to the centroid pixel."""
        stats = sample_polygon(index_raster, square(10.501, 40.491, 10.503, 40.493))
        assert stats.centroid_fallback
        assert stats.count == 1
        assert stats.mean == 50 * 100 + 50

    def test_nodata_pixels_excluded(self, make_geotiff):
        data = np.full((100, 100), 4.0)
        data[:, :30] = -9999.0
        path = make_geotiff("masked.tif", data)
        stats = sample_polygon(path, square(10.2, 40.2, 10.4, 40.4))
        assert stats.count == 10 * 20
        assert stats.mean == pytest.approx(4.0)

    def test_all_nodata_raises(self, make_geotiff):
        path = make_geotiff("empty.tif", np.full((100, 100), -9999.0))
        with pytest.raises(NoValidDataError) as excinfo:
            sample_polygon(path, square(10.2, 40.2, 10.4, 40.4))
        assert excinfo.value.candidates == 401

    def test_polygon_west_of_raster(self, index_raster):
        """A polygon entirely west of the raster is out of coverage."""
        with pytest.raises(OutOfCoverageError) as excinfo:
            sample_polygon(index_raster, square(9.5, 40.2, 9.9, 40.4))
        assert excinfo.value.raster_bbox == pytest.approx((10.0, 40.0, 11.0, 41.0))
        assert excinfo.value.polygon_bbox == (9.5, 40.2, 9.9, 40.4)

    def test_polygon_just_west_of_raster(self, index_raster):
        """Within a pixel of the edge but still outside is out of coverage."""
        with pytest.raises(OutOfCoverageError):
            sample_polygon(index_raster, square(9.995, 40.2, 9.999, 40.4))

    def test_polygon_overhanging_edge(self, index_raster):
        """Only the part inside the raster is sampled."""
        stats = sample_polygon(index_raster, square(9.9, 40.2, 10.05, 40.4))
        assert stats.count == 5 * 20
        assert stats.max % 100 < 5

    def test_invalid_polygon(self, index_raster):
        with pytest.raises(InvalidPolygonError):
            sample_polygon(index_raster, [(10.1, 40.1), (10.2, 40.2)])

    def test_missing_raster(self, tmp_path):
        with pytest.raises(RasterNotFoundError):
            sample_polygon(tmp_path / "nope.tif", square(10.2, 40.2, 10.4, 40.4))

    def test_open_handle_left_open(self, index_raster):
        """A caller-owned handle is not closed by the sampler."""
        with open_raster(index_raster) as handle:
            sample_polygon(handle, square(10.2, 40.2, 10.4, 40.4))
            assert not handle.closed

    def test_large_polygon_is_strided(self, make_geotiff):
        """Windows wider than 500 pixels are subsampled."""
        path = make_geotiff("big.tif", np.ones((1200, 1200)))
        stats = sample_polygon(path, square(10.0, 40.0, 11.0, 41.0))
        assert stats.count == math.ceil(1200 / 2) ** 2

    def test_bowtie_polygon_is_sampled(self, make_geotiff):
        """A symmetric bow-tie samples both lobes instead of being rejected."""
        path = make_geotiff("ghi.tif", np.full((100, 100), 5.5))
        stats = sample_polygon(path, [(10.2, 40.2), (10.4, 40.4), (10.4, 40.2), (10.2, 40.4)])
        assert 0 < stats.count < 400
        assert stats.mean == pytest.approx(5.5)
        assert not stats.centroid_fallback


class TestRasterRelease:
    """Rasters opened by sample_polygon() are closed on every exit path."""

    @pytest.fixture
    def opened(self, monkeypatch):
        handles = []

        def recording_open(path):
            handle = open_raster(path)
            handles.append(handle)
            return handle

        monkeypatch.setattr("pvyield.zonal.open_raster", recording_open)
        return handles

    def test_closed_after_success(self, index_raster, opened):
        sample_polygon(index_raster, square(10.2, 40.2, 10.4, 40.4))
        assert len(opened) == 1
        assert opened[0].closed

    def test_closed_after_out_of_coverage(self, index_raster, opened):
        with pytest.raises(OutOfCoverageError):
            sample_polygon(index_raster, square(9.5, 40.2, 9.9, 40.4))
        assert len(opened) == 1
        assert opened[0].closed

    def test_closed_after_no_valid_data(self, make_geotiff, opened):
        path = make_geotiff("empty.tif", np.full((100, 100), -9999.0))
        with pytest.raises(NoValidDataError):
            sample_polygon(path, square(10.2, 40.2, 10.4, 40.4))
        assert len(opened) == 1
        assert opened[0].closed


class TestSampleLayers:
    """Tests for sample_layers()."""

    @pytest.fixture
    def ring(self):
        return square(10.2, 40.2, 10.4, 40.4)

    def test_all_layers(self, make_geotiff, ring):
        paths = {
            "GHI": make_geotiff("GHI.tif", np.full((100, 100), 5.5)),
            "TEMP": make_geotiff("TEMP.tif", np.full((100, 100), 27.0)),
        }
        samples = sample_layers(paths, ring)
        assert samples.mean("GHI") == pytest.approx(5.5)
        assert samples.mean("TEMP") == pytest.approx(27.0)
        assert samples.failures == {}
        assert samples.warnings == []

    def test_optional_failure_is_isolated(self, make_geotiff, tmp_path, ring):
        """A missing optional layer is reported, the others still sampled."""
        paths = {
            "GHI": make_geotiff("GHI.tif", np.full((100, 100), 5.5)),
            "DNI": tmp_path / "DNI.tif",
            "DIF": make_geotiff("DIF.tif", np.full((100, 100), 2.0)),
        }
        samples = sample_layers(paths, ring)
        assert list(samples.stats) == ["GHI", "DIF"]
        assert "DNI" not in samples
        assert isinstance(samples.failures["DNI"], RasterNotFoundError)
        assert any("DNI" in w for w in samples.warnings)

    def test_required_failure_raises(self, make_geotiff, tmp_path, ring):
        paths = {
            "GHI": tmp_path / "GHI.tif",
            "TEMP": make_geotiff("TEMP.tif", np.full((100, 100), 27.0)),
        }
        with pytest.raises(RasterNotFoundError):
            sample_layers(paths, ring)

    def test_custom_required(self, make_geotiff, tmp_path, ring):
        paths = {"GHI": make_geotiff("GHI.tif"), "PVOUT": tmp_path / "PVOUT.tif"}
        with pytest.raises(RasterNotFoundError):
            sample_layers(paths, ring, required=("GHI", "PVOUT"))

    def test_results_in_request_order(self, make_geotiff, ring):
        names = ["TEMP", "GHI", "DIF", "DNI"]
        paths = {name: make_geotiff(f"{name}.tif", np.full((100, 100), float(i))) for i, name in enumerate(names)}
        samples = sample_layers(paths, ring, max_workers=4)
        assert list(samples.stats) == names

    def test_to_dict(self, make_geotiff, tmp_path, ring):
        paths = {"GHI": make_geotiff("GHI.tif"), "TEMP": tmp_path / "TEMP.tif"}
        data = sample_layers(paths, ring).to_dict()
        assert data["layers"]["GHI"]["count"] == 400
        assert "TEMP" in data["failures"]
