"""
Tests for the Hay-Davies transposition model and its solar geometry.
"""

import pytest
from pvyield.transposition import (
    clear_sky_ghi,
    daily_to_poa,
    decompose_ghi,
    erbs_diffuse_fraction,
    extraterrestrial_normal,
    hay_davies,
    incidence_angle,
    solar_declination,
    solar_position,
)


class TestSolarGeometry:
    """Tests for solar position and incidence angle."""

    def test_declination_at_solstice(self):
        assert solar_declination(172) == pytest.approx(23.45, abs=0.1)
        assert solar_declination(355) == pytest.approx(-23.4, abs=0.2)

    def test_noon_elevation_mid_latitude(self):
        """At solar noon the elevation is 90 - |lat - decl| and the sun is due south."""
        elevation, azimuth = solar_position(172, 12.0, 50.0)
        assert elevation == pytest.approx(90.0 - (50.0 - solar_declination(172)), abs=1e-6)
        assert azimuth == pytest.approx(180.0, abs=1e-3)

    def test_noon_sun_north_of_tropics(self):
        """South of the subsolar point the noon sun is due north."""
        elevation, azimuth = solar_position(172, 12.0, -30.0)
        assert elevation == pytest.approx(90.0 - (30.0 + solar_declination(172)), abs=1e-6)
        assert min(azimuth, 360.0 - azimuth) < 1e-3

    def test_morning_east_afternoon_west(self):
        _, morning = solar_position(172, 9.0, 45.0)
        _, afternoon = solar_position(172, 15.0, 45.0)
        assert 0 < morning < 180
        assert 180 < afternoon < 360

    def test_utc_hour_with_longitude(self):
        """Giving a longitude reads the hour as UTC."""
        local = solar_position(172, 12.0, 12.97)
        utc = solar_position(172, 12.0 - 77.6 / 15.0, 12.97, longitude=77.6)
        assert utc[0] == pytest.approx(local[0], abs=1.0)

    def test_horizontal_panel_incidence_equals_zenith(self):
        assert incidence_angle(0.0, 180.0, 60.0, 135.0) == pytest.approx(30.0)

    def test_panel_facing_sun(self):
        assert incidence_angle(40.0, 200.0, 50.0, 200.0) == pytest.approx(0.0, abs=1e-4)

    def test_sun_behind_panel(self):
        """A vertical north-facing panel does not see a southern noon sun."""
        assert incidence_angle(90.0, 0.0, 40.0, 180.0) > 90.0

    def test_extraterrestrial_perihelion_above_aphelion(self):
        assert extraterrestrial_normal(3) > 1400 > 1330 > extraterrestrial_normal(185)


class TestDecomposition:
    """Tests for clear-sky estimate and the Erbs correlation."""

    def test_clear_sky_overhead_sun(self):
        assert 880.0 < clear_sky_ghi(90.0) < 890.0

    def test_clear_sky_sun_down(self):
        assert clear_sky_ghi(0.0) == 0.0
        assert clear_sky_ghi(-10.0) == 0.0

    def test_clear_sky_increases_with_elevation(self):
        assert clear_sky_ghi(20.0) < clear_sky_ghi(45.0) < clear_sky_ghi(70.0)

    @pytest.mark.parametrize(
        "kt,expected",
        [(0.0, 1.0), (0.1, 0.991), (0.22, 0.9802), (0.5, 0.65915), (0.8, 0.1654), (0.95, 0.165)],
    )
    def test_erbs_branches(self, kt, expected):
        assert erbs_diffuse_fraction(kt) == pytest.approx(expected, abs=1e-3)

    def test_erbs_continuous_at_low_breakpoint(self):
        assert erbs_diffuse_fraction(0.2200001) == pytest.approx(erbs_diffuse_fraction(0.22), abs=1e-3)

    def test_decomposition_conserves_ghi(self):
        """DIF + DNI cos(zenith) == GHI when the sun is high."""
        elevation = 60.0
        dni, dif = decompose_ghi(700.0, elevation)
        cos_zenith = 0.8660254037844387
        assert dif + dni * cos_zenith == pytest.approx(700.0)

    def test_low_sun_has_no_beam(self):
        dni, dif = decompose_ghi(50.0, 3.0)
        assert dni == 0.0
        assert dif > 0


class TestHayDavies:
    """Tests for hay_davies()."""

    def test_horizontal_surface_returns_ghi(self):
        """A flat panel receives exactly the horizontal irradiance."""
        result = hay_davies(800.0, latitude=30.0, tilt=0.0, azimuth=180.0)
        assert result.poa == pytest.approx(800.0)
        assert result.ground_reflected == 0.0
        assert result.decomposed

    def test_components_sum_to_poa(self):
        result = hay_davies(900.0, latitude=45.0, tilt=35.0, azimuth=180.0)
        assert result.beam + result.sky_diffuse + result.ground_reflected == pytest.approx(result.poa)

    def test_equator_facing_tilt_gains_at_high_latitude(self):
        """At 50°N a south-facing tilt sees more than the horizontal plane."""
        south = hay_davies(800.0, latitude=50.0, tilt=25.0, azimuth=180.0)
        north = hay_davies(800.0, latitude=50.0, tilt=25.0, azimuth=0.0)
        assert south.poa > 800.0 > north.poa

    def test_supplied_components_are_used(self):
        result = hay_davies(800.0, latitude=20.0, tilt=20.0, azimuth=180.0, dni=650.0, dif=150.0)
        assert not result.decomposed
        assert (result.dni, result.dif) == (650.0, 150.0)

    def test_single_component_triggers_decomposition(self):
        result = hay_davies(800.0, latitude=20.0, tilt=20.0, azimuth=180.0, dni=650.0)
        assert result.decomposed

    def test_ground_reflection_vertical(self):
        """A vertical panel sees half the ground at albedo 0.2."""
        result = hay_davies(1000.0, latitude=40.0, tilt=90.0, azimuth=180.0, dni=0.0, dif=0.0)
        assert result.ground_reflected == pytest.approx(100.0)
        assert result.poa == pytest.approx(100.0)

    def test_poa_never_negative(self):
        result = hay_davies(0.0, latitude=60.0, tilt=90.0, azimuth=0.0)
        assert result.poa == 0.0

    def test_invalid_inputs(self):
        with pytest.raises(ValueError, match="GHI"):
            hay_davies(-1.0, latitude=0.0, tilt=10.0, azimuth=180.0)
        with pytest.raises(ValueError, match="Tilt"):
            hay_davies(500.0, latitude=0.0, tilt=95.0, azimuth=180.0)


class TestDailyToPoa:
    """Tests for daily_to_poa(): peak-sun-hours conversion at the boundary."""

    def test_flat_panel_identity(self):
        result = daily_to_poa(5.5, latitude=12.97, tilt=0.0, azimuth=180.0)
        assert result.poa == pytest.approx(5.5)

    def test_components_use_same_divisor(self):
        """DNI and DIF come back in the same daily units they went in."""
        result = daily_to_poa(5.0, latitude=20.0, tilt=15.0, azimuth=180.0, dni_daily=4.0, dif_daily=2.0)
        assert result.dni == pytest.approx(4.0)
        assert result.dif == pytest.approx(2.0)
        assert not result.decomposed

    def test_more_irradiance_more_poa(self):
        low = daily_to_poa(4.0, latitude=35.0, tilt=30.0, azimuth=180.0)
        high = daily_to_poa(6.0, latitude=35.0, tilt=30.0, azimuth=180.0)
        assert high.poa > low.poa > 0

    def test_evaluated_at_local_solar_noon(self):
        """The sun position is the day-172 noon one, independent of longitude."""
        result = daily_to_poa(5.5, latitude=12.97, tilt=20.0, azimuth=180.0)
        elevation, azimuth = solar_position(172, 12.0, 12.97)
        assert result.solar_elevation == pytest.approx(elevation)
        assert result.solar_azimuth == pytest.approx(azimuth)
