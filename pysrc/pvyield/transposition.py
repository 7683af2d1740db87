"""
Hay-Davies transposition of horizontal irradiance onto a tilted plane.

The model is evaluated at ONE representative instant (by default 21 June,
local solar noon). It is an approximation for long-term averages, not an
hourly simulation: a daily total is turned into a representative
irradiance with a fixed peak-sun-hours divisor, transposed, and turned
back with the same divisor (:func:`daily_to_poa`).

Solar angles follow Spencer's Fourier series; the diffuse fraction, when
only GHI is known, follows the Erbs correlation.

References:
    - Hay J.E., Davies J.A., "Calculation of the solar radiation incident
      on an inclined surface", 1980.
    - Erbs D.G., Klein S.A., Duffie J.A., "Estimation of the diffuse
      radiation fraction for hourly, daily and monthly-average global
      radiation", Solar Energy 28(4), 1982.
    - Spencer J.W., "Fourier series representation of the position of
      the sun", Search 2(5), 1971.
"""

from __future__ import annotations

import math

import numpy as np

from .constants import (
    ALBEDO,
    ERBS_HIGH_FRACTION,
    ERBS_KT_HIGH,
    ERBS_KT_LOW,
    MAX_DECOMPOSITION_ZENITH_DEG,
    MIN_COS_ZENITH,
    PEAK_SUN_HOURS,
    REFERENCE_DAY_OF_YEAR,
    REFERENCE_SOLAR_HOUR,
    SOLAR_CONSTANT,
)
from .models.results import TranspositionResult
from .pvyield_logging import get_logger

logger = get_logger(__name__)


def _day_angle(day_of_year: float) -> float:
    return 2.0 * math.pi * (day_of_year - 1.0) / 365.0


def solar_declination(day_of_year: float) -> float:
    """Solar declination in degrees (Spencer)."""
    b = _day_angle(day_of_year)
    decl = (
        0.006918
        - 0.399912 * math.cos(b)
        + 0.070257 * math.sin(b)
        - 0.006758 * math.cos(2.0 * b)
        + 0.000907 * math.sin(2.0 * b)
        - 0.002697 * math.cos(3.0 * b)
        + 0.00148 * math.sin(3.0 * b)
    )
    return math.degrees(decl)


def equation_of_time(day_of_year: float) -> float:
    """Equation of time in minutes (Spencer)."""
    b = _day_angle(day_of_year)
    return 229.18 * (
        0.000075
        + 0.001868 * math.cos(b)
        - 0.032077 * math.sin(b)
        - 0.014615 * math.cos(2.0 * b)
        - 0.040849 * math.sin(2.0 * b)
    )


def solar_position(
    day_of_year: float,
    hour: float,
    latitude: float,
    longitude: float | None = None,
) -> tuple[float, float]:
    """
    Solar elevation and azimuth.

    Args:
        day_of_year: Day of year (1-365).
        hour: Hour of day. Local solar time when ``longitude`` is None,
            otherwise UTC (converted with the longitude and the equation
            of time).
        latitude: Site latitude in degrees (positive north).
        longitude: Site longitude in degrees (positive east), optional.

    Returns:
        (elevation, azimuth) in degrees; azimuth clockwise from north [0, 360).
    """
    if longitude is None:
        solar_time = hour
    else:
        solar_time = hour + longitude / 15.0 + equation_of_time(day_of_year) / 60.0

    decl = math.radians(solar_declination(day_of_year))
    lat = math.radians(latitude)
    hour_angle = math.radians((solar_time - 12.0) * 15.0)

    cos_zenith = math.sin(lat) * math.sin(decl) + math.cos(lat) * math.cos(decl) * math.cos(hour_angle)
    zenith = math.acos(float(np.clip(cos_zenith, -1.0, 1.0)))

    denom = math.sin(zenith) * math.cos(lat)
    if abs(denom) < 1e-9:
        # Sun at the zenith, or observer at a pole
        azimuth = 180.0
    else:
        cos_azimuth = (math.sin(decl) - math.cos(zenith) * math.sin(lat)) / denom
        azimuth = math.degrees(math.acos(float(np.clip(cos_azimuth, -1.0, 1.0))))
        if math.sin(hour_angle) > 0:
            azimuth = 360.0 - azimuth

    return 90.0 - math.degrees(zenith), azimuth % 360.0


def incidence_angle(tilt: float, azimuth: float, solar_elevation: float, solar_azimuth: float) -> float:
    """
    Angle between the sun direction and the panel normal, in degrees.

    Both vectors are built in an east/north/up frame; the cosine of their
    dot product is clamped to [-1, 1] before ``acos``. Values above 90°
    mean the sun is behind the panel.
    """
    t = math.radians(tilt)
    a = math.radians(azimuth)
    el = math.radians(solar_elevation)
    sa = math.radians(solar_azimuth)

    normal = np.array([math.sin(t) * math.sin(a), math.sin(t) * math.cos(a), math.cos(t)])
    sun = np.array([math.cos(el) * math.sin(sa), math.cos(el) * math.cos(sa), math.sin(el)])
    cos_inc = float(np.clip(np.dot(normal, sun), -1.0, 1.0))
    return math.degrees(math.acos(cos_inc))


def extraterrestrial_normal(day_of_year: float) -> float:
    """Extraterrestrial irradiance on a sun-facing plane (W/m²), Earth-Sun distance corrected."""
    b = _day_angle(day_of_year)
    e0 = (
        1.000110
        + 0.034221 * math.cos(b)
        + 0.001280 * math.sin(b)
        + 0.000719 * math.cos(2.0 * b)
        + 0.000077 * math.sin(2.0 * b)
    )
    return SOLAR_CONSTANT * e0


def clear_sky_ghi(solar_elevation: float) -> float:
    """
    Clear-sky horizontal irradiance (W/m²) from a simple air-mass model.

    Uses the Kasten-Young air mass and a fixed sea-level pressure
    attenuation. Zero when the sun is at or below the horizon.
    """
    if solar_elevation <= 0:
        return 0.0
    sin_el = math.sin(math.radians(solar_elevation))
    air_mass = 1.0 / (sin_el + 0.15 * (solar_elevation + 3.885) ** -1.253)
    return max(0.0, 1000.0 * sin_el * math.exp(-0.0001184 * air_mass * 1013.25))


def erbs_diffuse_fraction(kt: float) -> float:
    """Diffuse share of GHI for clearness index ``kt`` (Erbs)."""
    if kt <= 0:
        return 1.0
    if kt <= ERBS_KT_LOW:
        return 1.0 - 0.09 * kt
    if kt <= ERBS_KT_HIGH:
        return 0.9511 - 0.1604 * kt + 4.388 * kt**2 - 16.638 * kt**3 + 12.336 * kt**4
    return ERBS_HIGH_FRACTION


def decompose_ghi(ghi: float, solar_elevation: float) -> tuple[float, float]:
    """
    Split GHI into (DNI, DIF) with the Erbs correlation.

    DNI is back-derived as ``(GHI - DIF) / cos(zenith)`` and set to zero
    when the zenith exceeds ``MAX_DECOMPOSITION_ZENITH_DEG``. When the
    clear-sky reference is zero (sun down) everything is diffuse.
    """
    clear_sky = clear_sky_ghi(solar_elevation)
    fraction = erbs_diffuse_fraction(ghi / clear_sky) if clear_sky > 0 else 1.0
    dif = ghi * fraction

    zenith = 90.0 - solar_elevation
    if zenith > MAX_DECOMPOSITION_ZENITH_DEG:
        dni = 0.0
    else:
        dni = max(0.0, (ghi - dif) / math.cos(math.radians(zenith)))
    return dni, dif


def hay_davies(
    ghi: float,
    latitude: float,
    tilt: float,
    azimuth: float,
    dni: float | None = None,
    dif: float | None = None,
    day_of_year: int = REFERENCE_DAY_OF_YEAR,
    hour: float = REFERENCE_SOLAR_HOUR,
    longitude: float | None = None,
) -> TranspositionResult:
    """
    Plane-of-array irradiance for one instant (Hay-Davies model).

    Args:
        ghi: Global horizontal irradiance (W/m²).
        latitude: Site latitude in degrees.
        tilt: Panel tilt from horizontal, degrees [0, 90].
        azimuth: Panel azimuth clockwise from north, degrees.
        dni: Direct normal irradiance (W/m²). Used only together with ``dif``.
        dif: Diffuse horizontal irradiance (W/m²). Used only together with ``dni``.
        day_of_year: Day for the solar position. Default 172 (21 June).
        hour: Hour for the solar position. Default solar noon.
        longitude: When given, ``hour`` is read as UTC. Leave it None to
            evaluate at local solar noon, as :func:`daily_to_poa` does.

    Returns:
        TranspositionResult in W/m².

    Raises:
        ValueError: If GHI is negative or not finite, or tilt is outside [0, 90].
    """
    if not math.isfinite(ghi) or ghi < 0:
        raise ValueError(f"GHI must be a finite non-negative number, got {ghi}")
    if not 0 <= tilt <= 90:
        raise ValueError(f"Tilt must be in [0, 90] degrees, got {tilt}")

    elevation, sun_azimuth = solar_position(day_of_year, hour, latitude, longitude)
    zenith = 90.0 - elevation
    inc = incidence_angle(tilt, azimuth, elevation, sun_azimuth)

    decomposed = dni is None or dif is None
    if decomposed:
        if dni is not None or dif is not None:
            logger.debug("Only one of DNI/DIF supplied, decomposing GHI instead")
        dni, dif = decompose_ghi(ghi, elevation)

    cos_inc = max(0.0, math.cos(math.radians(inc)))
    cos_zenith = math.cos(math.radians(zenith))
    cos_tilt = math.cos(math.radians(tilt))

    anisotropy = min(1.0, max(0.0, dni / extraterrestrial_normal(day_of_year)))
    rb = cos_inc / max(MIN_COS_ZENITH, cos_zenith)

    beam = dni * cos_inc
    sky_diffuse = dif * (anisotropy * rb + (1.0 - anisotropy) * (1.0 + cos_tilt) / 2.0)
    ground = ghi * ALBEDO * (1.0 - cos_tilt) / 2.0

    return TranspositionResult(
        poa=max(0.0, beam + sky_diffuse + ground),
        beam=max(0.0, beam),
        sky_diffuse=max(0.0, sky_diffuse),
        ground_reflected=max(0.0, ground),
        dni=dni,
        dif=dif,
        solar_elevation=elevation,
        solar_azimuth=sun_azimuth,
        incidence_angle=inc,
        decomposed=decomposed,
    )


def daily_to_poa(
    ghi_daily: float,
    latitude: float,
    tilt: float,
    azimuth: float,
    dni_daily: float | None = None,
    dif_daily: float | None = None,
) -> TranspositionResult:
    """
    Transpose daily-average horizontal irradiance (kWh/m²/day).

    Every input is converted to a representative irradiance with the same
    divisor (``value * 1000 / PEAK_SUN_HOURS`` W/m²), transposed at the
    reference instant, and converted back with the same factor. The result
    is a stated approximation, not an integral over the day.

    The reference instant is local solar noon of day 172 at every site, so
    no longitude is taken. :func:`pvyield.api.estimate` relies on this and
    never passes the site longitude through.

    Returns:
        TranspositionResult whose irradiance fields are in kWh/m²/day.
    """
    to_watts = 1000.0 / PEAK_SUN_HOURS

    def scale(value: float | None) -> float | None:
        return None if value is None else value * to_watts

    result = hay_davies(
        ghi_daily * to_watts,
        latitude=latitude,
        tilt=tilt,
        azimuth=azimuth,
        dni=scale(dni_daily),
        dif=scale(dif_daily),
    )
    logger.debug(
        f"Transposed GHI {ghi_daily:.3f} -> POA {result.poa / to_watts:.3f} kWh/m²/day "
        f"(elevation {result.solar_elevation:.1f}°, incidence {result.incidence_angle:.1f}°)"
    )
    return TranspositionResult(
        poa=result.poa / to_watts,
        beam=result.beam / to_watts,
        sky_diffuse=result.sky_diffuse / to_watts,
        ground_reflected=result.ground_reflected / to_watts,
        dni=result.dni / to_watts,
        dif=result.dif / to_watts,
        solar_elevation=result.solar_elevation,
        solar_azimuth=result.solar_azimuth,
        incidence_angle=result.incidence_angle,
        decomposed=result.decomposed,
    )
