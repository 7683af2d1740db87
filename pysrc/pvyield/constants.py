"""
Physical constants and model thresholds for pvyield.

Collects every fixed number used by the sampler, the transposition model
and the energy model so that each value is defined once, with its unit.
"""

# =============================================================================
# Raster sampling
# =============================================================================

# Target number of candidate samples along one side of the pixel window.
# stride = max(1, floor(sqrt(window_w * window_h) / SAMPLES_PER_SIDE)), which
# bounds the candidate count near SAMPLES_PER_SIDE² (~250 000).
SAMPLES_PER_SIDE = 500

# Values below this are treated as nodata even when the raster declares a
# different sentinel (several formats write -9999 or -3.4e38 as fill).
NODATA_FLOOR = -9999.0

# Units assumed when the raster carries no unit metadata
DEFAULT_UNITS = "kWh/m²/day"


# =============================================================================
# Solar geometry and irradiance
# =============================================================================

# Solar constant used to normalise DNI in the anisotropy index (W/m²)
SOLAR_CONSTANT = 1367.0

# Ground albedo for the ground-reflected component
ALBEDO = 0.2

# Peak-sun-hours divisor: daily kWh/m² <-> representative W/m².
# A daily total of H kWh/m² is treated as H*1000/PEAK_SUN_HOURS W/m².
PEAK_SUN_HOURS = 5.0

# Representative instant for annual-average transposition:
# day 172 (21 June) at local solar noon.
REFERENCE_DAY_OF_YEAR = 172
REFERENCE_SOLAR_HOUR = 12.0

# Above this zenith (degrees) DNI is not back-derived from GHI
MAX_DECOMPOSITION_ZENITH_DEG = 85.0

# Floor on cos(zenith) in the beam transposition ratio (cos 85°)
MIN_COS_ZENITH = 0.087

# Erbs diffuse-fraction breakpoints
ERBS_KT_LOW = 0.22
ERBS_KT_HIGH = 0.8
ERBS_HIGH_FRACTION = 0.165


# =============================================================================
# Energy model
# =============================================================================

DAYS_PER_YEAR = 365
AVG_DAYS_PER_MONTH = 30.4375

# Added before flooring the panel count so that an exact multiple of the
# module footprint (e.g. 10.0 / 2.0 computed as 4.999999...) still fits.
PANEL_FIT_TOLERANCE = 1e-9
DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)

# Unit-resolution heuristics for reference yields (kWh/kWp):
# a 12-month sum below this is read as daily averages
MONTHLY_DAILY_THRESHOLD = 100.0
# a scalar below this is read as a daily average
SCALAR_DAILY_THRESHOLD = 10.0

# NOCT cell-temperature model: T_cell = T_amb + (NOCT - NOCT_AMBIENT)
NOCT_AMBIENT_C = 20.0
STC_CELL_TEMPERATURE_C = 25.0


# Bounds on the technology temperature correction factor
TECH_FACTOR_MIN = 0.90
TECH_FACTOR_MAX = 1.05

# Plausible specific yield band (kWh/kWp/year); outside it a warning is attached
SPECIFIC_YIELD_MIN = 900.0
SPECIFIC_YIELD_MAX = 2200.0

# Seasonal model for monthly distribution without monthly references.
# Base curve peaks in June/July (northern summer); shifted six months for
# southern latitudes. Amplitude grows linearly with |latitude|.
SEASONAL_CURVE = (-1.0, -0.75, -0.3, 0.2, 0.65, 1.0, 1.0, 0.7, 0.25, -0.25, -0.7, -1.0)
SEASONAL_AMPLITUDE_MIN = 0.02
SEASONAL_AMPLITUDE_PER_DEG = 0.008
SEASONAL_AMPLITUDE_MAX = 0.6


__all__ = [
    "SAMPLES_PER_SIDE",
    "NODATA_FLOOR",
    "DEFAULT_UNITS",
    "SOLAR_CONSTANT",
    "ALBEDO",
    "PEAK_SUN_HOURS",
    "REFERENCE_DAY_OF_YEAR",
    "REFERENCE_SOLAR_HOUR",
    "MAX_DECOMPOSITION_ZENITH_DEG",
    "MIN_COS_ZENITH",
    "ERBS_KT_LOW",
    "ERBS_KT_HIGH",
    "ERBS_HIGH_FRACTION",
    "DAYS_PER_YEAR",
    "AVG_DAYS_PER_MONTH",
    "PANEL_FIT_TOLERANCE",
    "DAYS_IN_MONTH",
    "MONTHLY_DAILY_THRESHOLD",
    "SCALAR_DAILY_THRESHOLD",
    "NOCT_AMBIENT_C",
    "STC_CELL_TEMPERATURE_C",
    "TECH_FACTOR_MIN",
    "TECH_FACTOR_MAX",
    "SPECIFIC_YIELD_MIN",
    "SPECIFIC_YIELD_MAX",
    "SEASONAL_CURVE",
    "SEASONAL_AMPLITUDE_MIN",
    "SEASONAL_AMPLITUDE_PER_DEG",
    "SEASONAL_AMPLITUDE_MAX",
]
