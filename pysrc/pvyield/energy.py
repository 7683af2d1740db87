"""
PV energy model: sizing, reference-yield resolution, technology and grid
corrections, and monthly distribution.

Pipeline for one estimate (see :func:`estimate_energy`):

1. Size the system from the roof area (panel count, DC and AC capacity).
2. Resolve the reference specific yield and its units (monthly, annual or
   daily values), falling back to ``irradiance × 365 × PR``.
3. Base energy = DC capacity × specific yield.
4. Apply the clamped technology temperature correction.
5. Flag implausible specific yields (warning, never an exception).
6. Apply the grid usable-energy fraction.
7. Distribute the usable energy over the 12 months.

The unit heuristics in :func:`resolve_reference_yield` infer units from
magnitude. They are heuristics, not guarantees.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import TYPE_CHECKING

import numpy as np

from .constants import (
    AVG_DAYS_PER_MONTH,
    DAYS_IN_MONTH,
    DAYS_PER_YEAR,
    MONTHLY_DAILY_THRESHOLD,
    NOCT_AMBIENT_C,
    PANEL_FIT_TOLERANCE,
    SCALAR_DAILY_THRESHOLD,
    SEASONAL_AMPLITUDE_MAX,
    SEASONAL_AMPLITUDE_MIN,
    SEASONAL_AMPLITUDE_PER_DEG,
    SEASONAL_CURVE,
    SPECIFIC_YIELD_MAX,
    SPECIFIC_YIELD_MIN,
    STC_CELL_TEMPERATURE_C,
    TECH_FACTOR_MAX,
    TECH_FACTOR_MIN,
)
from .errors import InsufficientAreaError
from .models.results import EnergyResult, ReferenceYield, SystemSizing
from .pvyield_logging import get_logger

if TYPE_CHECKING:
    from .models.config import SystemConfiguration
    from .models.profiles import ProfileCatalog

logger = get_logger(__name__)


def size_system(
    area_m2: float,
    config: SystemConfiguration,
    installed_capacity_kwp: float | None = None,
) -> SystemSizing:
    """
    Geometric sizing of the installation.

    Args:
        area_m2: Roof area in m².
        config: System configuration (packing factor, module footprint/power,
            DC:AC ratio).
        installed_capacity_kwp: Optional DC capacity replacing the derived
            one. Panel count and areas are still reported from geometry.

    Returns:
        SystemSizing

    Raises:
        InsufficientAreaError: If the area is not positive, no module fits,
            or the resulting DC capacity is not positive.

    Example:
        >>> sizing = size_system(100.0, SystemConfiguration())
        >>> sizing.panel_count, sizing.dc_capacity_kwp  # (47, 19.74)
    """
    if area_m2 is None or not math.isfinite(area_m2) or area_m2 <= 0:
        raise InsufficientAreaError("area must be a positive number", area_m2)

    effective_area = area_m2 * config.packing_factor
    panel_count = int(math.floor(effective_area / config.module_area_m2 + PANEL_FIT_TOLERANCE))
    if panel_count == 0:
        raise InsufficientAreaError(
            f"effective area {effective_area:.2f} m² is smaller than one module ({config.module_area_m2} m²)",
            area_m2,
        )

    geometric_dc = panel_count * config.module_power_w / 1000.0
    overridden = installed_capacity_kwp is not None
    if overridden:
        if not math.isfinite(installed_capacity_kwp) or installed_capacity_kwp <= 0:
            raise InsufficientAreaError(
                f"installed capacity must be positive, got {installed_capacity_kwp}", area_m2
            )
        dc_capacity = float(installed_capacity_kwp)
    else:
        dc_capacity = geometric_dc

    if dc_capacity <= 0:
        raise InsufficientAreaError("DC capacity is zero", area_m2)

    return SystemSizing(
        area_m2=float(area_m2),
        effective_area_m2=effective_area,
        panel_count=panel_count,
        geometric_dc_kwp=geometric_dc,
        dc_capacity_kwp=dc_capacity,
        ac_capacity_kw=dc_capacity / config.dc_ac_ratio,
        capacity_overridden=overridden,
    )


def resolve_reference_yield(
    monthly: Sequence[float] | None = None,
    annual: float | None = None,
    irradiance_mean: float | None = None,
    performance_ratio: float | None = None,
) -> ReferenceYield:
    """
    Annual specific yield (kWh/kWp/year) from whatever reference is available.

    Heuristics, in order of preference:

    - ``monthly`` (12 values): a sum below ``MONTHLY_DAILY_THRESHOLD`` is
      read as daily averages and annualised with ``sum × 30.4375``;
      otherwise the sum is already annual.
    - ``annual`` (scalar): below ``SCALAR_DAILY_THRESHOLD`` it is a daily
      average (× 365); otherwise it is already annual.
    - Neither: ``irradiance_mean × 365 × performance_ratio``.

    Raises:
        ValueError: If ``monthly`` does not hold 12 values, or no reference
            and no irradiance fallback is available.
    """
    if monthly is not None:
        values = tuple(float(v) for v in monthly)
        if len(values) != 12:
            raise ValueError(f"Monthly reference yield needs 12 values, got {len(values)}")
        total = sum(values)
        if all(math.isfinite(v) and v >= 0 for v in values) and total > 0:
            if total < MONTHLY_DAILY_THRESHOLD:
                return ReferenceYield(total * AVG_DAYS_PER_MONTH, "monthly", "daily", values)
            return ReferenceYield(total, "monthly", "annual", values)
        logger.warning("Monthly reference yield is empty or invalid, ignoring it")

    if annual is not None and math.isfinite(annual) and annual > 0:
        if annual < SCALAR_DAILY_THRESHOLD:
            return ReferenceYield(annual * DAYS_PER_YEAR, "annual", "daily")
        return ReferenceYield(float(annual), "annual", "annual")

    if irradiance_mean is None or performance_ratio is None:
        raise ValueError("No reference yield and no irradiance to fall back on")
    return ReferenceYield(irradiance_mean * DAYS_PER_YEAR * performance_ratio, "irradiance", "daily")


def cell_temperature(ambient_temperature: float, noct_c: float) -> float:
    """Mean cell temperature (°C): ``T_ambient + (NOCT - 20)``."""
    return ambient_temperature + (noct_c - NOCT_AMBIENT_C)


def technology_factor(
    ambient_temperature: float,
    temperature_coefficient: float,
    noct_c: float,
    reference_coefficient: float,
) -> float:
    """
    Relative energy correction of a technology against the baseline.

    ``f = 1 + (coef - reference_coef) × (T_cell - 25)``, clamped to
    ``[TECH_FACTOR_MIN, TECH_FACTOR_MAX]``.
    """
    t_cell = cell_temperature(ambient_temperature, noct_c)
    factor = 1.0 + (temperature_coefficient - reference_coefficient) * (t_cell - STC_CELL_TEMPERATURE_C)
    return float(np.clip(factor, TECH_FACTOR_MIN, TECH_FACTOR_MAX))


def monthly_shares(values: Sequence[float]) -> tuple[float, ...]:
    """Normalise 12 monthly values to shares that sum to 1."""
    arr = np.asarray(values, dtype=np.float64)
    return tuple(float(v) for v in arr / arr.sum())


def seasonal_shares(latitude: float) -> tuple[float, ...]:
    """
    Monthly shares from the latitude seasonal model.

    The base curve peaks in northern summer and is shifted by six months
    south of the equator. Its amplitude grows with ``|latitude|`` (bounded
    by ``SEASONAL_AMPLITUDE_MAX``). Each month is weighted by its length,
    then the shares are renormalised to sum to 1.
    """
    amplitude = min(SEASONAL_AMPLITUDE_MAX, SEASONAL_AMPLITUDE_MIN + SEASONAL_AMPLITUDE_PER_DEG * abs(latitude))
    curve = np.asarray(SEASONAL_CURVE, dtype=np.float64)
    if latitude < 0:
        curve = np.roll(curve, 6)
    raw = (1.0 + amplitude * curve) * np.asarray(DAYS_IN_MONTH, dtype=np.float64)
    return tuple(float(v) for v in raw / raw.sum())


def estimate_energy(
    area_m2: float,
    ghi_mean: float,
    config: SystemConfiguration,
    profiles: ProfileCatalog,
    technology: str | None = None,
    grid_mode: str = "on-grid",
    poa_mean: float | None = None,
    ambient_temperature: float | None = None,
    reference_annual: float | None = None,
    reference_monthly: Sequence[float] | None = None,
    latitude: float | None = None,
    installed_capacity_kwp: float | None = None,
) -> EnergyResult:
    """
    Energy estimate for one site and system configuration.

    Args:
        area_m2: Roof area (m²).
        ghi_mean: Mean daily horizontal irradiance (kWh/m²/day).
        config: System configuration. Never modified.
        profiles: Technology/grid profile catalog.
        technology: Technology key. When None, the configuration's own
            coefficient/NOCT are used if set, else the baseline technology.
        grid_mode: Grid profile key.
        poa_mean: Plane-of-array irradiance (kWh/m²/day); replaces GHI in
            the irradiance model when given.
        ambient_temperature: Mean ambient temperature (°C). Without it the
            technology correction is skipped (factor 1.0, with a warning).
        reference_annual: Reference specific yield, annual or daily.
        reference_monthly: 12 monthly reference specific yields.
        latitude: Site latitude, used by the seasonal model when no monthly
            reference is given. Defaults to the equator.
        installed_capacity_kwp: Optional DC capacity override.

    Returns:
        EnergyResult with warnings for non-fatal issues.

    Raises:
        InsufficientAreaError: If sizing yields no panels or no capacity.
        ConfigurationError: On unknown technology or grid keys.
    """
    warnings: list[str] = []
    sizing = size_system(area_m2, config, installed_capacity_kwp)
    dc = sizing.dc_capacity_kwp

    # Technology profile
    baseline = profiles.baseline
    if technology is not None:
        profile = profiles.technology(technology)
        config = config.with_technology(profile)
        tech_name = profile.name
    elif config.has_technology:
        tech_name = "custom"
    else:
        config = config.with_technology(baseline)
        tech_name = baseline.name
    grid = profiles.grid(grid_mode)

    irradiance = poa_mean if poa_mean is not None else ghi_mean

    # Reference specific yield
    reference = resolve_reference_yield(
        monthly=reference_monthly,
        annual=reference_annual,
        irradiance_mean=irradiance,
        performance_ratio=config.performance_ratio,
    )
    logger.debug(
        f"Reference yield {reference.annual_kwh_per_kwp:.1f} kWh/kWp/year "
        f"(source={reference.source}, read as {reference.interpreted_as})"
    )
    raw_annual = dc * reference.annual_kwh_per_kwp

    # Irradiance-only cross-check
    model_annual = area_m2 * irradiance * config.panel_efficiency * config.performance_ratio * DAYS_PER_YEAR
    calibration_scale = None
    if reference.source != "irradiance" and model_annual > 0:
        calibration_scale = reference.annual_kwh_per_kwp / (model_annual / dc)

    # Technology temperature correction
    if ambient_temperature is None:
        factor = 1.0
        t_cell = None
        if tech_name != baseline.name:
            warnings.append("No ambient temperature available; technology correction not applied")
    else:
        factor = technology_factor(
            ambient_temperature,
            config.temperature_coefficient,
            config.noct_c,
            baseline.temperature_coefficient,
        )
        t_cell = cell_temperature(ambient_temperature, config.noct_c)

    calibrated_annual = raw_annual * factor
    calibrated_specific = calibrated_annual / dc

    suspicious = not SPECIFIC_YIELD_MIN <= calibrated_specific <= SPECIFIC_YIELD_MAX
    if suspicious:
        message = (
            f"Specific yield {calibrated_specific:.0f} kWh/kWp/year is outside the plausible range "
            f"{SPECIFIC_YIELD_MIN:.0f}-{SPECIFIC_YIELD_MAX:.0f}"
        )
        logger.warning(message)
        warnings.append(message)

    usable_annual = calibrated_annual * grid.usable_fraction

    # Monthly distribution
    if reference.monthly_values is not None:
        shares = monthly_shares(reference.monthly_values)
        monthly_source = "reference"
    else:
        shares = seasonal_shares(latitude if latitude is not None else 0.0)
        monthly_source = "latitude-model"
    monthly_energy = tuple(usable_annual * share for share in shares)

    logger.info(
        f"Estimated {usable_annual:.0f} kWh/year usable from {dc:.2f} kWp "
        f"({sizing.panel_count} panels, {tech_name}, {grid.name})"
    )

    return EnergyResult(
        area_m2=sizing.area_m2,
        effective_area_m2=sizing.effective_area_m2,
        panel_count=sizing.panel_count,
        dc_capacity_kwp=dc,
        ac_capacity_kw=sizing.ac_capacity_kw,
        capacity_overridden=sizing.capacity_overridden,
        ghi_mean=ghi_mean,
        poa_mean=poa_mean,
        ambient_temperature=ambient_temperature,
        cell_temperature=t_cell,
        technology=tech_name,
        grid_mode=grid.name,
        reference_source=reference.source,
        reference_interpreted_as=reference.interpreted_as,
        raw_specific_yield=reference.annual_kwh_per_kwp,
        raw_annual_energy_kwh=raw_annual,
        technology_factor=factor,
        calibrated_annual_energy_kwh=calibrated_annual,
        calibrated_specific_yield=calibrated_specific,
        irradiance_model_annual_kwh=model_annual,
        calibration_scale=calibration_scale,
        usable_fraction=grid.usable_fraction,
        usable_annual_energy_kwh=usable_annual,
        usable_daily_energy_kwh=usable_annual / DAYS_PER_YEAR,
        monthly_energy_kwh=monthly_energy,
        monthly_source=monthly_source,
        warnings=tuple(warnings),
        is_suspicious=suspicious,
    )
