"""Result data models."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ZonalStatistics:
    """
    Summary of the valid raster samples under one polygon.

    Attributes:
        mean: Arithmetic mean.
        median: Middle value; mean of the two central values for even counts.
        min: Smallest sample.
        max: Largest sample.
        std: Population standard deviation.
        count: Number of valid samples.
        units: Units reported by the raster.
        centroid_fallback: True when the value came from the single pixel
            nearest the polygon centroid.
    """

    mean: float
    median: float
    min: float
    max: float
    std: float
    count: int
    units: str
    centroid_fallback: bool = False

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass
class LayerSamples:
    """
    Statistics for several layers sampled under the same polygon.

    Layers that failed are absent from ``stats``; their errors are kept in
    ``failures`` and summarised in ``warnings``.
    """

    stats: dict[str, ZonalStatistics] = field(default_factory=dict)
    failures: dict[str, Exception] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def __contains__(self, layer: str) -> bool:
        return layer in self.stats

    def __getitem__(self, layer: str) -> ZonalStatistics:
        return self.stats[layer]

    def mean(self, layer: str) -> float | None:
        """Mean of a layer, or None if it was not sampled."""
        stats = self.stats.get(layer)
        return stats.mean if stats is not None else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "layers": {name: s.to_dict() for name, s in self.stats.items()},
            "failures": {name: str(err) for name, err in self.failures.items()},
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class TranspositionResult:
    """
    Plane-of-array irradiance and its components, in the input's units.

    Attributes:
        poa: Total plane-of-array irradiance (>= 0).
        beam: Direct beam on the plane.
        sky_diffuse: Hay-Davies sky diffuse on the plane.
        ground_reflected: Ground-reflected component.
        dni: Direct normal irradiance used.
        dif: Diffuse horizontal irradiance used.
        solar_elevation: Sun elevation (degrees).
        solar_azimuth: Sun azimuth clockwise from north (degrees).
        incidence_angle: Angle between sun and panel normal (degrees).
        decomposed: True when DNI/DIF were estimated from GHI (Erbs).
    """

    poa: float
    beam: float
    sky_diffuse: float
    ground_reflected: float
    dni: float
    dif: float
    solar_elevation: float
    solar_azimuth: float
    incidence_angle: float
    decomposed: bool

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass(frozen=True)
class SystemSizing:
    """
    Geometric sizing of an installation.

    ``dc_capacity_kwp`` is the capacity used downstream; it equals the
    override when one was supplied, while ``panel_count`` and the areas
    always come from geometry.
    """

    area_m2: float
    effective_area_m2: float
    panel_count: int
    geometric_dc_kwp: float
    dc_capacity_kwp: float
    ac_capacity_kw: float
    capacity_overridden: bool = False


@dataclass(frozen=True)
class ReferenceYield:
    """
    Annual specific yield after unit resolution.

    Attributes:
        annual_kwh_per_kwp: Annual specific yield (kWh/kWp/year).
        source: ``"monthly"``, ``"annual"`` or ``"irradiance"`` (fallback).
        interpreted_as: ``"daily"`` or ``"annual"``: how the raw values were read.
        monthly_values: The 12 raw monthly values when the source is monthly.
    """

    annual_kwh_per_kwp: float
    source: str
    interpreted_as: str
    monthly_values: tuple[float, ...] | None = None


@dataclass(frozen=True)
class EnergyResult:
    """
    Energy estimate for one site and configuration.

    Energies are kWh, capacities kWp (DC) / kW (AC), specific yields
    kWh/kWp/year. Irradiance echoes keep the units of the sampled layers.

    Attributes:
        area_m2: Roof area supplied.
        effective_area_m2: Area usable for modules (area × packing factor).
        panel_count: Modules that fit the effective area.
        dc_capacity_kwp: Installed DC capacity used for energy.
        ac_capacity_kw: Inverter AC capacity (DC / DC:AC ratio).
        capacity_overridden: True when an installed-capacity override was used.
        ghi_mean: Sampled horizontal irradiance.
        poa_mean: Plane-of-array irradiance, when tilt correction was applied.
        ambient_temperature: Mean ambient temperature used (°C), if any.
        cell_temperature: Estimated mean cell temperature (°C), if any.
        technology: Technology profile key.
        grid_mode: Grid profile key.
        reference_source: Where the specific yield came from.
        reference_interpreted_as: How its units were resolved.
        raw_specific_yield: Specific yield before technology correction.
        raw_annual_energy_kwh: DC capacity × raw specific yield.
        technology_factor: Clamped temperature correction factor.
        calibrated_annual_energy_kwh: Raw annual energy × technology factor.
        calibrated_specific_yield: Calibrated energy / DC capacity.
        irradiance_model_annual_kwh: Area × irradiance × efficiency × PR × 365.
        calibration_scale: Reference specific yield over the irradiance
            model's specific yield, when a reference yield was available.
        usable_fraction: Grid profile usable-energy fraction.
        usable_annual_energy_kwh: Calibrated energy × usable fraction.
        usable_daily_energy_kwh: Usable annual energy / 365.
        monthly_energy_kwh: Usable energy per calendar month (sums to annual).
        monthly_source: ``"reference"`` or ``"latitude-model"``.
        warnings: Non-fatal issues (e.g. implausible specific yield).
        is_suspicious: True when the calibrated specific yield falls outside
            the plausible band. Other warnings do not set it.
    """

    area_m2: float
    effective_area_m2: float
    panel_count: int
    dc_capacity_kwp: float
    ac_capacity_kw: float
    capacity_overridden: bool
    ghi_mean: float
    poa_mean: float | None
    ambient_temperature: float | None
    cell_temperature: float | None
    technology: str
    grid_mode: str
    reference_source: str
    reference_interpreted_as: str
    raw_specific_yield: float
    raw_annual_energy_kwh: float
    technology_factor: float
    calibrated_annual_energy_kwh: float
    calibrated_specific_yield: float
    irradiance_model_annual_kwh: float
    calibration_scale: float | None
    usable_fraction: float
    usable_annual_energy_kwh: float
    usable_daily_energy_kwh: float
    monthly_energy_kwh: tuple[float, ...]
    monthly_source: str
    warnings: tuple[str, ...] = ()
    is_suspicious: bool = False

    def to_dict(self) -> dict[str, Any]:
        data = dataclasses.asdict(self)
        data["monthly_energy_kwh"] = list(self.monthly_energy_kwh)
        data["warnings"] = list(self.warnings)
        return data
