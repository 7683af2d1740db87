"""
Request-level API: one polygon in, zonal statistics and an energy estimate out.

This module wires the sampler, the transposition model and the energy model
together for the HTTP layer (or any other caller). Every call opens and
releases its own rasters; nothing is cached between requests.

Example:
    import pvyield

    response = pvyield.estimate(
        pvyield.EstimateRequest(
            polygon=[(77.590, 12.970), (77.591, 12.970), (77.591, 12.971), (77.590, 12.971)],
            config=pvyield.SystemConfiguration.from_preset("small-residential"),
            technology="mono",
            grid_mode="hybrid",
            use_tilt_correction=True,
        ),
        catalog=pvyield.LayerCatalog("/data/solar-atlas"),
    )
    print(f"{response.energy.usable_annual_energy_kwh:.0f} kWh/year")
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .config import load_profiles
from .energy import estimate_energy
from .geometry import geodesic_area, is_simple_ring, prepare_polygon, ring_centroid
from .layers import MONTHLY_LAYERS, LayerCatalog
from .models.config import SystemConfiguration
from .models.profiles import ProfileCatalog
from .models.results import EnergyResult, TranspositionResult, ZonalStatistics
from .pvyield_logging import get_logger
from .transposition import daily_to_poa
from .zonal import sample_layers

logger = get_logger(__name__)

PRIMARY_LAYER = "GHI"
DEFAULT_LAYERS = ("GHI", "DNI", "DIF", "TEMP", "PVOUT")


@dataclass
class EstimateRequest:
    """
    Inputs for one estimate.

    Attributes:
        polygon: Ring of (lon, lat) pairs; the closing point is optional.
        area_m2: Roof area. When None, the geodesic area of the polygon.
        config: System configuration.
        layers: Layers to sample. GHI is always sampled and required;
            every other layer is optional.
        latitude: Site latitude. When None, the polygon centroid's.
        longitude: Site longitude. When None, the polygon centroid's.
        use_tilt_correction: Transpose GHI to the panel plane before
            estimating energy.
        technology: Technology profile key (``mono``, ``poly``, ``thin-film``).
        grid_mode: Grid profile key (``on-grid``, ``hybrid``, ``off-grid``).
        installed_capacity_kwp: Optional DC capacity override.
        use_monthly_reference: Also sample ``PVOUT_01``..``PVOUT_12`` and
            distribute energy with them.
    """

    polygon: Sequence[Sequence[float]]
    area_m2: float | None = None
    config: SystemConfiguration = field(default_factory=SystemConfiguration)
    layers: Sequence[str] = DEFAULT_LAYERS
    latitude: float | None = None
    longitude: float | None = None
    use_tilt_correction: bool = False
    technology: str | None = None
    grid_mode: str = "on-grid"
    installed_capacity_kwp: float | None = None
    use_monthly_reference: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EstimateRequest:
        """
        Build from a decoded request body.

        ``config`` may be a preset name or a mapping of configuration fields.
        """
        values = dict(data)
        config = values.pop("config", None)
        if isinstance(config, str):
            values["config"] = SystemConfiguration.from_preset(config)
        elif isinstance(config, Mapping):
            values["config"] = SystemConfiguration.from_dict(config)
        elif config is not None:
            values["config"] = config
        if "layers" in values:
            values["layers"] = tuple(values["layers"])
        return cls(**values)

    def layer_names(self) -> list[str]:
        """Layers to sample, primary first, without duplicates."""
        names = [PRIMARY_LAYER, *(layer.strip().upper() for layer in self.layers)]
        if self.use_monthly_reference:
            names.extend(MONTHLY_LAYERS)
        return list(dict.fromkeys(names))


@dataclass(frozen=True)
class EstimateResponse:
    """
    Outputs of one estimate.

    Attributes:
        stats: ZonalStatistics per successfully sampled layer.
        energy: Energy estimate.
        transposition: Plane-of-array result (kWh/m²/day) when tilt
            correction was applied.
        latitude: Latitude used.
        longitude: Longitude used.
        warnings: Every non-fatal issue: failed optional layers,
            self-intersecting polygon, implausible yield.
    """

    stats: Mapping[str, ZonalStatistics]
    energy: EnergyResult
    transposition: TranspositionResult | None
    latitude: float
    longitude: float
    warnings: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "stats": {name: s.to_dict() for name, s in self.stats.items()},
            "energy": self.energy.to_dict(),
            "transposition": self.transposition.to_dict() if self.transposition is not None else None,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "warnings": list(self.warnings),
        }


def _monthly_reference(stats: Mapping[str, ZonalStatistics], warnings: list[str]) -> list[float] | None:
    present = [name for name in MONTHLY_LAYERS if name in stats]
    if not present:
        return None
    if len(present) < len(MONTHLY_LAYERS):
        warnings.append(f"Only {len(present)} of 12 monthly reference layers available; using the seasonal model")
        return None
    return [stats[name].mean for name in MONTHLY_LAYERS]


def estimate(
    request: EstimateRequest,
    catalog: LayerCatalog | None = None,
    profiles: ProfileCatalog | None = None,
    max_workers: int | None = None,
) -> EstimateResponse:
    """
    Sample the requested layers under the polygon and estimate energy.

    Args:
        request: Estimate inputs.
        catalog: Layer catalog. Default: ``LayerCatalog.from_env()``.
        profiles: Profile catalog. Default: the bundled profiles.
        max_workers: Thread count for layer sampling.

    Returns:
        EstimateResponse

    Raises:
        InvalidPolygonError: If the polygon is malformed or degenerate.
        UnknownLayerError: If a requested layer name is not recognised.
        OutOfCoverageError, NoValidDataError, RasterNotFoundError,
        RasterFormatError: If the GHI layer cannot be sampled.
        InsufficientAreaError: If the area holds no module.
        ConfigurationError: On unknown technology or grid keys, or a
            missing data directory.
    """
    ring = prepare_polygon(request.polygon)
    warnings: list[str] = []
    if not is_simple_ring(ring):
        logger.warning("Polygon ring intersects itself; sampling it as given")
        warnings.append("Polygon ring intersects itself; results may be unreliable")

    c_lon, c_lat = ring_centroid(ring)
    latitude = request.latitude if request.latitude is not None else c_lat
    longitude = request.longitude if request.longitude is not None else c_lon

    area_m2 = request.area_m2
    if area_m2 is None:
        area_m2 = geodesic_area(ring)
        logger.debug(f"No area supplied, using geodesic polygon area {area_m2:.1f} m²")

    if catalog is None:
        catalog = LayerCatalog.from_env()
    if profiles is None:
        profiles = load_profiles()

    layer_paths = catalog.paths(request.layer_names())
    samples = sample_layers(layer_paths, ring, required=(PRIMARY_LAYER,), max_workers=max_workers)
    warnings.extend(samples.warnings)
    ghi_mean = samples.mean(PRIMARY_LAYER)

    transposition = None
    if request.use_tilt_correction:
        try:
            transposition = daily_to_poa(
                ghi_mean,
                latitude=latitude,
                tilt=request.config.tilt_deg,
                azimuth=request.config.azimuth_deg,
                dni_daily=samples.mean("DNI"),
                dif_daily=samples.mean("DIF"),
            )
        except ValueError as exc:
            logger.warning(f"Tilt correction failed, using GHI: {exc}")
            warnings.append(f"Tilt correction failed, using GHI: {exc}")

    energy = estimate_energy(
        area_m2,
        ghi_mean,
        request.config,
        profiles,
        technology=request.technology,
        grid_mode=request.grid_mode,
        poa_mean=transposition.poa if transposition is not None else None,
        ambient_temperature=samples.mean("TEMP"),
        reference_annual=samples.mean("PVOUT"),
        reference_monthly=_monthly_reference(samples.stats, warnings),
        latitude=latitude,
        installed_capacity_kwp=request.installed_capacity_kwp,
    )
    warnings.extend(energy.warnings)

    return EstimateResponse(
        stats=dict(samples.stats),
        energy=energy,
        transposition=transposition,
        latitude=latitude,
        longitude=longitude,
        warnings=tuple(warnings),
    )


__all__ = ["EstimateRequest", "EstimateResponse", "estimate", "DEFAULT_LAYERS", "PRIMARY_LAYER"]
