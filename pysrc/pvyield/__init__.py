"""pvyield - rooftop photovoltaic yield estimation from solar-atlas rasters.

Samples long-term irradiance and temperature rasters under a roof polygon,
optionally transposes horizontal irradiance to the panel plane (Hay-Davies),
and turns the result into a capacity-, technology- and grid-aware energy
estimate.

Quick start::

    import pvyield

    response = pvyield.estimate(
        pvyield.EstimateRequest(
            polygon=[(77.590, 12.970), (77.591, 12.970), (77.591, 12.971), (77.590, 12.971)],
            area_m2=120.0,
            config=pvyield.SystemConfiguration.from_preset("small-residential"),
        ),
        catalog=pvyield.LayerCatalog("/data/solar-atlas"),
    )
    print(f"{response.energy.usable_annual_energy_kwh:.0f} kWh/year")

Lower-level pieces::

    stats = pvyield.sample_polygon("GHI.tif", ring)
    poa = pvyield.daily_to_poa(stats.mean, latitude=12.97, tilt=25, azimuth=180)
"""

import logging
from importlib.metadata import PackageNotFoundError, version

logger = logging.getLogger(__name__)

# Version: single source of truth is pyproject.toml
try:
    __version__ = version("pvyield")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"  # Fallback for source checkouts without metadata

from . import io  # noqa: E402
from .api import EstimateRequest, EstimateResponse, estimate  # noqa: E402
from .config import load_profiles  # noqa: E402
from .energy import (  # noqa: E402
    estimate_energy,
    resolve_reference_yield,
    seasonal_shares,
    size_system,
    technology_factor,
)
from .errors import (  # noqa: E402
    ConfigurationError,
    GeometryError,
    InsufficientAreaError,
    InvalidPolygonError,
    InvalidWindowError,
    NoValidDataError,
    OutOfCoverageError,
    PVYieldError,
    RasterFormatError,
    RasterNotFoundError,
    UnknownLayerError,
)
from .geometry import bounding_box, geodesic_area, normalize_ring, point_in_polygon  # noqa: E402
from .io import open_raster, read_window  # noqa: E402
from .layers import LayerCatalog  # noqa: E402
from .models import (  # noqa: E402
    EnergyResult,
    GridProfile,
    LayerSamples,
    ProfileCatalog,
    SystemConfiguration,
    TechnologyProfile,
    TranspositionResult,
    ZonalStatistics,
)
from .transposition import daily_to_poa, hay_davies  # noqa: E402
from .zonal import sample_layers, sample_polygon  # noqa: E402

__all__ = [
    "__version__",
    # Request-level API
    "EstimateRequest",
    "EstimateResponse",
    "estimate",
    # Sampling
    "sample_polygon",
    "sample_layers",
    "open_raster",
    "read_window",
    "LayerCatalog",
    "io",
    # Geometry
    "normalize_ring",
    "bounding_box",
    "point_in_polygon",
    "geodesic_area",
    # Transposition
    "hay_davies",
    "daily_to_poa",
    # Energy model
    "size_system",
    "resolve_reference_yield",
    "technology_factor",
    "seasonal_shares",
    "estimate_energy",
    # Configuration and models
    "load_profiles",
    "SystemConfiguration",
    "TechnologyProfile",
    "GridProfile",
    "ProfileCatalog",
    "ZonalStatistics",
    "LayerSamples",
    "TranspositionResult",
    "EnergyResult",
    # Errors
    "PVYieldError",
    "GeometryError",
    "InvalidPolygonError",
    "RasterNotFoundError",
    "RasterFormatError",
    "InvalidWindowError",
    "OutOfCoverageError",
    "NoValidDataError",
    "InsufficientAreaError",
    "ConfigurationError",
    "UnknownLayerError",
]
