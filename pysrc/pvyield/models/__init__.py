"""Data models for pvyield.

Modules
-------
config
    ``SystemConfiguration``: panel, sizing and inverter parameters.
profiles
    ``TechnologyProfile``, ``GridProfile`` and the immutable
    ``ProfileCatalog`` that holds them together with system presets.
results
    ``ZonalStatistics`` and ``LayerSamples`` (sampler output),
    ``TranspositionResult``, ``SystemSizing``, ``ReferenceYield`` and
    ``EnergyResult`` (energy model output).
"""

from .config import SystemConfiguration
from .profiles import GridProfile, ProfileCatalog, TechnologyProfile, normalize_key
from .results import (
    EnergyResult,
    LayerSamples,
    ReferenceYield,
    SystemSizing,
    TranspositionResult,
    ZonalStatistics,
)

__all__ = [
    # Configuration
    "SystemConfiguration",
    # Profiles
    "TechnologyProfile",
    "GridProfile",
    "ProfileCatalog",
    "normalize_key",
    # Results
    "ZonalStatistics",
    "LayerSamples",
    "TranspositionResult",
    "SystemSizing",
    "ReferenceYield",
    "EnergyResult",
]
