"""Technology and grid profile tables.

Profiles are immutable lookup data built once by
:func:`pvyield.config.load_profiles` and passed to the energy model.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from ..errors import ConfigurationError

_KEY_ALIASES = {
    "thinfilm": "thin-film",
    "monocrystalline": "mono",
    "polycrystalline": "poly",
    "ongrid": "on-grid",
    "offgrid": "off-grid",
    "grid-tied": "on-grid",
    "floating-large-scale": "floating",
}


def normalize_key(key: str) -> str:
    """
    Normalise a profile or preset key.

    ``"thinFilm"``, ``"thin_film"`` and ``"Thin Film"`` all become
    ``"thin-film"``; ``"smallResidential"`` becomes ``"small-residential"``.
    """
    kebab = re.sub(r"(?<=[a-z0-9])([A-Z])", r"-\1", key.strip())
    kebab = re.sub(r"[\s_]+", "-", kebab).lower()
    return _KEY_ALIASES.get(kebab, _KEY_ALIASES.get(kebab.replace("-", ""), kebab))


@dataclass(frozen=True)
class TechnologyProfile:
    """
    Module technology constants.

    Attributes:
        name: Profile key (``mono``, ``poly``, ``thin-film``).
        temperature_coefficient: Relative power change per °C (e.g. -0.0035).
        noct_c: Nominal operating cell temperature (°C).
    """

    name: str
    temperature_coefficient: float
    noct_c: float


@dataclass(frozen=True)
class GridProfile:
    """
    Grid configuration constants.

    Attributes:
        name: Profile key (``on-grid``, ``hybrid``, ``off-grid``).
        usable_fraction: Share of generated energy that is usable after
            storage and conversion losses (0-1].
    """

    name: str
    usable_fraction: float

    def __post_init__(self):
        if not 0 < self.usable_fraction <= 1:
            raise ConfigurationError(
                f"grid.{self.name}.usable_fraction", f"must be in (0, 1], got {self.usable_fraction}"
            )


@dataclass(frozen=True)
class ProfileCatalog:
    """
    Immutable set of technology profiles, grid profiles and system presets.

    Attributes:
        technologies: Technology profiles by key.
        grids: Grid profiles by key.
        baseline_technology: Key of the technology whose temperature
            coefficient the reference yield data already reflects.
        presets: System presets by key, each a mapping of
            :class:`~pvyield.models.config.SystemConfiguration` fields.
    """

    technologies: Mapping[str, TechnologyProfile]
    grids: Mapping[str, GridProfile]
    baseline_technology: str
    presets: Mapping[str, Mapping[str, float]] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "technologies", MappingProxyType(dict(self.technologies)))
        object.__setattr__(self, "grids", MappingProxyType(dict(self.grids)))
        object.__setattr__(
            self, "presets", MappingProxyType({k: MappingProxyType(dict(v)) for k, v in self.presets.items()})
        )
        if self.baseline_technology not in self.technologies:
            raise ConfigurationError(
                "baseline_technology",
                f"'{self.baseline_technology}' is not one of {sorted(self.technologies)}",
            )

    def technology(self, key: str) -> TechnologyProfile:
        name = normalize_key(key)
        try:
            return self.technologies[name]
        except KeyError:
            raise ConfigurationError(
                "technology", f"unknown '{key}', expected one of {sorted(self.technologies)}"
            ) from None

    def grid(self, key: str) -> GridProfile:
        name = normalize_key(key)
        try:
            return self.grids[name]
        except KeyError:
            raise ConfigurationError("grid_mode", f"unknown '{key}', expected one of {sorted(self.grids)}") from None

    def preset(self, key: str) -> Mapping[str, float]:
        name = normalize_key(key)
        try:
            return self.presets[name]
        except KeyError:
            raise ConfigurationError("preset", f"unknown '{key}', expected one of {sorted(self.presets)}") from None

    @property
    def baseline(self) -> TechnologyProfile:
        return self.technologies[self.baseline_technology]
