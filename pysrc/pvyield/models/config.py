"""System configuration model."""

from __future__ import annotations

import dataclasses
import json
import math
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ..errors import ConfigurationError
from ..pvyield_logging import get_logger

if TYPE_CHECKING:
    from .profiles import ProfileCatalog, TechnologyProfile

logger = get_logger(__name__)


@dataclass(frozen=True)
class SystemConfiguration:
    """
    PV system parameters for one estimate.

    Instances are immutable; derived variants are produced with
    :meth:`with_technology` or :func:`dataclasses.replace`.

    Attributes:
        panel_efficiency: Module efficiency (0-1]. Default 0.18.
        tilt_deg: Panel tilt from horizontal, degrees [0, 90]. Default 25.
        azimuth_deg: Panel azimuth clockwise from north, degrees [0, 360).
            Default 180 (south-facing).
        performance_ratio: System performance ratio (0-1]. Default 0.75.
        module_area_m2: Footprint of one module (m²). Default 1.7.
        module_power_w: Rated power of one module at STC (W). Default 420.
        packing_factor: Share of the roof area that can hold modules (0-1].
            Default 0.8.
        dc_ac_ratio: DC nameplate over inverter AC rating. Default 1.2.
        temperature_coefficient: Relative power change per °C. None until
            filled from a technology profile.
        noct_c: Nominal operating cell temperature (°C). None until filled
            from a technology profile.

    Examples:
        >>> config = SystemConfiguration(tilt_deg=30, module_power_w=450)
        >>> config = SystemConfiguration.from_preset("small-residential")
    """

    panel_efficiency: float = 0.18
    tilt_deg: float = 25.0
    azimuth_deg: float = 180.0
    performance_ratio: float = 0.75
    module_area_m2: float = 1.7
    module_power_w: float = 420.0
    packing_factor: float = 0.8
    dc_ac_ratio: float = 1.2
    temperature_coefficient: float | None = None
    noct_c: float | None = None

    def __post_init__(self):
        for name in (
            "panel_efficiency",
            "tilt_deg",
            "azimuth_deg",
            "performance_ratio",
            "module_area_m2",
            "module_power_w",
            "packing_factor",
            "dc_ac_ratio",
        ):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ConfigurationError(name, f"must be a finite number, got {value!r}")

        if not 0 < self.panel_efficiency <= 1:
            raise ConfigurationError("panel_efficiency", f"must be in (0, 1], got {self.panel_efficiency}")
        if not 0 < self.performance_ratio <= 1:
            raise ConfigurationError("performance_ratio", f"must be in (0, 1], got {self.performance_ratio}")
        if not 0 < self.packing_factor <= 1:
            raise ConfigurationError("packing_factor", f"must be in (0, 1], got {self.packing_factor}")
        if not 0 <= self.tilt_deg <= 90:
            raise ConfigurationError("tilt_deg", f"must be in [0, 90], got {self.tilt_deg}")
        if not 0 <= self.azimuth_deg < 360:
            raise ConfigurationError("azimuth_deg", f"must be in [0, 360), got {self.azimuth_deg}")
        if self.module_area_m2 <= 0:
            raise ConfigurationError("module_area_m2", f"must be positive, got {self.module_area_m2}")
        if self.module_power_w <= 0:
            raise ConfigurationError("module_power_w", f"must be positive, got {self.module_power_w}")
        if self.dc_ac_ratio <= 0:
            raise ConfigurationError("dc_ac_ratio", f"must be positive, got {self.dc_ac_ratio}")

    @property
    def has_technology(self) -> bool:
        """True when both technology constants are set."""
        return self.temperature_coefficient is not None and self.noct_c is not None

    def with_technology(self, profile: TechnologyProfile) -> SystemConfiguration:
        """Return a copy carrying the profile's temperature coefficient and NOCT."""
        return dataclasses.replace(
            self,
            temperature_coefficient=profile.temperature_coefficient,
            noct_c=profile.noct_c,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SystemConfiguration:
        """
        Build from a plain mapping (e.g. a decoded request body).

        Raises:
            ConfigurationError: On unknown keys or invalid values.
        """
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(unknown[0], f"unknown field, expected one of {sorted(known)}")
        return cls(**data)

    @classmethod
    def from_preset(
        cls, name: str, catalog: ProfileCatalog | None = None, **overrides: Any
    ) -> SystemConfiguration:
        """
        Build from a named preset, with optional field overrides.

        Args:
            name: Preset key, e.g. ``"small-residential"`` or ``"smallResidential"``.
            catalog: Profile catalog; the bundled defaults when None.
            **overrides: Fields replacing the preset's values.
        """
        if catalog is None:
            from ..config import load_profiles

            catalog = load_profiles()
        values = dict(catalog.preset(name))
        values.update(overrides)
        return cls.from_dict(values)

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)

    def save(self, path: str | Path) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Saved system configuration to {path}")

    @classmethod
    def load(cls, path: str | Path) -> SystemConfiguration:
        """Load configuration from a JSON file written by :meth:`save`."""
        path = Path(path)
        with open(path) as f:
            data = json.load(f)
        return cls.from_dict(data)
