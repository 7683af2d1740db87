"""Layer catalog: resolve raster layer names to GeoTIFF paths.

Layout of a data directory::

    <base>/GHI.tif
    <base>/DNI.tif
    ...
    <base>/monthly/PVOUT_01.tif .. PVOUT_12.tif
"""

from __future__ import annotations

import os
import re
from pathlib import Path

from .errors import ConfigurationError, UnknownLayerError

DATA_DIR_ENV = "PVYIELD_DATA_DIR"

ALL_LAYERS = ("GHI", "DNI", "DIF", "PVOUT", "GTI", "OPTA", "TEMP")
MONTHLY_LAYERS = tuple(f"PVOUT_{month:02d}" for month in range(1, 13))

_MONTHLY_PATTERN = re.compile(r"^PVOUT_(0[1-9]|1[0-2])$")


class LayerCatalog:
    """
    Maps layer identifiers (``"GHI"``, ``"PVOUT_03"``, ...) to raster files.

    Names are case-insensitive. The catalog only builds paths; whether the
    file exists is checked when the raster is opened.

    Args:
        base_dir: Directory holding the layer GeoTIFFs.
    """

    def __init__(self, base_dir: str | Path):
        self.base_dir = Path(base_dir)

    @classmethod
    def from_env(cls) -> LayerCatalog:
        """
        Build a catalog from the ``PVYIELD_DATA_DIR`` environment variable.

        Raises:
            ConfigurationError: If the variable is unset or empty.
        """
        base = os.environ.get(DATA_DIR_ENV, "").strip()
        if not base:
            raise ConfigurationError(DATA_DIR_ENV, "environment variable is not set")
        return cls(base)

    def path(self, layer: str) -> Path:
        """
        Path of the GeoTIFF for a layer.

        Raises:
            UnknownLayerError: If the name is neither a known layer nor a
                monthly ``PVOUT_XX`` layer.
        """
        name = layer.strip().upper()
        if _MONTHLY_PATTERN.match(name):
            return self.base_dir / "monthly" / f"{name}.tif"
        if name in ALL_LAYERS:
            return self.base_dir / f"{name}.tif"
        raise UnknownLayerError(layer, list(ALL_LAYERS) + list(MONTHLY_LAYERS))

    def paths(self, layers) -> dict[str, Path]:
        """Resolve several layers at once, keyed by the upper-case layer name."""
        return {layer.strip().upper(): self.path(layer) for layer in layers}

    def available(self) -> list[str]:
        """Layers whose files exist under the base directory."""
        return [name for name in ALL_LAYERS + MONTHLY_LAYERS if self.path(name).is_file()]

    def __repr__(self) -> str:
        return f"LayerCatalog({str(self.base_dir)!r})"
