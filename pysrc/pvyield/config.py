"""Profile and preset loading from JSON files."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .errors import ConfigurationError
from .models.profiles import GridProfile, ProfileCatalog, TechnologyProfile, normalize_key
from .pvyield_logging import get_logger

logger = get_logger(__name__)

DEFAULT_PROFILES_PATH = Path(__file__).parent / "data" / "default_profiles.json"


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name)
    if not isinstance(section, Mapping) or not section:
        raise ConfigurationError(name, "missing or empty section")
    return section


def _number(entry: Mapping[str, Any], key: str, where: str) -> float:
    value = entry.get(key) if isinstance(entry, Mapping) else None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{where}.{key}", f"expected a number, got {value!r}")
    return float(value)


def load_profiles(profiles_json_path: str | Path | None = None) -> ProfileCatalog:
    """
    Load technology profiles, grid profiles and system presets.

    Args:
        profiles_json_path: Path to a profiles JSON file.
            If None (default), loads the bundled default_profiles.json.

    Returns:
        Immutable ProfileCatalog. Keys are normalised, so ``"thinFilm"``
        in the file is available as ``"thin-film"``.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the file is not valid JSON or a section is
            missing or malformed.

    Examples:
        >>> catalog = load_profiles()
        >>> catalog.technology("thin_film").noct_c  # 44.0
        >>> catalog.grid("off-grid").usable_fraction  # 0.85
    """
    if profiles_json_path is None:
        profiles_path = DEFAULT_PROFILES_PATH
    else:
        profiles_path = Path(profiles_json_path)

    if not profiles_path.exists():
        raise FileNotFoundError(f"Profiles file not found: {profiles_path}")

    with open(profiles_path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(str(profiles_path), f"invalid JSON: {exc}") from exc

    if not isinstance(data, Mapping):
        raise ConfigurationError(str(profiles_path), "top level must be an object")

    technologies = {}
    for key, entry in _section(data, "technologies").items():
        name = normalize_key(key)
        technologies[name] = TechnologyProfile(
            name=name,
            temperature_coefficient=_number(entry, "temperature_coefficient", f"technologies.{key}"),
            noct_c=_number(entry, "noct_c", f"technologies.{key}"),
        )

    grids = {}
    for key, entry in _section(data, "grids").items():
        name = normalize_key(key)
        grids[name] = GridProfile(name=name, usable_fraction=_number(entry, "usable_fraction", f"grids.{key}"))

    presets = {}
    for key, entry in data.get("presets", {}).items():
        if not isinstance(entry, Mapping):
            raise ConfigurationError(f"presets.{key}", "expected an object of configuration fields")
        presets[normalize_key(key)] = dict(entry)

    baseline = data.get("baseline_technology")
    if not isinstance(baseline, str):
        raise ConfigurationError("baseline_technology", f"expected a technology key, got {baseline!r}")

    catalog = ProfileCatalog(
        technologies=technologies,
        grids=grids,
        baseline_technology=normalize_key(baseline),
        presets=presets,
    )
    logger.debug(
        f"Loaded profiles from {profiles_path.name}: "
        f"{len(technologies)} technologies, {len(grids)} grids, {len(presets)} presets"
    )
    return catalog
