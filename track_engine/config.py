"""Configuration loader for the track analysis engine."""

from dataclasses import fields
from pathlib import Path

import yaml

from track_engine.core.settings import EngineConfig

DATA_DIR: Path = Path(__file__).resolve().parent / "data"
DEFAULTS_PATH: Path = DATA_DIR / "engine_defaults.yaml"

_KNOWN_FIELDS: tuple[str, ...] = tuple(f.name for f in fields(EngineConfig))


def _read(path: Path | None) -> dict:
    config_path = path or DEFAULTS_PATH
    if not config_path.exists():
        raise FileNotFoundError(f"Engine config file not found: {config_path}")

    with open(config_path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}

    if not isinstance(data, dict):
        raise ValueError(f"{config_path}: top level must be a mapping")
    return data


def _validate_section(section: object, label: str) -> dict[str, float]:
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValueError(f"Section '{label}' must be a mapping")

    values: dict[str, float] = {}
    for key, val in section.items():
        if key not in _KNOWN_FIELDS:
            raise ValueError(f"Section '{label}': unknown setting '{key}'")
        if isinstance(val, bool) or not isinstance(val, (int, float)):
            raise ValueError(
                f"Section '{label}': '{key}' must be numeric, "
                f"got {type(val).__name__}"
            )
        values[key] = float(val)
    return values


def available_profiles(path: Path | None = None) -> list[str]:
    """Return the names of the activity profiles defined in the config file."""
    profiles = _read(path).get("profiles") or {}
    return sorted(profiles)


def load_engine_config(
    path: Path | None = None, profile: str | None = None
) -> EngineConfig:
    """Load engine thresholds from a YAML file.

    The ``defaults`` section is applied first, then the named profile's
    overrides.  Settings absent from both keep the :class:`EngineConfig`
    defaults.

    Args:
        path: Optional override for the config file path.
        profile: Optional activity profile (e.g. ``"cycling"``).

    Returns:
        A validated :class:`EngineConfig`.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If a section holds unknown keys or non-numeric values,
            the profile is not defined, or a value is out of range.
    """
    data = _read(path)
    values = _validate_section(data.get("defaults"), "defaults")

    if profile is not None:
        profiles = data.get("profiles") or {}
        if profile not in profiles:
            raise ValueError(
                f"Unknown profile '{profile}'; available: {sorted(profiles)}"
            )
        values.update(_validate_section(profiles[profile], profile))

    return EngineConfig(**values)
