"""
Schedule settings from YAML.

The package ships schedule.yaml with the studio defaults (weekly capacity,
revenue horizon, intensity bounds, renewal and reminder windows, ICS strings).
A trainer can override any of them in ~/.pt-scheduler/schedule.yaml, which is
also where the clients file lives by default.

A settings file that is missing, unreadable or not a mapping contributes
nothing; config.py then keeps its own defaults.
"""

from __future__ import annotations

import importlib.resources
import logging
import os
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Reading and combining settings files
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Sections of one settings file, or {} when it cannot be used."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring config file %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def _merge_sections(defaults: dict, overrides: dict) -> dict:
    """
    Overlay trainer settings on the defaults, section by section.

    A section given in *overrides* only replaces the keys it names, so
    ``{"capacity": {"WEEKLY_CAPACITY_HOURS": 30}}`` keeps every other
    capacity setting. *defaults* is left untouched.
    """
    merged = dict(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_sections(merged[key], value)
        else:
            merged[key] = value
    return merged


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled schedule.yaml, or None if not found."""
    try:
        ref = importlib.resources.files("pt_scheduler").joinpath("schedule.yaml")
        with importlib.resources.as_file(ref) as p:
            if p.exists():
                return p
    except (ModuleNotFoundError, AttributeError, TypeError, OSError):
        pass
    # source checkout without an installed package
    candidate = Path(__file__).parent.parent.parent / "schedule.yaml"
    return candidate if candidate.exists() else None


def get_user_config_dir() -> Path:
    """Return the trainer's data directory (~/.pt-scheduler)."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    return home / ".pt-scheduler"


def get_user_yaml_path() -> Path | None:
    """Return ~/.pt-scheduler/schedule.yaml if the trainer has one, else None."""
    p = get_user_config_dir() / "schedule.yaml"
    return p if p.exists() else None


def load_schedule_config() -> dict[str, Any]:
    """
    Studio defaults with the trainer's own settings applied on top.

    Returns:
        Mapping of section name (``capacity``, ``revenue``, ...) to its
        settings. Empty when neither file is available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = _merge_sections(config, _load_yaml_file(bundled))

    user = get_user_yaml_path()
    if user is not None:
        user_cfg = _load_yaml_file(user)
        if user_cfg:
            logger.debug("Applying trainer settings from %s", user)
            config = _merge_sections(config, user_cfg)

    return config
