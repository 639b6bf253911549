"""
YAML → dict config loader.

Loads engine constants from engine.yaml (bundled with the package) and
optionally merges user overrides from ~/.workout-engine/engine.yaml.

Usage:
    from workout_engine.core.engine.config_loader import load_model_config
    cfg = load_model_config()
    tier_1 = cfg.get("rest", {}).get("tier_base", {}).get(1, 120)

If a YAML file cannot be parsed, it contributes nothing and the Python
defaults from config.py apply (no crash).  A broken user override is
reported with a warning and ignored.
"""

from __future__ import annotations

import importlib.resources
import os
import warnings
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; raise on I/O or parse errors."""
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled engine.yaml, or None if not found."""
    ref = importlib.resources.files("workout_engine").joinpath("engine.yaml")
    if ref.is_file():
        with importlib.resources.as_file(ref) as p:
            return p
    # Source checkout without package metadata: look relative to the package root
    candidate = Path(__file__).parent.parent.parent / "engine.yaml"
    return candidate if candidate.exists() else None


def get_user_config_dir() -> Path:
    """Return ~/.workout-engine (may not exist)."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    return home / ".workout-engine"


def get_user_yaml_path() -> Path | None:
    """Return ~/.workout-engine/engine.yaml if it exists, else None."""
    p = get_user_config_dir() / "engine.yaml"
    return p if p.exists() else None


def load_model_config() -> dict[str, Any]:
    """
    Load and merge engine configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/workout_engine/engine.yaml
    2. User override at ~/.workout-engine/engine.yaml

    Returns:
        Merged dict of config sections.  Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        try:
            config = _deep_merge(config, _load_yaml_file(bundled))
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(
                f"workout-engine: bundled engine.yaml unreadable ({exc}); using defaults.",
                stacklevel=2,
            )

    user = get_user_yaml_path()
    if user is not None:
        try:
            config = _deep_merge(config, _load_yaml_file(user))
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(
                f"workout-engine: ignoring user config {user} ({exc})",
                stacklevel=2,
            )

    return config
