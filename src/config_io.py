"""config_io.py

Load sample/sweep/solver configuration from JSON or YAML.

- JSON: built-in
- YAML: requires PyYAML

The expected config shape is intentionally simple and flat.
See `examples/config.example.yml`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict


class ConfigError(ValueError):
    """Invalid solver arguments or configuration content."""


def load_config(path: str | Path) -> Dict[str, Any]:
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix in {".json"}:
        cfg = json.loads(path.read_text(encoding="utf-8"))
    elif suffix in {".yml", ".yaml"}:
        try:
            import yaml  # type: ignore
        except ModuleNotFoundError as e:
            raise RuntimeError(
                "YAML config requires PyYAML. Install with: python3 -m pip install pyyaml"
            ) from e
        cfg = yaml.safe_load(path.read_text(encoding="utf-8"))
    else:
        raise ConfigError(f"Unsupported config extension: {suffix} (use .json/.yml/.yaml)")

    if not isinstance(cfg, dict):
        raise ConfigError(f"{path}: top level must be a mapping, got {type(cfg).__name__}")
    return cfg


def section(cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Return cfg[name] (empty if missing), insisting that it is a mapping."""
    value = cfg.get(name, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"config section '{name}' must be a mapping")
    return value
