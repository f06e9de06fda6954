from __future__ import annotations

from pathlib import Path
import yaml

# Project root (the folder holding config/ and data/)
PROJECT_ROOT = Path(__file__).resolve().parents[2]


def resolve_path(path: str | Path) -> Path:
    """Return `path` as-is when absolute, otherwise relative to the project root."""
    p = Path(path)
    return p if p.is_absolute() else PROJECT_ROOT / p


def load_config(path: str = "config/settings.yaml") -> dict:
    """
    Load the YAML settings file and return it as a dictionary.
    """
    config_path = resolve_path(path)
    with config_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)
