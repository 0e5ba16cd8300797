"""
Option file loading.

Options are read from a YAML mapping (`dotscan.yaml` in the working
directory unless a path is given) and applied over the defaults.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import ConfigError
from .options import ScanOptions

logger = logging.getLogger(__name__)

CONFIG_FILE = "dotscan.yaml"

_yaml = YAML(typ="safe")


def config_path(root: Path) -> Path:
    """Path of the default option file under root."""
    return root / CONFIG_FILE


def _read_yaml_map(path: Path) -> dict:
    """Read a YAML file that must contain a mapping; an empty file is an empty mapping."""
    try:
        raw = _yaml.load(path.read_text(encoding="utf-8")) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read option file {path}: {e}") from e
    except YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"YAML must be a mapping: {path}")
    return raw


def load_options(path: Optional[Path] = None, base: Optional[ScanOptions] = None) -> ScanOptions:
    """
    Load scan options.

    Args:
        path: Option file; when omitted, dotscan.yaml in the current
            directory is used if it exists
        base: Options the file is applied over

    Returns:
        Resulting options

    Raises:
        ConfigError: The file is missing (explicit path), unreadable or invalid
    """
    base = base or ScanOptions()
    if path is None:
        path = config_path(Path.cwd())
        if not path.is_file():
            return base
    elif not path.is_file():
        raise ConfigError(f"Option file not found: {path}")

    logger.debug("Loading options from %s", path)
    raw = _read_yaml_map(path)
    try:
        return ScanOptions.from_dict(raw, base=base)
    except ConfigError as e:
        raise ConfigError(f"{path}: {e}") from e


__all__ = ["CONFIG_FILE", "config_path", "load_options"]
