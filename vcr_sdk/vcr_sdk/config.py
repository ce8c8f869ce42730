"""
Configuration loader for vcr.yaml files.

Environment Variables:
    VCR_CONFIG: Path to a config file (used when no path is given)
    VCR_MODE: Operating mode (replay, record, live)
    VCR_DIR: Directory for fixture files
    VCR_DEBUG: Report fixture overwrites (1, true, yes, on)
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


DEFAULT_MODE = "replay"
DEFAULT_DIRECTORY = "fixtures"
CONFIG_FILENAME = "vcr.yaml"

_TRUTHY = {"1", "true", "yes", "on"}


class VCRConfig:
    """Configuration loaded from vcr.yaml"""

    def __init__(self, config_dict: Dict[str, Any]):
        self._config = config_dict

    @property
    def mode(self) -> str:
        """Get the configured operating mode"""
        return self._config.get('mode', DEFAULT_MODE)

    @property
    def directory(self) -> Path:
        """Get the fixture directory"""
        return Path(self._config.get('directory', DEFAULT_DIRECTORY))

    @property
    def debug(self) -> bool:
        """Check if overwrite reporting is enabled"""
        return _as_bool(self._config.get('debug', False))

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by key"""
        return self._config.get(key, default)


def load_config(config_path: Optional[str] = None) -> VCRConfig:
    """
    Load configuration from vcr.yaml, then apply environment overrides.

    Search order:
    1. Provided config_path
    2. VCR_CONFIG environment variable
    3. ./vcr.yaml in current directory
    4. vcr.yaml in parent directories (walk up the tree)

    Args:
        config_path: Optional explicit path to config file

    Returns:
        VCRConfig instance (empty defaults if no file is found)
    """
    path = config_path or os.environ.get('VCR_CONFIG') or _find_config_file()
    config_dict = _load_from_path(path) if path else {}
    return VCRConfig(_apply_env(config_dict))


def _find_config_file() -> Optional[str]:
    current = Path.cwd()
    while True:
        config_file = current / CONFIG_FILENAME
        if config_file.exists():
            return str(config_file)

        # Stop at filesystem root
        if current == current.parent:
            return None
        current = current.parent


def _load_from_path(path: str) -> Dict[str, Any]:
    """Load a config dict from JSON or YAML"""
    with open(path, 'r', encoding='utf-8') as f:
        if str(path).endswith('.json'):
            data = json.load(f)
        else:
            data = yaml.safe_load(f)
    return data or {}


def _apply_env(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(config_dict)
    if os.environ.get('VCR_MODE'):
        merged['mode'] = os.environ['VCR_MODE']
    if os.environ.get('VCR_DIR'):
        merged['directory'] = os.environ['VCR_DIR']
    if os.environ.get('VCR_DEBUG'):
        merged['debug'] = os.environ['VCR_DEBUG']
    return merged


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)
