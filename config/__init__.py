"""
Configuration Module for the Invoice Reconciliation Engine.

Settings live in YAML. The bundled config/settings.yaml is always loaded
first; a custom file (CLI --config, or the INVOICE_RECONCILER_CONFIG
environment variable) is deep-merged over it, so an override file only
needs the keys it changes.
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).parent / "settings.yaml"
CONFIG_PATH_ENV = "INVOICE_RECONCILER_CONFIG"


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Return base with override applied; nested mappings are merged key by key."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _read_yaml(path: Path) -> Dict[str, Any]:
    """
    Read one YAML settings file.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file is not a YAML mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


class ConfigurationManager:
    """
    Process-wide settings for the reconciliation engine.

    The first construction decides which override file is used; later
    constructions return the same instance. Call reset() to start over.

    Attributes:
        config_path: Override file merged over the defaults, or None.

    Example:
        >>> config = ConfigurationManager()
        >>> config.get("ocr.escalation.threshold")
        60
        >>> config.get("reconciliation.full_match_score")
        70
    """

    _instance: Optional['ConfigurationManager'] = None

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Args:
            config_path: Optional override file. Defaults to the path in
                        INVOICE_RECONCILER_CONFIG, if set.
        """
        if self._initialized:
            return

        override = config_path or os.environ.get(CONFIG_PATH_ENV) or None
        self.config_path = Path(override) if override else None
        self._config: Dict[str, Any] = {}

        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        config = _read_yaml(DEFAULT_CONFIG_PATH)
        if self.config_path is not None and self.config_path.resolve() != DEFAULT_CONFIG_PATH.resolve():
            config = _deep_merge(config, _read_yaml(self.config_path))

        self._config = config
        self._resolve_paths()

    def _resolve_paths(self) -> None:
        """Make relative `paths.*` and `logging.file.path` absolute against the project root."""
        project_root = Path(__file__).parent.parent

        for key, value in (self._config.get('paths') or {}).items():
            if value and not Path(value).is_absolute():
                self._config['paths'][key] = str(project_root / value)

        log_file = self._config.get('logging', {}).get('file') or {}
        if log_file.get('path') and not Path(log_file['path']).is_absolute():
            log_file['path'] = str(project_root / log_file['path'])

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a value by dot-separated key.

        Example:
            >>> config.get("ai.model")
            "gpt-4o-mini"
            >>> config.get("nonexistent.key", "default_value")
            "default_value"
        """
        value: Any = self._config
        for part in key.split('.'):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    def get_all(self) -> Dict[str, Any]:
        """Deep copy of the merged configuration."""
        return copy.deepcopy(self._config)

    def reload(self) -> None:
        """Re-read the defaults and the override file."""
        self._load_config()

    @classmethod
    def reset(cls) -> None:
        """Drop the shared instance; the next construction reloads from disk."""
        cls._instance = None


def get_config(key: str, default: Any = None) -> Any:
    """Shortcut for ConfigurationManager().get(key, default)."""
    return ConfigurationManager().get(key, default)


__all__ = ['ConfigurationManager', 'get_config', 'DEFAULT_CONFIG_PATH', 'CONFIG_PATH_ENV']
