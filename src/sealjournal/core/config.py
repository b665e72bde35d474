"""
Layered configuration for sealjournal.

Sources, lowest to highest precedence:
    1. Built-in defaults derived from the data directory
    2. A YAML or JSON config file (optional, missing file is fine)
    3. Environment variables SEALJOURNAL_<SECTION>__<KEY>

Usage:
    config = Config(config_file="~/.sealjournal/config.yaml", data_dir="/srv/journal")
    data_file, public_key_file = config.get_store_paths()
    config.get("logging.level")

PBKDF2 iterations and key sizes are constants in ``core.storage.sealed``,
not keys here, so every process derives the same key from a password.
"""

import json
import os
from typing import Any

import yaml

from sealjournal.core.exceptions import ConfigurationError

ENV_PREFIX = "SEALJOURNAL_"
DEFAULT_DATA_DIR = os.path.join("~", ".sealjournal")
LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


def _defaults(data_dir: str) -> dict[str, Any]:
    # File paths are filled in from the merged data_dir, see Config._resolve_paths
    return {
        "paths": {"data_dir": data_dir},
        "logging": {"level": "WARNING", "file": ""},
        "journal": {"title": "Journal"},
    }


def _merge(target: dict, source: dict) -> dict:
    """Deep-merge source into target in place."""
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            target[key] = value
    return target


def _read_config_file(path: str) -> dict[str, Any]:
    ext = os.path.splitext(path)[1].lower()
    if ext not in (".yaml", ".yml", ".json"):
        raise ConfigurationError(f"Unsupported config file type: {path}")
    try:
        with open(path) as f:
            data = json.load(f) if ext == ".json" else yaml.safe_load(f)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot parse config file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


def _env_overrides(prefix: str) -> dict[str, Any]:
    """Collect PREFIX_SECTION__KEY variables into a nested dict.

    Variables without a ``__`` separator (SEALJOURNAL_PASSWORD) are skipped.
    """
    overrides: dict[str, Any] = {}
    if not prefix:
        return overrides
    for name, value in os.environ.items():
        if not name.startswith(prefix):
            continue
        parts = name[len(prefix) :].lower().split("__")
        if len(parts) < 2 or not all(parts):
            continue
        node = overrides
        for part in parts[:-1]:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[parts[-1]] = value
    return overrides


class Config:
    """
    Resolved configuration for one process.

    Nested keys are addressed with dots: ``config.get("paths.data_file")``.
    An environment variable SEALJOURNAL_PATHS__DATA_FILE=/tmp/j.json sets
    the same key.
    """

    def __init__(
        self,
        config_file: str | None = None,
        env_prefix: str = ENV_PREFIX,
        data_dir: str | None = None,
        defaults: dict[str, Any] | None = None,
    ):
        """
        Args:
            config_file: YAML or JSON file; ignored if it does not exist.
            env_prefix: Prefix for environment overrides. Empty disables them.
            data_dir: Directory holding the sealed file pair. Defaults to ~/.sealjournal.
            defaults: Extra defaults merged over the built-in ones.
        """
        self.config_file = os.path.expanduser(config_file) if config_file else None
        self.env_prefix = env_prefix or ""
        self.config_data = _defaults(os.path.expanduser(data_dir or DEFAULT_DATA_DIR))

        if defaults:
            _merge(self.config_data, defaults)
        if self.config_file and os.path.exists(self.config_file):
            _merge(self.config_data, _read_config_file(self.config_file))
        _merge(self.config_data, _env_overrides(self.env_prefix))
        self._resolve_paths()

        level = str(self.get("logging.level") or "WARNING").upper()
        if level not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid logging.level '{level}', expected one of {', '.join(LOG_LEVELS)}")
        self.set("logging.level", level)

    def _resolve_paths(self) -> None:
        """Default the store files into paths.data_dir unless set explicitly."""
        paths = self.config_data.get("paths")
        if not isinstance(paths, dict):
            raise ConfigurationError("paths must be a mapping")
        data_dir = os.path.expanduser(str(paths.get("data_dir") or DEFAULT_DATA_DIR))
        paths["data_dir"] = data_dir
        paths.setdefault("data_file", os.path.join(data_dir, "data.json"))
        paths.setdefault("public_key_file", os.path.join(data_dir, "data.pub"))

    def get(self, key_path: str, default: Any = None) -> Any:
        node: Any = self.config_data
        for part in key_path.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key_path: str, value: Any) -> None:
        *parents, leaf = key_path.split(".")
        node = self.config_data
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = value

    def get_store_paths(self) -> tuple[str, str]:
        """Return the resolved (ciphertext file, public-key file) pair."""
        return (
            os.path.expanduser(self.get("paths.data_file")),
            os.path.expanduser(self.get("paths.public_key_file")),
        )

    def __repr__(self) -> str:
        return f"Config(config_file={self.config_file!r}, data_file={self.get('paths.data_file')!r})"
