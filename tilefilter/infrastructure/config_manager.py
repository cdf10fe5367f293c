#!/usr/bin/env python3
"""Layered configuration for tilefilter rule files.

A rule file is one YAML document under a top-level ``tilefilter`` key that
holds both the rule set and the ``logging`` section. Several layers can
contribute to it; later layers win key by key:

1. Compiled defaults (every category processed, INFO logging)
2. System rule file
3. User rule file (the one named on the command line)
4. Environment (``TILEFILTER_SECTION__KEY=value``)
5. Command-line flags
6. Runtime updates

Mappings are merged recursively; lists (rule lists, kind lists) are
replaced as a whole.

Example:
    >>> config = ConfigManager("rules.yaml")
    >>> config.get("tilefilter.defaults.process_points")
    False
    >>> config.rule_set()["kinds"]
    {'process': ['water'], 'ignore': ['building']}
"""

import copy
import os
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import yaml

from tilefilter.core.constants import DEFAULT_CONFIG, ConfigKey, ErrorCode

ENV_PREFIX = "TILEFILTER_"
ENV_SEPARATOR = "__"

Watcher = Callable[[Dict[str, Any]], None]


class ConfigSource(Enum):
    """Configuration layers, lowest precedence first."""

    COMPILED_DEFAULTS = 1
    SYSTEM_CONFIG = 2
    USER_CONFIG = 3
    ENVIRONMENT = 4
    CLI_ARGS = 5
    RUNTIME = 6


class ConfigError(Exception):
    """Rule file could not be read."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


def read_rule_file(file_path: Union[str, Path]) -> Dict[str, Any]:
    """Read a YAML rule file, wrapping bare rule sets under ``tilefilter``.

    Args:
        file_path: Path to YAML file

    Returns:
        Configuration tree rooted at ``tilefilter``

    Raises:
        ConfigError: If the file is missing, unreadable, not YAML or not a mapping
    """
    path = Path(file_path).expanduser()

    if not path.exists():
        raise ConfigError(f"Config file not found: {file_path}", ErrorCode.NOT_FOUND)

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"YAML parse error in {file_path}: {e}", ErrorCode.INVALID_INPUT
        ) from e
    except PermissionError as e:
        raise ConfigError(
            f"Cannot read config {file_path}: {e}", ErrorCode.PERMISSION_DENIED
        ) from e
    except OSError as e:
        raise ConfigError(
            f"Error loading config {file_path}: {e}", ErrorCode.INTERNAL_ERROR
        ) from e

    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config format in {file_path}", ErrorCode.INVALID_INPUT)

    if ConfigKey.ROOT not in data:
        data = {ConfigKey.ROOT: data}
    return data


def parse_env_value(value: str) -> Any:
    """Convert an environment string to bool, int, float or str."""
    lowered = value.lower()
    if lowered in ("true", "yes"):
        return True
    if lowered in ("false", "no"):
        return False

    for convert in (int, float):
        try:
            return convert(value)
        except ValueError:
            pass
    return value


def environment_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    """Collect ``TILEFILTER_*`` variables into a configuration tree.

    ``TILEFILTER_DEFAULTS__PROCESS_LINES=false`` becomes
    ``{"tilefilter": {"defaults": {"process_lines": False}}}``. Names with
    empty segments are skipped.
    """
    overrides: Dict[str, Any] = {}

    for name, raw in environ.items():
        if not name.startswith(ENV_PREFIX):
            continue

        path = name[len(ENV_PREFIX):].lower().split(ENV_SEPARATOR)
        if not all(path):
            continue

        section = overrides
        for part in path[:-1]:
            section = section.setdefault(part, {})
            if not isinstance(section, dict):
                break
        else:
            section[path[-1]] = parse_env_value(raw)

    return {ConfigKey.ROOT: overrides} if overrides else {}


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge override into a copy of base; nested mappings merge, anything else replaces."""
    result = dict(base)

    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


class ConfigManager:
    """Thread-safe stack of configuration layers.

    Reads always see the merged view of all layers, so a partial override
    (one default flag from the environment, say) never hides the rules of
    a lower layer.
    """

    def __init__(self, config_file: Optional[str] = None, load_environment: bool = True):
        """Initialize configuration manager.

        Args:
            config_file: Optional user rule file to load
            load_environment: Whether to read TILEFILTER_* variables
        """
        self._layers: Dict[ConfigSource, Dict[str, Any]] = {
            ConfigSource.COMPILED_DEFAULTS: copy.deepcopy(DEFAULT_CONFIG)
        }
        self._files: Dict[ConfigSource, Path] = {}
        self._watchers: List[Watcher] = []
        self._lock = threading.RLock()

        if config_file:
            self.load_file(config_file)

        if load_environment:
            self.load_environment()

    def load_file(self, file_path: str, source: ConfigSource = ConfigSource.USER_CONFIG) -> None:
        """Load a rule file as one layer, replacing what that layer held.

        Raises:
            ConfigError: If the file cannot be loaded
        """
        data = read_rule_file(file_path)

        with self._lock:
            self._layers[source] = data
            self._files[source] = Path(file_path).expanduser().resolve()

    def load_dict(self, config_data: Mapping[str, Any], source: ConfigSource = ConfigSource.RUNTIME) -> None:
        """Use a copy of config_data as one layer."""
        with self._lock:
            self._layers[source] = copy.deepcopy(dict(config_data))

    def load_environment(self, environ: Optional[Mapping[str, str]] = None) -> None:
        """Read ``TILEFILTER_*`` overrides into the environment layer.

        Args:
            environ: Variables to read (os.environ by default)
        """
        overrides = environment_overrides(os.environ if environ is None else environ)

        with self._lock:
            if overrides:
                self._layers[ConfigSource.ENVIRONMENT] = overrides
            else:
                self._layers.pop(ConfigSource.ENVIRONMENT, None)

    def get_all(self) -> Dict[str, Any]:
        """Return the merged configuration of all layers."""
        with self._lock:
            merged: Dict[str, Any] = {}
            for source in sorted(self._layers, key=lambda s: s.value):
                merged = deep_merge(merged, self._layers[source])
            return merged

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value from the merged configuration.

        Args:
            key: Dot-separated path (e.g. "tilefilter.defaults.process_layers")
            default: Returned if the path does not exist

        Returns:
            Configuration value or default
        """
        current: Any = self.get_all()
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    def rule_set(self) -> Dict[str, Any]:
        """Merged ``tilefilter`` section without the logging settings."""
        root = dict(self.get(ConfigKey.ROOT, {}))
        root.pop(ConfigKey.LOGGING, None)
        return root

    def logging_settings(self) -> Dict[str, Any]:
        """Merged ``tilefilter.logging`` section."""
        return dict(self.get(f"{ConfigKey.ROOT}.{ConfigKey.LOGGING}") or {})

    def set(self, key: str, value: Any, source: ConfigSource = ConfigSource.RUNTIME) -> None:
        """Set one value in a layer and notify watchers.

        Args:
            key: Dot-separated path
            value: Value to set
            source: Layer to write to
        """
        *parents, leaf = key.split(".")

        with self._lock:
            section = self._layers.setdefault(source, {})
            for part in parents:
                section = section.setdefault(part, {})
            section[leaf] = value

        self._notify_watchers()

    def clear(self, source: Optional[ConfigSource] = None) -> None:
        """Drop one layer, or every layer but the compiled defaults."""
        with self._lock:
            sources = [source] if source else list(self._layers)
            for s in sources:
                if s != ConfigSource.COMPILED_DEFAULTS:
                    self._layers.pop(s, None)
                    self._files.pop(s, None)

    def reload(self) -> None:
        """Re-read every layer that came from a file, then notify watchers.

        Raises:
            ConfigError: If a file can no longer be loaded
        """
        with self._lock:
            files = list(self._files.items())

        for source, path in files:
            self.load_file(str(path), source)

        self._notify_watchers()

    def add_watcher(self, callback: Watcher) -> None:
        """Call callback with the merged configuration after every change."""
        with self._lock:
            self._watchers.append(callback)

    def remove_watcher(self, callback: Watcher) -> None:
        with self._lock:
            if callback in self._watchers:
                self._watchers.remove(callback)

    def _notify_watchers(self) -> None:
        merged = self.get_all()

        with self._lock:
            watchers = list(self._watchers)

        for watcher in watchers:
            watcher(merged)


_global_config: Optional[ConfigManager] = None


def get_config_manager(config_file: Optional[str] = None) -> ConfigManager:
    """Return the global configuration manager, creating it on first use."""
    global _global_config
    if _global_config is None:
        _global_config = ConfigManager(config_file)
    return _global_config


def set_global_config(config: Optional[ConfigManager]) -> None:
    """Install config as the global manager (None resets it)."""
    global _global_config
    _global_config = config
