"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables and a YAML
configuration file (``~/.svcproxy/config.yaml`` by default).
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

import yaml
from dotenv import load_dotenv

from svcproxy.domain.models.common import KEY_DELIMITER
from svcproxy.infrastructure.introspection.reflection_describer import (
    DEFAULT_ACCESSOR_PREFIXES,
    DEFAULT_ASYNC_SUFFIX,
)

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".svcproxy"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "SVCPROXY_"

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


def _flatten(mapping: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Flattens nested YAML mappings into dotted keys ({'a': {'b': 1}} -> {'a.b': 1})."""
    flat: Dict[str, Any] = {}
    for key, value in mapping.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, prefix=f"{dotted}."))
        else:
            flat[dotted] = value
    return flat


def env_var_name(key: str) -> str:
    """Environment variable consulted for a dotted config key."""
    return f"{ENV_PREFIX}{key.upper().replace('.', '_')}"


def load_configuration(
    config_file: Optional[Path] = None,
    env_file: Optional[Path] = None,
    force: bool = False,
) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values supplied by the caller

    Args:
        config_file: Path to the YAML configuration file (DEFAULT_CONFIG_FILE if None).
        env_file: Path to the .env file (searches upwards from cwd if None).
        force: Reload even if configuration was already loaded.
    """
    global _config, _loaded
    if _loaded and not force:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. YAML file (lowest priority)
    config_file = Path(config_file) if config_file is not None else DEFAULT_CONFIG_FILE
    if config_file.exists():
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(_flatten(yaml_config))
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a mapping.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. .env file (does not override real environment variables)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
        else:
            logger.debug(f"No variables loaded from .env file: {dotenv_path}")
    else:
        logger.debug("No .env file found at or above the current directory.")

    # 3. Environment variables are read lazily by get_config
    _loaded = True
    logger.debug("Configuration loading process completed.")


def _coerce(value: str) -> Any:
    """Converts environment strings to bool/int/float where they look like one."""
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    try:
        return float(value) if "." in value else int(value)
    except ValueError:
        return value


def get_config(key: str, default: Any = None) -> Any:
    """Gets a configuration value by dotted key.

    Priority:
    1. Test configuration
    2. Environment variable (``SVCPROXY_<KEY>``)
    3. YAML config
    4. Default value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = env_var_name(key)
    if env_key in os.environ:
        return _coerce(os.environ[env_key])

    if key in _config:
        return _config[key]

    logger.debug(f"Config key '{key}' not set. Returning default: {default}")
    return default


def set_config(key: str, value: Any) -> None:
    """Sets a configuration value in memory for the rest of the process."""
    logger.debug(f"Setting config: {key} = {value!r}")
    _config[key] = value


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """Overrides configuration values for tests."""
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clears all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")


def reset_configuration() -> None:
    """Forgets loaded configuration so the next load reads files again."""
    global _config, _loaded
    _config = {}
    _loaded = False


# --- Typed Proxy Settings ---

@dataclass(frozen=True)
class ProxySettings:
    """Settings consumed by the composition root."""
    key_strategy: str = "delimited"
    key_delimiter: str = KEY_DELIMITER
    cache_max_items: Optional[int] = None
    accessor_prefixes: Tuple[str, ...] = DEFAULT_ACCESSOR_PREFIXES
    async_suffix: str = DEFAULT_ASYNC_SUFFIX
    log_level: str = "INFO"
    log_file: Optional[str] = None


def _as_prefixes(value: Any, default: Sequence[str]) -> Tuple[str, ...]:
    if value is None:
        return tuple(default)
    if isinstance(value, str):
        return tuple(p.strip() for p in value.split(",") if p.strip())
    return tuple(str(p) for p in value)


def _as_optional_int(key: str, value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Config key '{key}' must be an integer, got {value!r}") from e


def load_proxy_settings() -> ProxySettings:
    """Reads ProxySettings from the loaded configuration."""
    load_configuration()
    defaults = ProxySettings()
    settings = ProxySettings(
        key_strategy=str(get_config("proxy.key_strategy", defaults.key_strategy)),
        key_delimiter=str(get_config("proxy.key_delimiter", defaults.key_delimiter)),
        cache_max_items=_as_optional_int("proxy.cache_max_items", get_config("proxy.cache_max_items")),
        accessor_prefixes=_as_prefixes(get_config("proxy.accessor_prefixes"), defaults.accessor_prefixes),
        async_suffix=str(get_config("proxy.async_suffix", defaults.async_suffix)),
        log_level=str(get_config("logging.level", defaults.log_level)).upper(),
        log_file=get_config("logging.file", defaults.log_file),
    )
    logger.debug(f"Proxy settings: {settings}")
    return settings
