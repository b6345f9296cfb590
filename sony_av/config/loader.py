"""Configuration loading with YAML support and env overrides."""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .constants import DEVICE_TYPE_PS5, DEVICE_TYPE_TV
from .schema import DEFAULT_CONFIG, deep_merge

_LOGGER = logging.getLogger(__name__)

# Config search paths (in priority order)
CONFIG_SEARCH_PATHS = [
    Path("config.yaml"),                              # Current directory (primary)
    Path("/app/config.yaml"),                         # Docker
    Path.home() / ".config" / "sony_av" / "config.yaml",  # User home
    Path("/etc/sony_av/config.yaml"),                 # System-wide
]

# Environment variable mappings
# Format: "ENV_VAR": ("section", "key", optional_converter)
# Device sections are named after the device type and applied to the
# first device of that type (created if missing).
ENV_MAPPINGS = {
    # Devices
    "PS5_HOST": (DEVICE_TYPE_PS5, "host"),
    "PS5_CREDENTIAL": (DEVICE_TYPE_PS5, "credential"),
    "TV_HOST": (DEVICE_TYPE_TV, "host"),
    "TV_PSK": (DEVICE_TYPE_TV, "psk"),
    # MQTT settings
    "MQTT_HOST": ("mqtt", "host"),
    "MQTT_PORT": ("mqtt", "port", int),
    "MQTT_USERNAME": ("mqtt", "username"),
    "MQTT_PASSWORD": ("mqtt", "password"),
    # Options
    "LOG_LEVEL": ("options", "log_level"),
    "RECONNECT_INTERVAL": ("options", "reconnect_interval", int),
}

# Module-level cached config
_cached_config: Optional[Dict] = None


def load_config(config_path: Optional[str] = None, use_cache: bool = True) -> Dict[str, Any]:
    """Load configuration from YAML file with environment overrides.

    Args:
        config_path: Explicit path to config file, or None to search
        use_cache: Use cached config if available

    Returns:
        Merged configuration dictionary
    """
    global _cached_config

    if use_cache and _cached_config is not None and config_path is None:
        return _cached_config

    config = copy.deepcopy(DEFAULT_CONFIG)
    loaded_path = None

    # Build search paths
    search_paths: List[Path] = []
    if config_path:
        search_paths.append(Path(config_path))
    search_paths.extend(CONFIG_SEARCH_PATHS)

    for path in search_paths:
        if path.suffix in ('.yaml', '.yml') and path.exists():
            try:
                with open(path) as f:
                    user_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                _LOGGER.warning("Failed to load %s: %s", path, e)
                continue
            config = deep_merge(config, user_config)
            loaded_path = path
            _LOGGER.info("Loaded config from %s", path)
            break

    # Apply environment variable overrides
    config = _apply_env_overrides(config)

    # Store metadata
    config["_loaded_from"] = str(loaded_path) if loaded_path else None

    _cached_config = config

    return config


def _apply_env_overrides(config: Dict) -> Dict:
    """Apply environment variable overrides to config."""
    device_overrides: Dict[str, Dict[str, Any]] = {}

    for env_var, mapping in ENV_MAPPINGS.items():
        value = os.environ.get(env_var)
        if value is None:
            continue

        section = mapping[0]
        key = mapping[1]
        converter = mapping[2] if len(mapping) > 2 else str

        try:
            converted_value = converter(value)
        except ValueError as e:
            _LOGGER.warning("Invalid env var %s=%s: %s", env_var, value, e)
            continue

        if section in (DEVICE_TYPE_PS5, DEVICE_TYPE_TV):
            device_overrides.setdefault(section, {})[key] = converted_value
        elif section in config:
            config[section][key] = converted_value
        else:
            _LOGGER.warning("Unknown config section: %s", section)

    devices = config.setdefault("devices", {})
    for device_type, overrides in device_overrides.items():
        device_id = next(
            (dev_id for dev_id, dev in devices.items() if dev.get("type") == device_type),
            device_type,
        )
        entry = devices.setdefault(device_id, {"type": device_type})
        entry.update(overrides)

    return config
