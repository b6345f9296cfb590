"""Configuration schema, defaults, and validation."""

from typing import Any, Dict, List, Optional

from .constants import (
    BRAVIA_OFFLINE_TIMEOUT,
    BRAVIA_REQUEST_TIMEOUT,
    DEFAULT_PS5_REFRESH_INTERVAL,
    DEFAULT_TV_REFRESH_INTERVAL,
    DEVICE_TYPE_PS5,
    DEVICE_TYPE_TV,
    DEVICE_TYPES,
)


# Defaults for a single PS5
DEFAULT_PS5_CONFIG: Dict[str, Any] = {
    "type": DEVICE_TYPE_PS5,
    "host": None,                # Required - console IP or hostname
    "credential": None,          # Required - Remote Play user credential
    "name": "PlayStation 5",
    "refresh_interval": DEFAULT_PS5_REFRESH_INTERVAL,
}


# Defaults for a single Bravia TV
DEFAULT_TV_CONFIG: Dict[str, Any] = {
    "type": DEVICE_TYPE_TV,
    "host": None,                # Required - TV IP or hostname
    "psk": None,                 # Required - pre-shared key set on the TV
    "name": "Sony Bravia",
    "refresh_interval": DEFAULT_TV_REFRESH_INTERVAL,
    "request_timeout": BRAVIA_REQUEST_TIMEOUT,
    "offline_timeout": BRAVIA_OFFLINE_TIMEOUT,
}

DEVICE_DEFAULTS: Dict[str, Dict[str, Any]] = {
    DEVICE_TYPE_PS5: DEFAULT_PS5_CONFIG,
    DEVICE_TYPE_TV: DEFAULT_TV_CONFIG,
}


# Full config structure
DEFAULT_CONFIG: Dict[str, Any] = {
    # MQTT broker settings (for sony2mqtt bridge)
    "mqtt": {
        "host": None,                # Required for bridge
        "port": 1883,
        "username": None,
        "password": None,
        "client_id": "sony2mqtt",
        "base_topic": "sony2mqtt",
    },

    # Devices keyed by device_id, each with a "type" of ps5 or tv
    "devices": {},

    "options": {
        "log_level": "INFO",
        "reconnect_interval": 30,
    },
}


def deep_merge(base: Dict, override: Dict) -> Dict:
    """Deep merge two dictionaries, override takes precedence.

    Args:
        base: Base dictionary
        override: Override dictionary (values take precedence)

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        elif value is not None:  # Don't override with None
            result[key] = value
    return result


def device_config(raw: Dict) -> Dict:
    """Fill a device entry with the defaults for its type.

    Unknown types are returned unchanged so validation can report them.
    """
    defaults = DEVICE_DEFAULTS.get(raw.get("type"))
    if defaults is None:
        return dict(raw)
    return deep_merge(defaults, raw)


def validate_device_config(device_id: str, config: Dict) -> List[str]:
    """Validate one device entry and return list of errors."""
    errors = []
    device_type = config.get("type")

    if device_type not in DEVICE_TYPES:
        errors.append(f"devices.{device_id}.type must be one of {', '.join(DEVICE_TYPES)}")
        return errors

    if not config.get("host"):
        errors.append(f"devices.{device_id}.host is required")

    secret_key = "credential" if device_type == DEVICE_TYPE_PS5 else "psk"
    if not config.get(secret_key):
        errors.append(f"devices.{device_id}.{secret_key} is required")

    interval = config.get("refresh_interval")
    if not isinstance(interval, (int, float)) or interval <= 0:
        errors.append(f"devices.{device_id}.refresh_interval must be a positive number")

    return errors


def validate_config(config: Dict, for_bridge: bool = False) -> List[str]:
    """Validate configuration and return list of errors.

    Args:
        config: Configuration dictionary
        for_bridge: If True, also validate MQTT settings

    Returns:
        List of error messages (empty if valid)
    """
    errors = []

    devices = config.get("devices", {})

    if not devices:
        errors.append("No devices configured in 'devices' section")
    else:
        for device_id, raw in devices.items():
            errors.extend(validate_device_config(device_id, device_config(raw)))

    if for_bridge:
        mqtt = config.get("mqtt", {})
        if not mqtt.get("host"):
            errors.append("mqtt.host is required for bridge mode")

    return errors


def get_device_by_id(config: Dict, device_id: str) -> Optional[Dict]:
    """Get a device entry with defaults applied, or None if not configured."""
    raw = config.get("devices", {}).get(device_id)
    if raw is None:
        return None
    return device_config(raw)


def find_device(config: Dict, device_type: str) -> Optional[Dict]:
    """Return the first configured device of the given type."""
    for raw in config.get("devices", {}).values():
        if raw.get("type") == device_type:
            return device_config(raw)
    return None
