"""Unified configuration management for Sony device control.

Provides:
- YAML-based configuration with environment variable overrides
- Multiple devices keyed by device_id, each typed as ps5 or tv
- Single source of truth for all constants
"""

# Constants - single source of truth
from .constants import (
    # PS5
    PS5_PORT,
    PS5_PROTOCOL_VERSION,
    PS5_TIMEOUT,
    PS5_RECV_BUFFER,
    PS5_STATUS_STANDBY,
    # Bravia
    BRAVIA_API_VERSION,
    BRAVIA_REQUEST_TIMEOUT,
    BRAVIA_OFFLINE_TIMEOUT,
    ENDPOINT_SYSTEM,
    ENDPOINT_VIDEO,
    ENDPOINT_AV_CONTENT,
    ERROR_DISPLAY_OFF,
    ERROR_NO_CONTENT,
    BENIGN_ERROR_CODES,
    # Refresh
    DEFAULT_PS5_REFRESH_INTERVAL,
    DEFAULT_TV_REFRESH_INTERVAL,
    DISPOSE_TIMEOUT,
    # Device types
    DEVICE_TYPE_PS5,
    DEVICE_TYPE_TV,
    DEVICE_TYPES,
)

# Schema and validation
from .schema import (
    DEFAULT_CONFIG,
    DEFAULT_PS5_CONFIG,
    DEFAULT_TV_CONFIG,
    deep_merge,
    device_config,
    validate_config,
    validate_device_config,
    get_device_by_id,
    find_device,
)

# Configuration loading
from .loader import (
    load_config,
    CONFIG_SEARCH_PATHS,
)


__all__ = [
    # Constants
    "PS5_PORT",
    "PS5_PROTOCOL_VERSION",
    "PS5_TIMEOUT",
    "PS5_RECV_BUFFER",
    "PS5_STATUS_STANDBY",
    "BRAVIA_API_VERSION",
    "BRAVIA_REQUEST_TIMEOUT",
    "BRAVIA_OFFLINE_TIMEOUT",
    "ENDPOINT_SYSTEM",
    "ENDPOINT_VIDEO",
    "ENDPOINT_AV_CONTENT",
    "ERROR_DISPLAY_OFF",
    "ERROR_NO_CONTENT",
    "BENIGN_ERROR_CODES",
    "DEFAULT_PS5_REFRESH_INTERVAL",
    "DEFAULT_TV_REFRESH_INTERVAL",
    "DISPOSE_TIMEOUT",
    "DEVICE_TYPE_PS5",
    "DEVICE_TYPE_TV",
    "DEVICE_TYPES",
    # Schema
    "DEFAULT_CONFIG",
    "DEFAULT_PS5_CONFIG",
    "DEFAULT_TV_CONFIG",
    "deep_merge",
    "device_config",
    "validate_config",
    "validate_device_config",
    "get_device_by_id",
    "find_device",
    # Loader
    "load_config",
    "CONFIG_SEARCH_PATHS",
]
