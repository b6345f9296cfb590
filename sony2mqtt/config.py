"""Configuration and topic helpers for sony2mqtt."""

from typing import Any, List, Optional, Tuple

from sony_av.channels import GROUP_SEPARATOR
from sony_av.config import load_config, validate_config

DEFAULT_BASE_TOPIC = "sony2mqtt"

PAYLOAD_ON = "ON"
PAYLOAD_OFF = "OFF"
PAYLOAD_UNDEF = "UNDEF"
PAYLOAD_REFRESH = "REFRESH"


def load_bridge_config(config_path: Optional[str] = None) -> dict:
    """Load configuration for the bridge (always re-read from disk)."""
    return load_config(config_path, use_cache=False)


def validate_bridge_config(config: dict) -> List[str]:
    """Validate configuration and return list of errors."""
    return validate_config(config, for_bridge=True)


def get_base_topic(config: dict) -> str:
    return config.get("mqtt", {}).get("base_topic") or DEFAULT_BASE_TOPIC


def channel_to_topic(channel: str) -> str:
    """``video#brightness`` -> ``video/brightness`` ('#' is an MQTT wildcard)."""
    return channel.replace(GROUP_SEPARATOR, "/")


def topic_to_channel(path: str) -> str:
    """``video/brightness`` -> ``video#brightness``."""
    return path.replace("/", GROUP_SEPARATOR, 1)


def format_state(value: Any) -> str:
    """Render a channel value as an MQTT payload."""
    if isinstance(value, bool):
        return PAYLOAD_ON if value else PAYLOAD_OFF
    if value is None:
        return PAYLOAD_UNDEF
    return str(value)


def parse_set_topic(topic: str, base_topic: str) -> Optional[Tuple[str, str]]:
    """Split ``<base>/<device_id>/set/<channel path>``.

    Returns:
        Tuple of (device_id, channel), or None if the topic is not a command
    """
    prefix = base_topic.rstrip("/") + "/"
    if not topic.startswith(prefix):
        return None
    parts = topic[len(prefix):].split("/", 2)
    if len(parts) != 3 or parts[1] != "set" or not parts[0] or not parts[2]:
        return None
    return parts[0], topic_to_channel(parts[2])
