"""Channel identifiers, connectivity status, and the cached channel state."""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

# PS5 channels
CHANNEL_PS5_POWER = "power"
CHANNEL_PS5_RUNNING_APP_NAME = "running_app_name"
CHANNEL_PS5_RUNNING_APP_ID = "running_app_id"

PS5_CHANNELS = (
    CHANNEL_PS5_POWER,
    CHANNEL_PS5_RUNNING_APP_NAME,
    CHANNEL_PS5_RUNNING_APP_ID,
)

# Bravia channel groups
CHANNEL_GROUP_SYSTEM = "system"
CHANNEL_GROUP_VIDEO = "video"
GROUP_SEPARATOR = "#"

# Bravia system channels
CHANNEL_SYSTEM_POWER = CHANNEL_GROUP_SYSTEM + "#power"
CHANNEL_SYSTEM_CURRENT_INPUT = CHANNEL_GROUP_SYSTEM + "#current_input"
CHANNEL_SYSTEM_DISPLAY_OFF = CHANNEL_GROUP_SYSTEM + "#display_off"

# Bravia video channels
CHANNEL_VIDEO_BRIGHTNESS = CHANNEL_GROUP_VIDEO + "#brightness"
CHANNEL_VIDEO_SATURATION = CHANNEL_GROUP_VIDEO + "#saturation"
CHANNEL_VIDEO_CONTRAST = CHANNEL_GROUP_VIDEO + "#contrast"
CHANNEL_VIDEO_SHARPNESS = CHANNEL_GROUP_VIDEO + "#sharpness"
CHANNEL_VIDEO_HUE = CHANNEL_GROUP_VIDEO + "#hue"
CHANNEL_VIDEO_LOCAL_DIMMING = CHANNEL_GROUP_VIDEO + "#local_dimming"
CHANNEL_VIDEO_AUTO_PICTURE_MODE = CHANNEL_GROUP_VIDEO + "#auto_picture_mode"
CHANNEL_VIDEO_COLOR_SPACE = CHANNEL_GROUP_VIDEO + "#color_space"
CHANNEL_VIDEO_COLOR_TEMPERATURE = CHANNEL_GROUP_VIDEO + "#color_temperature"
CHANNEL_VIDEO_LIGHT_SENSOR = CHANNEL_GROUP_VIDEO + "#light_sensor"
CHANNEL_VIDEO_PICTURE_MODE = CHANNEL_GROUP_VIDEO + "#picture_mode"
CHANNEL_VIDEO_HDR_MODE = CHANNEL_GROUP_VIDEO + "#hdr_mode"
CHANNEL_VIDEO_XTENDED_DYNAMIC_RANGE = CHANNEL_GROUP_VIDEO + "#xtended_dynamic_range"

TV_SYSTEM_CHANNELS = (
    CHANNEL_SYSTEM_POWER,
    CHANNEL_SYSTEM_CURRENT_INPUT,
    CHANNEL_SYSTEM_DISPLAY_OFF,
)

TV_VIDEO_CHANNELS = (
    CHANNEL_VIDEO_BRIGHTNESS,
    CHANNEL_VIDEO_SATURATION,
    CHANNEL_VIDEO_CONTRAST,
    CHANNEL_VIDEO_SHARPNESS,
    CHANNEL_VIDEO_HUE,
    CHANNEL_VIDEO_LOCAL_DIMMING,
    CHANNEL_VIDEO_AUTO_PICTURE_MODE,
    CHANNEL_VIDEO_COLOR_SPACE,
    CHANNEL_VIDEO_COLOR_TEMPERATURE,
    CHANNEL_VIDEO_LIGHT_SENSOR,
    CHANNEL_VIDEO_PICTURE_MODE,
    CHANNEL_VIDEO_HDR_MODE,
    CHANNEL_VIDEO_XTENDED_DYNAMIC_RANGE,
)

TV_CHANNELS = TV_SYSTEM_CHANNELS + TV_VIDEO_CHANNELS


class _Refresh:
    """Command asking a handler to re-publish its cached state."""

    def __repr__(self) -> str:
        return "REFRESH"


REFRESH = _Refresh()


class ThingStatus(Enum):
    """Connectivity of a device as seen by the host."""
    UNKNOWN = "unknown"
    ONLINE = "online"
    OFFLINE = "offline"


class StatusDetail(Enum):
    """Why a device is in its current status."""
    NONE = "none"
    CONFIGURATION_ERROR = "configuration_error"
    COMMUNICATION_ERROR = "communication_error"


@dataclass(frozen=True)
class DeviceStatus:
    """Connectivity status with an optional human-readable reason."""

    status: ThingStatus
    detail: StatusDetail = StatusDetail.NONE
    reason: Optional[str] = None

    @property
    def is_online(self) -> bool:
        return self.status is ThingStatus.ONLINE

    def __str__(self) -> str:
        if self.reason:
            return f"{self.status.value} ({self.reason})"
        return self.status.value


STATUS_UNKNOWN = DeviceStatus(ThingStatus.UNKNOWN)
STATUS_ONLINE = DeviceStatus(ThingStatus.ONLINE)


def offline(detail: StatusDetail, reason: Optional[str] = None) -> DeviceStatus:
    """Build an OFFLINE status."""
    return DeviceStatus(ThingStatus.OFFLINE, detail, reason)


def command_to_str(command: Any) -> str:
    """Render a command value the way the device protocols expect it.

    Booleans become ``on``/``off``; everything else goes through ``str``.
    """
    if isinstance(command, bool):
        return "on" if command else "off"
    return str(command).strip()


def is_on_command(command: Any) -> bool:
    """Return True for ON-like commands (``True``, ``"ON"``, ``"on"``)."""
    return command_to_str(command).lower() == "on"


class ChannelStateCache:
    """Last known value per channel.

    Values are replaced wholesale per channel; concurrent writers follow
    last-writer-wins.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._states: Dict[str, Any] = {}

    def set(self, channel: str, value: Any) -> None:
        with self._lock:
            self._states[channel] = value

    def get(self, channel: str, default: Any = None) -> Any:
        with self._lock:
            return self._states.get(channel, default)

    def __contains__(self, channel: str) -> bool:
        with self._lock:
            return channel in self._states

    def snapshot(self) -> Dict[str, Any]:
        """Return a copy of all cached channel values."""
        with self._lock:
            return dict(self._states)


class StateReporter:
    """Pushes channel and status updates to the host and keeps the cache.

    Every channel update goes through the cache first so a later
    REFRESH command can be answered without contacting the device.
    """

    def __init__(
        self,
        on_state: Optional[Callable[[str, Any], None]] = None,
        on_status: Optional[Callable[[DeviceStatus], None]] = None,
    ):
        self.cache = ChannelStateCache()
        self._on_state = on_state
        self._on_status = on_status
        self._status = STATUS_UNKNOWN

    @property
    def status(self) -> DeviceStatus:
        return self._status

    def update_state(self, channel: str, value: Any) -> None:
        self.cache.set(channel, value)
        if self._on_state:
            self._on_state(channel, value)

    def update_status(self, status: DeviceStatus) -> None:
        self._status = status
        if self._on_status:
            self._on_status(status)

    def replay(self, channel: str) -> bool:
        """Re-send the cached value of a channel.

        Returns:
            True if a cached value existed
        """
        if channel not in self.cache:
            return False
        if self._on_state:
            self._on_state(channel, self.cache.get(channel))
        return True
