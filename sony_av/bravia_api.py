"""Sony Bravia REST API client.

Each call is a short-lived HTTP POST to ``http://<host>/sony/<endpoint>``
with a JSON-RPC-like body:

    {"method": "getPowerStatus", "id": 50, "version": "1.0", "params": []}

The TV answers with either ``{"result": [...], "id": 50}`` or
``{"error": [code, "message"], "id": 50}``.
"""

import http.client
import json
import logging
import socket
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .channels import (
    CHANNEL_VIDEO_AUTO_PICTURE_MODE,
    CHANNEL_VIDEO_BRIGHTNESS,
    CHANNEL_VIDEO_COLOR_SPACE,
    CHANNEL_VIDEO_COLOR_TEMPERATURE,
    CHANNEL_VIDEO_CONTRAST,
    CHANNEL_VIDEO_HDR_MODE,
    CHANNEL_VIDEO_HUE,
    CHANNEL_VIDEO_LIGHT_SENSOR,
    CHANNEL_VIDEO_LOCAL_DIMMING,
    CHANNEL_VIDEO_PICTURE_MODE,
    CHANNEL_VIDEO_SATURATION,
    CHANNEL_VIDEO_SHARPNESS,
    CHANNEL_VIDEO_XTENDED_DYNAMIC_RANGE,
    command_to_str,
)
from .config.constants import (
    BRAVIA_API_VERSION,
    BRAVIA_REQUEST_TIMEOUT,
    ENDPOINT_AV_CONTENT,
    ENDPOINT_SYSTEM,
    ENDPOINT_VIDEO,
    METHOD_ID_GET_PICTURE_QUALITY,
    METHOD_ID_GET_PLAYING_CONTENT,
    METHOD_ID_GET_POWER_SAVING_MODE,
    METHOD_ID_GET_POWER_STATUS,
    METHOD_ID_SET_PICTURE_QUALITY,
    METHOD_ID_SET_PLAY_CONTENT,
    METHOD_ID_SET_POWER_SAVING_MODE,
    METHOD_ID_SET_POWER_STATUS,
)
from .exceptions import ApiError, DeviceConnectionError, UnexpectedResponseError

_LOGGER = logging.getLogger(__name__)

# Friendly input names <-> playContent URIs
INPUT_URIS: Dict[str, str] = {
    "hdmi1": "extInput:hdmi?port=1",
    "hdmi2": "extInput:hdmi?port=2",
    "hdmi3": "extInput:hdmi?port=3",
    "hdmi4": "extInput:hdmi?port=4",
    "miracast": "extInput:widi?port=1",
}
URI_INPUTS: Dict[str, str] = {uri: name for name, uri in INPUT_URIS.items()}

INPUT_UNKNOWN = "unknown"

POWER_STATUS_ACTIVE = "active"
POWER_SAVING_PICTURE_OFF = "pictureOff"
POWER_SAVING_OFF = "off"

# Value types for picture quality settings
VALUE_NUMBER = "number"
VALUE_STRING = "string"
VALUE_SWITCH = "switch"

# getPictureQualitySettings target -> (channel, value type)
VIDEO_TARGETS: Dict[str, tuple] = {
    "brightness": (CHANNEL_VIDEO_BRIGHTNESS, VALUE_NUMBER),
    "color": (CHANNEL_VIDEO_SATURATION, VALUE_NUMBER),
    "contrast": (CHANNEL_VIDEO_CONTRAST, VALUE_NUMBER),
    "sharpness": (CHANNEL_VIDEO_SHARPNESS, VALUE_NUMBER),
    "hue": (CHANNEL_VIDEO_HUE, VALUE_NUMBER),
    "autoLocalDimming": (CHANNEL_VIDEO_LOCAL_DIMMING, VALUE_STRING),
    "autoPictureMode": (CHANNEL_VIDEO_AUTO_PICTURE_MODE, VALUE_STRING),
    "colorSpace": (CHANNEL_VIDEO_COLOR_SPACE, VALUE_STRING),
    "colorTemperature": (CHANNEL_VIDEO_COLOR_TEMPERATURE, VALUE_STRING),
    "lightSensor": (CHANNEL_VIDEO_LIGHT_SENSOR, VALUE_SWITCH),
    "pictureMode": (CHANNEL_VIDEO_PICTURE_MODE, VALUE_STRING),
    "hdrMode": (CHANNEL_VIDEO_HDR_MODE, VALUE_STRING),
    "xtendedDynamicRange": (CHANNEL_VIDEO_XTENDED_DYNAMIC_RANGE, VALUE_STRING),
}
CHANNEL_TARGETS: Dict[str, str] = {channel: target for target, (channel, _) in VIDEO_TARGETS.items()}


def input_to_uri(name: str) -> str:
    """Translate a friendly input name; unknown values pass through."""
    return INPUT_URIS.get(name, name)


def uri_to_input(uri: str) -> str:
    """Translate a playContent URI back to its friendly name."""
    return URI_INPUTS.get(uri, uri)


def to_number(value: Any):
    """Parse a numeric setting, preferring int over float."""
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        return float(text)


def convert_value(value_type: str, raw: Any) -> Any:
    """Convert a setting value to its channel type.

    Raises:
        ValueError: If the value is missing or a numeric setting is not a number
    """
    if raw is None:
        raise ValueError("missing value")
    if value_type == VALUE_NUMBER:
        return to_number(raw)
    if value_type == VALUE_SWITCH:
        return str(raw).lower() == "on"
    return str(raw)


@dataclass(frozen=True)
class VideoOption:
    """One entry of getPictureQualitySettings."""

    target: str
    current_value: Any
    is_available: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VideoOption":
        if not isinstance(data, dict) or "target" not in data:
            raise UnexpectedResponseError(f"Invalid picture quality entry: {data!r}")
        return cls(
            target=data["target"],
            current_value=data.get("currentValue"),
            is_available=bool(data.get("isAvailable", True)),
        )

    @property
    def channel(self) -> Optional[str]:
        mapping = VIDEO_TARGETS.get(self.target)
        return mapping[0] if mapping else None

    def channel_value(self) -> Any:
        """Current value converted to the channel's type."""
        _, value_type = VIDEO_TARGETS[self.target]
        return convert_value(value_type, self.current_value)


def build_payload(method: str, method_id: int, params: List[Any]) -> Dict[str, Any]:
    """Build the JSON-RPC request body."""
    return {
        "method": method,
        "id": method_id,
        "version": BRAVIA_API_VERSION,
        "params": params,
    }


def build_video_set_params(target: str, value: str) -> List[Dict[str, Any]]:
    """Params for setPictureQualitySettings with a single setting."""
    return [{"settings": [{"value": value, "target": target}]}]


def build_power_params(on: bool) -> List[Dict[str, Any]]:
    return [{"status": on}]


def build_display_off_params(display_off: bool) -> List[Dict[str, Any]]:
    return [{"mode": POWER_SAVING_PICTURE_OFF if display_off else POWER_SAVING_OFF}]


def build_input_params(name: str) -> List[Dict[str, Any]]:
    return [{"uri": input_to_uri(name)}]


def _first_result(result: Any, method: str) -> Any:
    """Return ``result[0]``, the payload of every call used here."""
    if not isinstance(result, list) or not result:
        raise UnexpectedResponseError(f"{method}: empty or missing result")
    return result[0]


def _result_field(result: Any, method: str, key: str) -> str:
    entry = _first_result(result, method)
    if not isinstance(entry, dict) or key not in entry:
        raise UnexpectedResponseError(f"{method}: missing '{key}' in {entry!r}")
    return str(entry[key])


def _is_timeout(error: BaseException) -> bool:
    if isinstance(error, urllib.error.URLError):
        error = error.reason
    return isinstance(error, (socket.timeout, TimeoutError))


class BraviaClient:
    """Client for the Bravia REST API, authenticated with a pre-shared key."""

    def __init__(self, host: str, psk: str, timeout: float = BRAVIA_REQUEST_TIMEOUT):
        """Initialize the client.

        Args:
            host: TV IP address or hostname (optionally host:port)
            psk: Pre-shared key configured on the TV
            timeout: Per-request timeout in seconds
        """
        self.host = host
        self.psk = psk
        self.timeout = timeout

    def url(self, endpoint: str) -> str:
        return f"http://{self.host}/sony/{endpoint}"

    def dispatch(self, endpoint: str, method: str, method_id: int,
                 params: Optional[List[Any]] = None) -> Any:
        """Send one request and return its ``result``.

        Raises:
            DeviceConnectionError: Transport failure (``is_timeout`` set for timeouts)
            ApiError: The TV returned an ``error`` pair
            UnexpectedResponseError: Body is not the expected JSON shape
        """
        url = self.url(endpoint)
        body = json.dumps(build_payload(method, method_id, params if params is not None else []))

        request = urllib.request.Request(url, data=body.encode("utf-8"), method="POST")
        request.add_header("Content-Type", "application/json")
        request.add_header("X-Auth-PSK", self.psk)
        request.add_header("Cache-Control", "no-cache")

        _LOGGER.debug("POST %s %s", url, body)
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                raw = response.read()
        except urllib.error.HTTPError as e:
            # Some firmwares send API errors with a non-2xx status
            raw = e.read()
            if not raw:
                raise DeviceConnectionError(
                    f"Error during requesting \"{url}\"@\"{method}\" HTTP {e.code}"
                ) from e
        except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
            raise DeviceConnectionError(
                f"Error during requesting \"{url}\"@\"{method}\" {e}",
                is_timeout=_is_timeout(e),
            ) from e

        return self._parse(raw, method)

    @staticmethod
    def _parse(raw: bytes, method: str) -> Any:
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise UnexpectedResponseError(f"{method}: invalid JSON response: {e}") from e

        if not isinstance(data, dict):
            raise UnexpectedResponseError(f"{method}: response is not an object")

        error = data.get("error")
        if error is not None:
            if not isinstance(error, list) or len(error) < 2:
                raise UnexpectedResponseError(f"{method}: malformed error {error!r}")
            try:
                code, message = int(error[0]), str(error[1])
            except (TypeError, ValueError) as e:
                raise UnexpectedResponseError(f"{method}: malformed error {error!r}") from e
            raise ApiError(code, message, method=method)

        if "result" not in data:
            raise UnexpectedResponseError(f"{method}: response has neither result nor error")
        return data["result"]

    # === Queries ===

    def get_power_status(self) -> bool:
        """Return True if the TV reports ``active``."""
        result = self.dispatch(ENDPOINT_SYSTEM, "getPowerStatus", METHOD_ID_GET_POWER_STATUS)
        return _result_field(result, "getPowerStatus", "status").lower() == POWER_STATUS_ACTIVE

    def get_display_off(self) -> bool:
        """Return True if the picture is switched off (power saving ``pictureOff``)."""
        result = self.dispatch(ENDPOINT_SYSTEM, "getPowerSavingMode", METHOD_ID_GET_POWER_SAVING_MODE)
        mode = _result_field(result, "getPowerSavingMode", "mode")
        return mode.lower() == POWER_SAVING_PICTURE_OFF.lower()

    def get_playing_content_uri(self) -> str:
        """Return the URI of the current input."""
        result = self.dispatch(ENDPOINT_AV_CONTENT, "getPlayingContentInfo", METHOD_ID_GET_PLAYING_CONTENT)
        return _result_field(result, "getPlayingContentInfo", "uri")

    def get_picture_quality_settings(self) -> List[VideoOption]:
        result = self.dispatch(
            ENDPOINT_VIDEO, "getPictureQualitySettings", METHOD_ID_GET_PICTURE_QUALITY, [{}]
        )
        entries = _first_result(result, "getPictureQualitySettings")
        if not isinstance(entries, list):
            raise UnexpectedResponseError("getPictureQualitySettings: settings are not a list")
        return [VideoOption.from_dict(entry) for entry in entries]

    # === Commands ===

    def set_power_status(self, on: bool) -> None:
        self.dispatch(ENDPOINT_SYSTEM, "setPowerStatus", METHOD_ID_SET_POWER_STATUS,
                      build_power_params(on))

    def set_display_off(self, display_off: bool) -> None:
        self.dispatch(ENDPOINT_SYSTEM, "setPowerSavingMode", METHOD_ID_SET_POWER_SAVING_MODE,
                      build_display_off_params(display_off))

    def set_input(self, name: str) -> None:
        """Switch input by friendly name or raw URI."""
        self.dispatch(ENDPOINT_AV_CONTENT, "setPlayContent", METHOD_ID_SET_PLAY_CONTENT,
                      build_input_params(name))

    def set_picture_quality(self, target: str, value: Any) -> None:
        self.dispatch(ENDPOINT_VIDEO, "setPictureQualitySettings", METHOD_ID_SET_PICTURE_QUALITY,
                      build_video_set_params(target, command_to_str(value)))
