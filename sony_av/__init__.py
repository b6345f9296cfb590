"""Sony PlayStation 5 and Bravia TV control library.

PS5 status and wake use the Device Discovery Protocol over UDP 9302.
Bravia control uses the REST API (IP control, pre-shared key).
"""

from .bravia import BraviaHandler
from .bravia_api import (
    INPUT_URIS,
    VIDEO_TARGETS,
    BraviaClient,
    VideoOption,
    input_to_uri,
    uri_to_input,
)
from .channels import (
    REFRESH,
    PS5_CHANNELS,
    TV_CHANNELS,
    ChannelStateCache,
    DeviceStatus,
    StatusDetail,
    ThingStatus,
)
from .config import (
    load_config,
    validate_config,
    DEFAULT_CONFIG,
    PS5_PORT,
    DEVICE_TYPE_PS5,
    DEVICE_TYPE_TV,
    BENIGN_ERROR_CODES,
)
from .ddp import DDPSocket, PS5Status, parse_response, query_status, send_wakeup
from .devices import create_handler
from .exceptions import (
    ApiError,
    ConfigurationError,
    DeviceConnectionError,
    DeviceTimeoutError,
    SonyAVError,
    UnexpectedResponseError,
)
from .handler import DeviceHandler, RefreshScheduler
from .playstation import PlayStationHandler

__version__ = "1.0.0"
__all__ = [
    # Handlers
    "BraviaHandler",
    "PlayStationHandler",
    "DeviceHandler",
    "RefreshScheduler",
    "create_handler",
    # Bravia API
    "BraviaClient",
    "VideoOption",
    "INPUT_URIS",
    "VIDEO_TARGETS",
    "input_to_uri",
    "uri_to_input",
    # PS5 DDP
    "DDPSocket",
    "PS5Status",
    "parse_response",
    "query_status",
    "send_wakeup",
    # Channels and status
    "REFRESH",
    "PS5_CHANNELS",
    "TV_CHANNELS",
    "ChannelStateCache",
    "DeviceStatus",
    "StatusDetail",
    "ThingStatus",
    # Config
    "load_config",
    "validate_config",
    "DEFAULT_CONFIG",
    "PS5_PORT",
    "DEVICE_TYPE_PS5",
    "DEVICE_TYPE_TV",
    "BENIGN_ERROR_CODES",
    # Exceptions
    "SonyAVError",
    "ConfigurationError",
    "DeviceConnectionError",
    "DeviceTimeoutError",
    "ApiError",
    "UnexpectedResponseError",
]
