"""All constants for Sony device control - single source of truth.

Collects the values shared by:
- ddp.py (PS5 ports, protocol version, timeouts)
- bravia_api.py (endpoints, method ids, request timeout)
- bravia.py / playstation.py (refresh defaults, benign error codes)
"""

# === PS5 Device Discovery Protocol ===
PS5_PORT = 9302                     # DDP port, shared by search and wakeup
PS5_PROTOCOL_VERSION = "00030010"   # device-discovery-protocol-version header
PS5_TIMEOUT = 10.0                  # Overall receive window per tick (seconds)
PS5_RECV_BUFFER = 512
PS5_STATUS_STANDBY = 620            # Status code reported in rest mode

# === Bravia REST API ===
BRAVIA_API_VERSION = "1.0"
BRAVIA_REQUEST_TIMEOUT = 1.5        # Per-request timeout (seconds)
BRAVIA_OFFLINE_TIMEOUT = 10.0       # Continuous timeouts before OFFLINE (seconds)

ENDPOINT_SYSTEM = "system"
ENDPOINT_VIDEO = "video"
ENDPOINT_AV_CONTENT = "avContent"

# Method ids as sent by the Sony apps; the TV echoes them back unchanged
METHOD_ID_GET_POWER_STATUS = 50
METHOD_ID_SET_POWER_STATUS = 55
METHOD_ID_GET_POWER_SAVING_MODE = 51
METHOD_ID_SET_POWER_SAVING_MODE = 51
METHOD_ID_GET_PLAYING_CONTENT = 103
METHOD_ID_SET_PLAY_CONTENT = 55
METHOD_ID_GET_PICTURE_QUALITY = 52
METHOD_ID_SET_PICTURE_QUALITY = 12

# === Bravia API error codes ===
ERROR_DISPLAY_OFF = 40005           # Sub-API unavailable while the display is off
ERROR_NO_CONTENT = 7                # No input selected (menu / built-in apps)

# Codes that only mean "this query is unavailable right now", per endpoint
BENIGN_ERROR_CODES = {
    ENDPOINT_SYSTEM: frozenset({ERROR_DISPLAY_OFF}),
    ENDPOINT_VIDEO: frozenset({ERROR_DISPLAY_OFF}),
    ENDPOINT_AV_CONTENT: frozenset({ERROR_DISPLAY_OFF}),
}

# === Refresh defaults (seconds) ===
DEFAULT_PS5_REFRESH_INTERVAL = 10
DEFAULT_TV_REFRESH_INTERVAL = 5
DISPOSE_TIMEOUT = 15.0             # Wait for an in-flight tick on dispose (seconds)

# === Device types ===
DEVICE_TYPE_PS5 = "ps5"
DEVICE_TYPE_TV = "tv"
DEVICE_TYPES = (DEVICE_TYPE_PS5, DEVICE_TYPE_TV)
