"""Build device handlers from config entries."""

from typing import Any, Callable, Dict, Optional

from .bravia import BraviaHandler
from .channels import DeviceStatus
from .config import DEVICE_TYPE_PS5, DEVICE_TYPE_TV, device_config
from .exceptions import ConfigurationError
from .playstation import PlayStationHandler

HANDLER_CLASSES = {
    DEVICE_TYPE_PS5: PlayStationHandler,
    DEVICE_TYPE_TV: BraviaHandler,
}


def create_handler(
    config: Dict[str, Any],
    on_state: Optional[Callable[[str, Any], None]] = None,
    on_status: Optional[Callable[[DeviceStatus], None]] = None,
    **kwargs,
):
    """Create the handler matching ``config["type"]``.

    Args:
        config: Device entry (defaults for its type are filled in)
        on_state: Channel update callback
        on_status: Status update callback
        **kwargs: Passed to the handler (factories, clock)

    Raises:
        ConfigurationError: If the device type is unknown
    """
    device_type = config.get("type")
    handler_class = HANDLER_CLASSES.get(device_type)
    if handler_class is None:
        raise ConfigurationError(f"Unknown device type: {device_type!r}")
    return handler_class(device_config(config), on_state=on_state, on_status=on_status, **kwargs)
