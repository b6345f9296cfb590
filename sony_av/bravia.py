"""Sony Bravia TV device handler.

Each tick queries the power status first. Most sub-APIs are unavailable
while the TV is in standby, so display mode, input, and picture settings
are only polled when the TV reports ``active``.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .bravia_api import (
    CHANNEL_TARGETS,
    INPUT_UNKNOWN,
    VIDEO_TARGETS,
    BraviaClient,
    convert_value,
    uri_to_input,
)
from .channels import (
    CHANNEL_SYSTEM_CURRENT_INPUT,
    CHANNEL_SYSTEM_DISPLAY_OFF,
    CHANNEL_SYSTEM_POWER,
    CHANNEL_VIDEO_LIGHT_SENSOR,
    REFRESH,
    STATUS_ONLINE,
    STATUS_UNKNOWN,
    DeviceStatus,
    StateReporter,
    StatusDetail,
    command_to_str,
    is_on_command,
    offline,
)
from .config.constants import (
    BRAVIA_OFFLINE_TIMEOUT,
    BRAVIA_REQUEST_TIMEOUT,
    DEFAULT_TV_REFRESH_INTERVAL,
    DISPOSE_TIMEOUT,
    ENDPOINT_AV_CONTENT,
    ENDPOINT_SYSTEM,
    ENDPOINT_VIDEO,
    ERROR_NO_CONTENT,
)
from .exceptions import ApiError, ConfigurationError, DeviceConnectionError, UnexpectedResponseError
from .handler import RefreshScheduler
from .status import TimeoutHysteresis, is_benign

_LOGGER = logging.getLogger(__name__)

REASON_RESPONSE_TIMEOUT = "Response timeout"


@dataclass(frozen=True)
class BraviaConnection:
    """Everything a running TV handler needs, built in one go."""

    host: str
    client: BraviaClient
    refresh_interval: float
    hysteresis: TimeoutHysteresis


class BraviaHandler:
    """Monitor and control a Sony Bravia TV."""

    def __init__(
        self,
        config: Dict[str, Any],
        on_state: Optional[Callable[[str, Any], None]] = None,
        on_status: Optional[Callable[[DeviceStatus], None]] = None,
        scheduler_factory: Callable[..., Any] = RefreshScheduler,
        client_factory: Callable[..., BraviaClient] = BraviaClient,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the handler.

        Args:
            config: Device config (host, psk, refresh_interval,
                request_timeout, offline_timeout)
            on_state: Called with (channel, value) on every channel update
            on_status: Called with the new DeviceStatus on every status change
            scheduler_factory: Builds the refresh scheduler (task, interval, name)
            client_factory: Builds the API client (host, psk, timeout)
            clock: Monotonic clock used for the timeout hysteresis
        """
        self.config = config
        self._reporter = StateReporter(on_state, on_status)
        self._scheduler_factory = scheduler_factory
        self._client_factory = client_factory
        self._clock = clock
        self._connection: Optional[BraviaConnection] = None
        self._scheduler = None

    @property
    def status(self) -> DeviceStatus:
        return self._reporter.status

    @property
    def states(self) -> Dict[str, Any]:
        """Snapshot of the cached channel values."""
        return self._reporter.cache.snapshot()

    def initialize(self) -> None:
        """Validate config, build the API client, and start the refresh ticks."""
        self._reporter.update_status(STATUS_UNKNOWN)
        try:
            self._connection = self._connect()
        except ConfigurationError as e:
            _LOGGER.error("TV configuration error: %s", e)
            self._reporter.update_status(offline(StatusDetail.CONFIGURATION_ERROR, str(e)))
            return

        self._scheduler = self._scheduler_factory(
            self.refresh,
            self._connection.refresh_interval,
            name=f"tv-{self._connection.host}",
        )
        self._scheduler.start()

    def _connect(self) -> BraviaConnection:
        host = (self.config.get("host") or "").strip()
        if not host:
            raise ConfigurationError("Host not configured")

        psk = self.config.get("psk") or ""
        if not psk:
            raise ConfigurationError("Api key not configured")

        client = self._client_factory(
            host, psk, timeout=self.config.get("request_timeout", BRAVIA_REQUEST_TIMEOUT)
        )
        return BraviaConnection(
            host=host,
            client=client,
            refresh_interval=self.config.get("refresh_interval", DEFAULT_TV_REFRESH_INTERVAL),
            hysteresis=TimeoutHysteresis(
                self.config.get("offline_timeout", BRAVIA_OFFLINE_TIMEOUT), clock=self._clock
            ),
        )

    # === Refresh ===

    def refresh(self) -> None:
        """Run one tick and derive the connectivity status from it.

        Channels updated before a failure keep their new values; channels
        that could not be queried keep their previous values.
        """
        connection = self._connection
        if connection is None:
            return

        try:
            active = connection.client.get_power_status()
            connection.hysteresis.record_success()
            self._report_state(connection, CHANNEL_SYSTEM_POWER, active)

            if active:
                self._refresh_part(connection, ENDPOINT_SYSTEM, self._refresh_display_off)
                self._refresh_part(connection, ENDPOINT_AV_CONTENT, self._refresh_current_input)
                self._refresh_part(connection, ENDPOINT_VIDEO, self._refresh_video_options)

        except DeviceConnectionError as e:
            if e.is_timeout:
                if connection.hysteresis.exceeded():
                    _LOGGER.warning("TV %s: %s", connection.host, e)
                    self._report_status(
                        connection, offline(StatusDetail.COMMUNICATION_ERROR, REASON_RESPONSE_TIMEOUT)
                    )
                else:
                    _LOGGER.debug(
                        "TV %s timed out (silent for %.1fs): %s",
                        connection.host, connection.hysteresis.silence, e,
                    )
            else:
                _LOGGER.error("Error during refresh: %s", e, exc_info=True)
                self._report_status(connection, offline(StatusDetail.COMMUNICATION_ERROR, str(e)))
            return
        except ApiError as e:
            # The TV answered, so the connection itself is fine
            connection.hysteresis.record_success()
            _LOGGER.error("Api error during refresh: code=%s, message=%s", e.code, e.message)
            self._report_status(connection, offline(StatusDetail.COMMUNICATION_ERROR, str(e)))
            return
        except UnexpectedResponseError as e:
            _LOGGER.error("Error during refresh: %s", e, exc_info=True)
            self._report_status(connection, offline(StatusDetail.COMMUNICATION_ERROR, str(e)))
            return

        self._report_status(connection, STATUS_ONLINE)

    def _refresh_part(self, connection: BraviaConnection, endpoint: str,
                      refresh: Callable[[BraviaConnection], None]) -> None:
        """Run one sub-query, skipping it on an error benign for its endpoint."""
        try:
            refresh(connection)
        except ApiError as e:
            connection.hysteresis.record_success()
            if not is_benign(e, endpoint):
                raise
            _LOGGER.debug("Skipping %s refresh: %s", endpoint, e)
            return
        connection.hysteresis.record_success()

    def _refresh_display_off(self, connection: BraviaConnection) -> None:
        self._report_state(connection, CHANNEL_SYSTEM_DISPLAY_OFF, connection.client.get_display_off())

    def _refresh_current_input(self, connection: BraviaConnection) -> None:
        try:
            uri = connection.client.get_playing_content_uri()
        except ApiError as e:
            if e.code != ERROR_NO_CONTENT:
                raise
            uri = INPUT_UNKNOWN
        self._report_state(connection, CHANNEL_SYSTEM_CURRENT_INPUT, uri_to_input(uri))

    def _refresh_video_options(self, connection: BraviaConnection) -> None:
        for option in connection.client.get_picture_quality_settings():
            channel = option.channel
            if channel is None:
                continue
            try:
                value = option.channel_value()
            except ValueError:
                _LOGGER.error("Unable to update \"%s\" with value \"%s\"", channel, option.current_value)
                continue
            self._report_state(connection, channel, value)

    def _report_state(self, connection: BraviaConnection, channel: str, value: Any) -> None:
        # A tick that outlives dispose must not publish anything
        if self._connection is connection:
            self._reporter.update_state(channel, value)

    def _report_status(self, connection: BraviaConnection, status: DeviceStatus) -> None:
        if self._connection is connection:
            self._reporter.update_status(status)

    # === Commands ===

    def handle_command(self, channel: str, command: Any) -> None:
        """Forward a command to the TV and update the channel on success."""
        _LOGGER.debug("Received command %s for channel %s", command, channel)

        if command is REFRESH:
            self._reporter.replay(channel)
            return

        connection = self._connection
        if connection is None:
            _LOGGER.warning("TV handler not initialized, ignoring command for %s", channel)
            return
        client = connection.client

        try:
            if channel in CHANNEL_TARGETS:
                if not self._set_video_option(client, channel, command):
                    return
            elif channel == CHANNEL_SYSTEM_POWER:
                on = is_on_command(command)
                client.set_power_status(on)
                self._reporter.update_state(channel, on)
            elif channel == CHANNEL_SYSTEM_CURRENT_INPUT:
                name = command_to_str(command)
                client.set_input(name)
                self._reporter.update_state(channel, name)
            elif channel == CHANNEL_SYSTEM_DISPLAY_OFF:
                display_off = is_on_command(command)
                client.set_display_off(display_off)
                self._reporter.update_state(channel, display_off)
            else:
                _LOGGER.warning("Ignoring command to unknown channel %s", channel)
                return
        except ApiError as e:
            connection.hysteresis.record_success()
            _LOGGER.error("Command failed: %s", e)
            return
        except (DeviceConnectionError, UnexpectedResponseError) as e:
            _LOGGER.error("Command failed: %s", e)
            return
        connection.hysteresis.record_success()

    def _set_video_option(self, client: BraviaClient, channel: str, command: Any) -> bool:
        """Send one picture setting; returns False if the value was rejected locally."""
        target = CHANNEL_TARGETS[channel]
        _, value_type = VIDEO_TARGETS[target]

        if channel == CHANNEL_VIDEO_LIGHT_SENSOR:
            value = "on" if is_on_command(command) else "off"
        else:
            value = command_to_str(command)

        try:
            new_state = convert_value(value_type, value)
        except ValueError:
            _LOGGER.warning("Invalid value %r for %s", value, channel)
            return False

        client.set_picture_quality(target, value)
        self._reporter.update_state(channel, new_state)
        return True

    def dispose(self) -> None:
        """Stop the refresh ticks, waiting for an in-flight tick to finish."""
        _LOGGER.debug("Disposing TV handler")
        self._connection = None
        if self._scheduler is not None:
            self._scheduler.cancel(wait=True, timeout=DISPOSE_TIMEOUT)
            self._scheduler = None
