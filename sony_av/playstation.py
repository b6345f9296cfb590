"""PlayStation 5 device handler.

Polls the console over DDP on a fixed interval and publishes the power
state and the running application. The only command is power on (wake).
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .channels import (
    CHANNEL_PS5_POWER,
    CHANNEL_PS5_RUNNING_APP_ID,
    CHANNEL_PS5_RUNNING_APP_NAME,
    REFRESH,
    STATUS_ONLINE,
    STATUS_UNKNOWN,
    DeviceStatus,
    StateReporter,
    StatusDetail,
    is_on_command,
    offline,
)
from .config import DEFAULT_PS5_REFRESH_INTERVAL, DISPOSE_TIMEOUT, PS5_PORT, PS5_TIMEOUT
from .ddp import DDPSocket, resolve_host
from .exceptions import ConfigurationError, DeviceConnectionError, UnexpectedResponseError
from .handler import RefreshScheduler

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PS5Connection:
    """Everything a running PS5 handler needs, built in one go."""

    hostname: str
    address: str
    credential: str
    transport: DDPSocket
    refresh_interval: float


class PlayStationHandler:
    """Monitor and wake a PS5."""

    def __init__(
        self,
        config: Dict[str, Any],
        on_state: Optional[Callable[[str, Any], None]] = None,
        on_status: Optional[Callable[[DeviceStatus], None]] = None,
        scheduler_factory: Callable[..., Any] = RefreshScheduler,
        transport_factory: Callable[..., DDPSocket] = DDPSocket,
    ):
        """Initialize the handler.

        Args:
            config: Device config (host, credential, refresh_interval)
            on_state: Called with (channel, value) on every channel update
            on_status: Called with the new DeviceStatus on every status change
            scheduler_factory: Builds the refresh scheduler (task, interval, name)
            transport_factory: Builds the DDP socket (address, port, timeout)
        """
        self.config = config
        self._reporter = StateReporter(on_state, on_status)
        self._scheduler_factory = scheduler_factory
        self._transport_factory = transport_factory
        self._connection: Optional[PS5Connection] = None
        self._scheduler = None

    @property
    def status(self) -> DeviceStatus:
        return self._reporter.status

    @property
    def states(self) -> Dict[str, Any]:
        """Snapshot of the cached channel values."""
        return self._reporter.cache.snapshot()

    def initialize(self) -> None:
        """Validate config, open the socket, and start the refresh ticks.

        Configuration problems are reported as OFFLINE/CONFIGURATION_ERROR
        and leave the handler without a schedule.
        """
        self._reporter.update_status(STATUS_UNKNOWN)
        try:
            self._connection = self._connect()
        except ConfigurationError as e:
            _LOGGER.error("PS5 configuration error: %s", e)
            self._reporter.update_status(offline(StatusDetail.CONFIGURATION_ERROR, str(e)))
            return

        self._scheduler = self._scheduler_factory(
            self.refresh,
            self._connection.refresh_interval,
            name=f"ps5-{self._connection.hostname}",
        )
        self._scheduler.start()

    def _connect(self) -> PS5Connection:
        hostname = (self.config.get("host") or "").strip()
        if not hostname:
            raise ConfigurationError("Hostname not set")
        address = resolve_host(hostname)

        credential = self.config.get("credential") or ""
        if not credential:
            raise ConfigurationError("Credential not set")

        transport = self._transport_factory(
            address,
            port=self.config.get("port", PS5_PORT),
            timeout=self.config.get("timeout", PS5_TIMEOUT),
        )
        return PS5Connection(
            hostname=hostname,
            address=address,
            credential=credential,
            transport=transport,
            refresh_interval=self.config.get("refresh_interval", DEFAULT_PS5_REFRESH_INTERVAL),
        )

    def refresh(self) -> None:
        """Run one tick: query the console and publish what it reports."""
        connection = self._connection
        if connection is None:
            return

        try:
            status = connection.transport.query_status()
        except DeviceConnectionError as e:
            _LOGGER.debug("PS5 %s unreachable: %s", connection.hostname, e)
            self._report_status(connection, offline(StatusDetail.COMMUNICATION_ERROR, str(e)))
            return
        except UnexpectedResponseError as e:
            _LOGGER.warning("Unexpected response from PS5 %s: %s", connection.hostname, e)
            self._report_status(connection, offline(StatusDetail.COMMUNICATION_ERROR, str(e)))
            return

        _LOGGER.debug("PS5 %s: %s", connection.hostname, status.status_line)
        self._report_state(connection, CHANNEL_PS5_POWER, status.power_on)
        self._report_state(connection, CHANNEL_PS5_RUNNING_APP_NAME, status.running_app_name)
        self._report_state(connection, CHANNEL_PS5_RUNNING_APP_ID, status.running_app_id)
        self._report_status(connection, STATUS_ONLINE)

    def _report_state(self, connection: PS5Connection, channel: str, value: Any) -> None:
        # A tick that outlives dispose must not publish anything
        if self._connection is connection:
            self._reporter.update_state(channel, value)

    def _report_status(self, connection: PS5Connection, status: DeviceStatus) -> None:
        if self._connection is connection:
            self._reporter.update_status(status)

    def handle_command(self, channel: str, command: Any) -> None:
        """Handle a command for one of the PS5 channels."""
        if command is REFRESH:
            self._reporter.replay(channel)
            return

        if channel != CHANNEL_PS5_POWER:
            _LOGGER.warning("Ignoring command to unknown channel %s", channel)
            return

        if not is_on_command(command):
            _LOGGER.warning("PS5 cannot be switched off remotely, ignoring %s", command)
            return

        connection = self._connection
        if connection is None:
            _LOGGER.warning("PS5 handler not initialized, cannot send wake command")
            return

        try:
            connection.transport.wakeup(connection.credential)
            _LOGGER.info("Sent wake command to PS5 %s", connection.hostname)
        except DeviceConnectionError as e:
            _LOGGER.warning("Unable to send wake command: %s", e)

    def dispose(self) -> None:
        """Stop the refresh ticks and close the socket.

        Waits for an in-flight tick so the socket is not closed under it.
        """
        _LOGGER.debug("Disposing PS5 handler")
        connection, self._connection = self._connection, None
        if self._scheduler is not None:
            self._scheduler.cancel(wait=True, timeout=DISPOSE_TIMEOUT)
            self._scheduler = None
        if connection is not None:
            connection.transport.close()
